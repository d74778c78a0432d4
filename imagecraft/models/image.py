"""
Image schemas.

Dependencies: pydantic
System role: Stored image references and cleanup API contracts
"""

from uuid import UUID

from pydantic import BaseModel


class StoredImageRef(BaseModel):
    """
    Reference to a persisted generated image.

    display_url always points at the image route, never at the blob store,
    so storage can change without rewriting message content.
    """

    id: UUID
    display_url: str


class ImageCleanupResponse(BaseModel):
    """Result of one expired-image cleanup run."""

    expired: int
    deleted: int
    blob_delete_failures: int
