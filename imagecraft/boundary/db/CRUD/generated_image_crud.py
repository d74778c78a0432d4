"""
Generated image CRUD operations.

Provides Create, Read and soft-delete operations for GeneratedImageModel
with retention queries used by the cleanup job.

Dependencies: sqlalchemy, uuid, imagecraft.boundary.db.models
System role: Generated image metadata persistence
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from imagecraft.boundary.db.base import utc_now
from imagecraft.boundary.db.CRUD.base_crud import BaseCRUD
from imagecraft.boundary.db.models.generated_image_model import GeneratedImageModel


class GeneratedImageCRUD(BaseCRUD[GeneratedImageModel]):
    """
    CRUD operations for GeneratedImageModel.

    Extends BaseCRUD with generation inserts, visibility lookups and
    retention queries.
    """

    def __init__(self) -> None:
        """Initialize GeneratedImageCRUD with GeneratedImageModel."""
        super().__init__(GeneratedImageModel)

    async def create_from_generation(
        self,
        session: AsyncSession,
        user_id: UUID,
        prompt: str,
        provider: str,
        model: str,
        mime_type: str,
        size_bytes: int,
        auto_delete_at: datetime | None,
        s3_key: str | None = None,
        s3_bucket: str | None = None,
        source_url: str | None = None,
        width: int = 1024,
        height: int = 1024,
        image_id: UUID | None = None,
    ) -> GeneratedImageModel:
        """
        Create image record from generation output.

        Args:
            session: Async database session
            user_id: Owning user
            prompt: Prompt that produced the image
            provider: Provider name
            model: Provider model id
            mime_type: Image MIME type
            size_bytes: Decoded size in bytes
            auto_delete_at: Tier-derived expiry
            s3_key: Object key if the upload succeeded
            s3_bucket: Bucket if the upload succeeded
            source_url: Vendor URL when no bytes were returned
            width: Requested width
            height: Requested height
            image_id: Pre-generated id (used as the S3 object name)

        Returns:
            Created GeneratedImageModel instance
        """
        fields = dict(
            user_id=user_id,
            prompt=prompt,
            provider=provider,
            model=model,
            mime_type=mime_type,
            size_bytes=size_bytes,
            auto_delete_at=auto_delete_at,
            s3_key=s3_key,
            s3_bucket=s3_bucket,
            source_url=source_url,
            width=width,
            height=height,
            is_favorite=False,
            is_public=False,
            deleted=False,
        )
        if image_id is not None:
            fields["id"] = image_id
        return await self.create(session, **fields)

    async def get_visible(
        self,
        session: AsyncSession,
        id: UUID,
    ) -> GeneratedImageModel | None:
        """
        Retrieve an image unless it has been soft-deleted.

        Args:
            session: Async database session
            id: Image UUID

        Returns:
            GeneratedImageModel if found and not deleted, None otherwise
        """
        stmt = select(GeneratedImageModel).where(
            (GeneratedImageModel.id == id) & (GeneratedImageModel.deleted.is_(False))
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_expired(
        self,
        session: AsyncSession,
        now: datetime | None = None,
        limit: int = 100,
    ) -> Sequence[GeneratedImageModel]:
        """
        Retrieve images whose auto-delete time has passed.

        Args:
            session: Async database session
            now: Reference time (defaults to current UTC time)
            limit: Batch size

        Returns:
            Sequence of expired, not yet deleted images
        """
        now = now or utc_now()
        stmt = (
            select(GeneratedImageModel)
            .where(
                (GeneratedImageModel.deleted.is_(False))
                & (GeneratedImageModel.auto_delete_at.is_not(None))
                & (GeneratedImageModel.auto_delete_at <= now)
            )
            .order_by(GeneratedImageModel.auto_delete_at)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def mark_deleted(
        self,
        session: AsyncSession,
        id: UUID,
    ) -> GeneratedImageModel | None:
        """Soft-delete an image."""
        return await self.update_by_id(session, id, deleted=True, deleted_at=utc_now())


generated_image_crud = GeneratedImageCRUD()
