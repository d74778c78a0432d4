"""Pydantic API and domain schemas."""

from imagecraft.models.generation import GenerationRequest, GenerationStartedResponse
from imagecraft.models.image import ImageCleanupResponse, StoredImageRef
from imagecraft.models.message import MessageSnapshot

__all__ = [
    "GenerationRequest",
    "GenerationStartedResponse",
    "ImageCleanupResponse",
    "StoredImageRef",
    "MessageSnapshot",
]
