"""
Expired image cleanup service.

Soft-deletes images whose auto_delete_at has passed and removes their S3
objects. Blob deletion is best-effort: the record is marked deleted even
when the object could not be removed.

Dependencies: imagecraft.boundary.aws, imagecraft.boundary.db
System role: Retention enforcement for tier-based auto-delete
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from imagecraft.boundary.aws.s3_client import S3ImageClient
from imagecraft.boundary.db.CRUD.generated_image_crud import generated_image_crud
from imagecraft.models.image import ImageCleanupResponse

logger = logging.getLogger(__name__)


class ImageCleanupService:
    """Batch purge of expired generated images."""

    def __init__(
        self,
        db: AsyncSession,
        s3_client: S3ImageClient | None,
        batch_size: int = 100,
    ) -> None:
        self.db = db
        self.s3_client = s3_client
        self.batch_size = batch_size

    async def purge_expired(self, now: datetime | None = None) -> ImageCleanupResponse:
        """
        Process one batch of expired images.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            ImageCleanupResponse: Counts for the batch
        """
        logger.info(f"{__name__}:purge_expired - START batch_size={self.batch_size}")
        expired = await generated_image_crud.get_expired(self.db, now, self.batch_size)

        deleted = 0
        blob_failures = 0
        for image in expired:
            if image.s3_key and self.s3_client is not None:
                if not await self.s3_client.delete_object_async(image.s3_key):
                    blob_failures += 1
            await generated_image_crud.mark_deleted(self.db, image.id)
            deleted += 1

        await self.db.commit()
        logger.info(
            f"{__name__}:purge_expired - END expired={len(expired)}, deleted={deleted}, "
            f"blob_failures={blob_failures}"
        )
        return ImageCleanupResponse(
            expired=len(expired),
            deleted=deleted,
            blob_delete_failures=blob_failures,
        )
