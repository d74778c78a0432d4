"""
Image access service.

Resolves the stable /images/{id} reference stored in messages to a
short-lived presigned S3 URL, enforcing soft-delete and privacy.

Dependencies: imagecraft.boundary.aws, imagecraft.boundary.db
System role: Read side of generated images
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from imagecraft.boundary.aws.s3_client import S3ImageClient
from imagecraft.boundary.db.CRUD.generated_image_crud import generated_image_crud
from imagecraft.core.exceptions import ImageAccessDeniedError, ImageNotFoundError

logger = logging.getLogger(__name__)


class ImageService:
    """Generated image lookups."""

    def __init__(
        self,
        db: AsyncSession,
        s3_client: S3ImageClient | None,
        presigned_url_expiry: int = 3600,
    ) -> None:
        self.db = db
        self.s3_client = s3_client
        self.presigned_url_expiry = presigned_url_expiry

    async def get_download_url(self, image_id: UUID, requester_id: UUID | None) -> str:
        """
        URL the image route redirects to.

        Args:
            image_id: Image UUID
            requester_id: Calling user, if known

        Returns:
            str: Presigned S3 URL, or the vendor URL for images stored by reference

        Raises:
            ImageNotFoundError: If the image is absent, deleted or has no blob
            ImageAccessDeniedError: If the image is private and owned by someone else
        """
        image = await generated_image_crud.get_visible(self.db, image_id)
        if image is None:
            raise ImageNotFoundError(str(image_id))
        if not image.is_public and image.user_id != requester_id:
            raise ImageAccessDeniedError(str(image_id))

        if image.s3_key and self.s3_client is not None:
            url, _ = await asyncio.to_thread(
                self.s3_client.generate_presigned_download_url,
                image.s3_key,
                self.presigned_url_expiry,
            )
            return url
        if image.source_url:
            return image.source_url

        logger.warning(f"{__name__}:get_download_url - No stored blob for image_id={image_id}")
        raise ImageNotFoundError(str(image_id), reason="has no stored file")
