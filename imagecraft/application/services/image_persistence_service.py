"""
Image persistence service.

Turns raw provider output into durable GeneratedImage records:
1. Decode the payload (raw bytes, bare base64 or data URL) and sniff its type
2. Upload once to S3; an upload failure is logged and the record is still written
3. Compute auto_delete_at from the owner's tier at creation time
4. Insert the record in its own transaction and return the /images/{id} reference

Each image is stored independently; store_batch collects per-image failures
instead of aborting the batch.

Dependencies: imagecraft.boundary.aws, imagecraft.boundary.db, imagecraft.configs
System role: Durable storage of generated images for the fan-out
"""

import base64
import binascii
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from imagecraft.boundary.aws.s3_client import S3ImageClient
from imagecraft.boundary.db.base import utc_now
from imagecraft.boundary.db.CRUD.generated_image_crud import generated_image_crud
from imagecraft.boundary.db.CRUD.user_crud import user_crud
from imagecraft.boundary.db.models.user_model import UserTier
from imagecraft.boundary.db.retry import db_retry
from imagecraft.boundary.providers.base import RawImage
from imagecraft.configs.generation import GenerationSettings
from imagecraft.core.exceptions import ImagePersistenceError, StorageError
from imagecraft.models.image import StoredImageRef
from imagecraft.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"
IMAGE_ROUTE = "/api/v1/images/{image_id}"

MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}


def display_url_for(image_id: UUID) -> str:
    return IMAGE_ROUTE.format(image_id=image_id)


def decode_image_data(data: bytes | str) -> bytes:
    """
    Decode an image payload into bytes.

    Args:
        data: Raw bytes, bare base64 text or a data: URL

    Returns:
        bytes: Decoded image

    Raises:
        ImagePersistenceError: If the payload is empty or not valid base64
    """
    if isinstance(data, (bytes, bytearray)):
        decoded = bytes(data)
    else:
        text = data.strip()
        if text.startswith("data:"):
            _, _, text = text.partition(",")
        try:
            decoded = base64.b64decode(text, validate=False)
        except (binascii.Error, ValueError) as e:
            raise ImagePersistenceError(f"Invalid base64 image data: {e}") from e

    if not decoded:
        raise ImagePersistenceError("Empty image data")
    return decoded


def sniff_mime_type(data: bytes) -> str:
    """Detect png/jpeg/gif/webp from magic bytes, defaulting to png."""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return DEFAULT_MIME_TYPE


@dataclass
class BatchStoreResult:
    """Outcome of storing one provider's images."""

    refs: list[StoredImageRef] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.errors)


class ImagePersistenceService:
    """
    Stores generated images and their metadata.

    Opens a fresh session per image so records commit independently of the
    message merges running alongside them.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        s3_client: S3ImageClient | None,
        settings: GenerationSettings,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize persistence service.

        Args:
            session_factory: Factory for short-lived database sessions
            s3_client: Images bucket client (None disables uploads)
            settings: Retention TTLs and image dimensions
            clock: Current-time source
        """
        self.session_factory = session_factory
        self.s3_client = s3_client
        self.settings = settings
        self.clock = clock

    def ttl_for(self, tier: UserTier) -> timedelta:
        if tier == UserTier.PAID:
            return timedelta(days=self.settings.paid_ttl_days)
        return timedelta(minutes=self.settings.free_ttl_minutes)

    async def compute_auto_delete_at(self, owner_id: UUID) -> datetime:
        """Expiry for an image created now by owner_id."""
        async with self.session_factory() as session:
            tier = await user_crud.get_user_tier(session, owner_id)
        return self.clock() + self.ttl_for(tier)

    async def _upload(
        self,
        image_id: UUID,
        owner_id: UUID,
        data: bytes,
        mime_type: str,
        provider: str,
        model: str,
    ) -> str | None:
        if self.s3_client is None:
            return None

        s3_key = S3ImageClient.build_key(
            str(owner_id), str(image_id), MIME_EXTENSIONS.get(mime_type, "png")
        )
        try:
            return await self.s3_client.upload_image_async(
                s3_key,
                data,
                mime_type,
                metadata={
                    "user-id": str(owner_id),
                    "provider": provider,
                    "model": model,
                },
            )
        except StorageError as e:
            logger.warning(
                f"{__name__}:_upload - Upload failed, continuing without blob "
                f"image_id={image_id}: {e.message}"
            )
            return None

    @db_retry
    async def _insert(self, **fields) -> None:
        async with self.session_factory() as session:
            await generated_image_crud.create_from_generation(session, **fields)
            await session.commit()

    async def store(
        self,
        raw_image: RawImage,
        owner_id: UUID,
        provider: str,
        model: str,
        prompt: str,
        auto_delete_at: datetime | None = None,
    ) -> StoredImageRef:
        """
        Persist one generated image.

        Args:
            raw_image: Provider output
            owner_id: Owning user
            provider: Provider name
            model: Model that produced the image
            prompt: Generation prompt
            auto_delete_at: Precomputed expiry (looked up from the tier when None)

        Returns:
            StoredImageRef: Image id and display URL

        Raises:
            ImagePersistenceError: If the image cannot be decoded or recorded
        """
        image_id = uuid.uuid4()
        logger.info(
            f"{__name__}:store - START image_id={image_id}, provider={provider}, model={model}"
        )

        data: bytes | None = None
        source_url: str | None = None
        if raw_image.data is not None:
            data = decode_image_data(raw_image.data)
            mime_type = sniff_mime_type(data)
        elif raw_image.url:
            source_url = raw_image.url
            mime_type = raw_image.mime_type or DEFAULT_MIME_TYPE
        else:
            raise ImagePersistenceError("Image has neither data nor URL", provider)

        if auto_delete_at is None:
            auto_delete_at = await self.compute_auto_delete_at(owner_id)

        s3_key = None
        if data is not None:
            s3_key = await self._upload(image_id, owner_id, data, mime_type, provider, model)

        try:
            await self._insert(
                image_id=image_id,
                user_id=owner_id,
                prompt=prompt,
                provider=provider,
                model=model,
                mime_type=mime_type,
                size_bytes=len(data) if data is not None else 0,
                auto_delete_at=auto_delete_at,
                s3_key=s3_key,
                s3_bucket=self.s3_client.bucket if s3_key else None,
                source_url=source_url,
                width=self.settings.image_width,
                height=self.settings.image_height,
            )
        except Exception as e:
            raise ImagePersistenceError(
                f"Failed to record image: {type(e).__name__}: {e}",
                provider,
                {"image_id": str(image_id)},
            ) from e

        logger.info(f"{__name__}:store - END image_id={image_id}, uploaded={s3_key is not None}")
        return StoredImageRef(id=image_id, display_url=display_url_for(image_id))

    async def store_batch(
        self,
        images: Sequence[RawImage],
        owner_id: UUID,
        provider: str,
        model: str,
        prompt: str,
    ) -> BatchStoreResult:
        """
        Persist a provider's images one by one, in provider order.

        The tier lookup happens once for the batch. A failure on one image is
        recorded and the remaining images are still stored.

        Returns:
            BatchStoreResult: Stored references and per-image errors
        """
        result = BatchStoreResult()
        auto_delete_at = await self.compute_auto_delete_at(owner_id)

        for index, raw_image in enumerate(images):
            try:
                ref = await self.store(
                    raw_image, owner_id, provider, model, prompt, auto_delete_at=auto_delete_at
                )
            except ImagePersistenceError as e:
                log_with_context(
                    logger,
                    logging.ERROR,
                    f"{__name__}:store_batch - Image {index} from {provider} not stored: {e.message}",
                    provider=provider,
                    model=model,
                    image_index=index,
                    error_details=e.details,
                )
                result.errors.append(e.message)
                continue
            result.refs.append(ref)

        return result
