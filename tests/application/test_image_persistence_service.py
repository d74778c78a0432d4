"""
Test suite for ImagePersistenceService.

Covers payload decoding, type sniffing, retention computed at creation,
S3 upload success and failure, and per-image failure isolation in batches.

System role: Verification of generated image storage
"""

import base64
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from imagecraft.application.services.image_persistence_service import (
    ImagePersistenceService,
    decode_image_data,
    display_url_for,
    sniff_mime_type,
)
from imagecraft.boundary.aws.s3_client import S3ImageClient
from imagecraft.boundary.db.models import GeneratedImageModel, UserModel, UserTier
from imagecraft.boundary.providers.base import RawImage
from imagecraft.core.exceptions import ImagePersistenceError, StorageError
from tests.conftest import PNG_BASE64, PNG_BYTES

FIXED_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


async def load_images(session_factory) -> list[GeneratedImageModel]:
    async with session_factory() as session:
        result = await session.execute(select(GeneratedImageModel))
        return list(result.scalars().all())


async def add_user(session_factory, user_id, tier: UserTier) -> None:
    async with session_factory() as session:
        session.add(UserModel(id=user_id, email=f"{user_id}@test.dev", user_type=tier))
        await session.commit()


def naive(value: datetime) -> datetime:
    return value.replace(tzinfo=None)


class TestDecodeImageData:
    """Test suite for decode_image_data()."""

    def test_bytes_should_pass_through(self) -> None:
        assert decode_image_data(PNG_BYTES) == PNG_BYTES

    def test_bare_base64_should_decode(self) -> None:
        assert decode_image_data(PNG_BASE64) == PNG_BYTES

    def test_data_url_should_decode(self) -> None:
        assert decode_image_data(f"data:image/png;base64,{PNG_BASE64}") == PNG_BYTES

    def test_empty_payload_should_raise(self) -> None:
        """Test empty and undecodable payloads are rejected."""
        with pytest.raises(ImagePersistenceError):
            decode_image_data("")
        with pytest.raises(ImagePersistenceError):
            decode_image_data("%%%")


class TestSniffMimeType:
    """Test suite for sniff_mime_type()."""

    @pytest.mark.parametrize(
        "data,expected",
        [
            (PNG_BYTES, "image/png"),
            (b"\xff\xd8\xff\xe0" + b"\x00" * 8, "image/jpeg"),
            (b"GIF89a" + b"\x00" * 8, "image/gif"),
            (b"RIFF\x00\x00\x00\x00WEBPVP8 ", "image/webp"),
            (b"unknown bytes", "image/png"),
        ],
    )
    def test_should_detect_type_from_magic_bytes(self, data, expected) -> None:
        assert sniff_mime_type(data) == expected


class TestRetention:
    """Test suite for tier-based auto-delete computation."""

    @pytest.mark.asyncio
    async def test_free_and_unknown_users_should_get_short_ttl(
        self, session_factory, generation_settings, user_id
    ) -> None:
        """Test free tier and unknown users expire after the free TTL."""
        # Arrange
        service = ImagePersistenceService(
            session_factory, None, generation_settings, clock=lambda: FIXED_NOW
        )

        # Act
        unknown = await service.compute_auto_delete_at(user_id)

        # Assert
        assert unknown == FIXED_NOW + timedelta(minutes=10)

    @pytest.mark.asyncio
    async def test_paid_user_should_get_long_ttl(
        self, session_factory, generation_settings, user_id
    ) -> None:
        """Test paid users expire after the paid TTL."""
        # Arrange
        await add_user(session_factory, user_id, UserTier.PAID)
        service = ImagePersistenceService(
            session_factory, None, generation_settings, clock=lambda: FIXED_NOW
        )

        # Act
        expiry = await service.compute_auto_delete_at(user_id)

        # Assert
        assert expiry == FIXED_NOW + timedelta(days=30)

    @pytest.mark.asyncio
    async def test_tier_change_should_not_move_existing_expiry(
        self, session_factory, generation_settings, user_id
    ) -> None:
        """Test auto_delete_at is fixed when the image is created."""
        # Arrange
        await add_user(session_factory, user_id, UserTier.FREE)
        service = ImagePersistenceService(
            session_factory, None, generation_settings, clock=lambda: FIXED_NOW
        )
        await service.store(RawImage(data=PNG_BASE64), user_id, "openai", "dall-e-3", "a cat")

        # Act
        async with session_factory() as session:
            user = await session.get(UserModel, user_id)
            user.user_type = UserTier.PAID
            await session.commit()

        # Assert
        [image] = await load_images(session_factory)
        assert naive(image.auto_delete_at) == naive(FIXED_NOW + timedelta(minutes=10))


class TestStore:
    """Test suite for store() and store_batch()."""

    @pytest.mark.asyncio
    async def test_store_should_record_image_and_return_display_url(
        self, session_factory, generation_settings, user_id
    ) -> None:
        """Test a stored image gets a record and a stable display reference."""
        # Arrange
        service = ImagePersistenceService(session_factory, None, generation_settings)

        # Act
        ref = await service.store(RawImage(data=PNG_BASE64), user_id, "google", "imagen", "a fox")

        # Assert
        assert ref.display_url == display_url_for(ref.id)
        [image] = await load_images(session_factory)
        assert image.id == ref.id
        assert image.user_id == user_id
        assert image.provider == "google"
        assert image.mime_type == "image/png"
        assert image.size_bytes == len(PNG_BYTES)
        assert image.s3_key is None

    @pytest.mark.asyncio
    async def test_successful_upload_should_record_key_and_bucket(
        self, session_factory, generation_settings, user_id
    ) -> None:
        """Test the S3 key and bucket are stored after an upload."""
        # Arrange
        s3_client = MagicMock(spec=S3ImageClient)
        s3_client.bucket = "images-bucket"
        s3_client.upload_image_async = AsyncMock(side_effect=lambda key, *a, **kw: key)
        service = ImagePersistenceService(session_factory, s3_client, generation_settings)

        # Act
        ref = await service.store(RawImage(data=PNG_BYTES), user_id, "openai", "dall-e-2", "x")

        # Assert
        [image] = await load_images(session_factory)
        assert image.s3_key == f"images/{user_id}/{ref.id}.png"
        assert image.s3_bucket == "images-bucket"
        s3_client.upload_image_async.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_upload_should_still_record_image(
        self, session_factory, generation_settings, user_id
    ) -> None:
        """Test an upload failure is logged and the record is written without a key."""
        # Arrange
        s3_client = MagicMock(spec=S3ImageClient)
        s3_client.bucket = "images-bucket"
        s3_client.upload_image_async = AsyncMock(
            side_effect=StorageError("S3 down", operation="put_object")
        )
        service = ImagePersistenceService(session_factory, s3_client, generation_settings)

        # Act
        ref = await service.store(RawImage(data=PNG_BYTES), user_id, "openai", "dall-e-2", "x")

        # Assert
        [image] = await load_images(session_factory)
        assert image.id == ref.id
        assert image.s3_key is None
        assert image.s3_bucket is None

    @pytest.mark.asyncio
    async def test_url_only_image_should_store_source_url(
        self, session_factory, generation_settings, user_id
    ) -> None:
        """Test images returned by URL are stored by reference."""
        # Arrange
        service = ImagePersistenceService(session_factory, None, generation_settings)

        # Act
        await service.store(
            RawImage(url="https://cdn.example/img.png"), user_id, "openai", "gpt-image-1", "x"
        )

        # Assert
        [image] = await load_images(session_factory)
        assert image.source_url == "https://cdn.example/img.png"
        assert image.size_bytes == 0

    @pytest.mark.asyncio
    async def test_image_without_payload_should_raise(
        self, session_factory, generation_settings, user_id
    ) -> None:
        service = ImagePersistenceService(session_factory, None, generation_settings)

        with pytest.raises(ImagePersistenceError):
            await service.store(RawImage(), user_id, "openai", "dall-e-2", "x")

    @pytest.mark.asyncio
    async def test_batch_should_skip_bad_image_and_keep_order(
        self, session_factory, generation_settings, user_id
    ) -> None:
        """Test one undecodable image does not stop the rest of the batch."""
        # Arrange
        service = ImagePersistenceService(session_factory, None, generation_settings)
        images = [
            RawImage(data=PNG_BASE64),
            RawImage(data="%%%"),
            RawImage(data=base64.b64encode(b"GIF89a" + b"\x01" * 8).decode()),
        ]

        # Act
        result = await service.store_batch(images, user_id, "openai", "dall-e-2", "x")

        # Assert
        assert len(result.refs) == 2
        assert result.failed_count == 1
        stored = {image.id: image.mime_type for image in await load_images(session_factory)}
        assert [stored[ref.id] for ref in result.refs] == ["image/png", "image/gif"]
