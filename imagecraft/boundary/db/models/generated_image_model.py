"""
Generated image ORM model.

One row per image returned by a provider. Rows are written independently
of the chat message so image persistence never contends with message merges.

Dependencies: sqlalchemy, imagecraft.boundary.db.base
System role: Durable record of generated images and their retention
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from imagecraft.boundary.db.base import Base, UUIDMixin, TimestampMixin


class GeneratedImageModel(Base, UUIDMixin, TimestampMixin):
    """
    Generated image ORM model.

    Attributes:
        id: UUID primary key; also the public display id (/images/{id})
        user_id: Owning user
        prompt: Prompt that produced the image
        s3_key: Object key in the images bucket (None when upload failed)
        s3_bucket: Bucket holding the object (None when upload failed)
        source_url: Vendor-hosted URL when the provider returned a reference instead of bytes
        mime_type: Image MIME type (image/png, image/jpeg, ...)
        size_bytes: Decoded image size
        provider: Provider that produced the image
        model: Provider model id
        width: Requested width in pixels
        height: Requested height in pixels
        auto_delete_at: Expiry computed from the owner's tier at creation; never recomputed
        is_favorite: User favourite flag
        is_public: Viewable without ownership check
        deleted: Soft-delete flag set by the cleanup job
        deleted_at: Soft-delete timestamp
    """

    __tablename__ = "generated_images"

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )

    prompt: Mapped[str] = mapped_column(Text, nullable=False)

    s3_key: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    s3_bucket: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    mime_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="image/png",
    )

    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    model: Mapped[str] = mapped_column(String(255), nullable=False, default="default")

    width: Mapped[int] = mapped_column(Integer, nullable=False, default=1024)
    height: Mapped[int] = mapped_column(Integer, nullable=False, default=1024)

    auto_delete_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
