"""
Chat message ORM model.

Stores assistant image-generation messages: the evolving list of image
references, the per-provider maps, and the generation status that pollers
watch.

Dependencies: sqlalchemy, imagecraft.boundary.db.base
System role: Shared message record mutated by the generation fan-out
"""

import enum
from uuid import UUID

from sqlalchemy import Enum, ForeignKey, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from imagecraft.boundary.db.base import Base, UUIDMixin, TimestampMixin


class MessageStatus(str, enum.Enum):
    """
    Generation states of an assistant image message.

    GENERATING: Fan-out in flight; images may still be appended
    COMPLETED: Every provider produced at least one image
    PARTIAL: Some images were produced and at least one provider failed
    FAILED: No images were produced

    GENERATING is the only non-terminal state. Nothing moves out of a
    terminal state.
    """

    GENERATING = "generating"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not MessageStatus.GENERATING

    def can_transition_to(self, target: "MessageStatus") -> bool:
        """Whether a write may move a message from this status to target."""
        if self.is_terminal:
            return target is self
        return True


class MessageRole(str, enum.Enum):
    """Chat message author."""

    USER = "user"
    ASSISTANT = "assistant"


class ChatMessageModel(Base, UUIDMixin, TimestampMixin):
    """
    Chat message ORM model.

    Attributes:
        id: UUID primary key; may be assigned by the client before the row exists
        session_id: Foreign key to ChatSessionModel (cascade delete)
        role: Author enum (assistant for generation messages)
        type: Content kind ("image" for generation messages, "text" otherwise)
        content: Message text; the prompt for image messages
        status: Generation status enum (see MessageStatus)
        image_urls: Display references in arrival order (append-only while generating)
        image_provider_map: Display reference -> provider name
        provider_errors: Provider name -> error text, only for providers without images
        message_metadata: Echo of the request (providers, models, counts, prompt)
            plus the two maps, so a reconnecting client can rebuild its UI
        created_at: Message creation timestamp (UTC)
        updated_at: Last merge or status write (UTC)
    """

    __tablename__ = "chat_messages"

    session_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("chat_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role: Mapped[MessageRole] = mapped_column(
        Enum(MessageRole, native_enum=False),
        nullable=False,
        default=MessageRole.ASSISTANT,
    )

    type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="image",
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
    )

    status: Mapped[MessageStatus] = mapped_column(
        Enum(MessageStatus, native_enum=False),
        nullable=False,
        default=MessageStatus.GENERATING,
    )

    image_urls: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    image_provider_map: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    provider_errors: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    message_metadata: Mapped[dict] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )

    session = relationship("ChatSessionModel", back_populates="messages")
