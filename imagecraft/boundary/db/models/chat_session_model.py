"""
Chat session ORM model.

A chat session groups the user prompts and assistant image messages of
one conversation.

Dependencies: sqlalchemy, imagecraft.boundary.db.base
System role: Conversation container for chat messages
"""

from uuid import UUID

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from imagecraft.boundary.db.base import Base, UUIDMixin, TimestampMixin


class ChatSessionModel(Base, UUIDMixin, TimestampMixin):
    """
    Chat session ORM model.

    Attributes:
        id: UUID primary key
        user_id: Owning user (identity managed by the auth layer)
        title: Display title, derived from the first prompt
        messages: Messages in this session (cascade delete)
        created_at: Session creation timestamp (UTC)
        updated_at: Bumped whenever a generation in the session settles

    Relationships:
        messages: One-to-many with ChatMessageModel
    """

    __tablename__ = "chat_sessions"

    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="New Chat",
    )

    messages = relationship(
        "ChatMessageModel",
        back_populates="session",
        cascade="all, delete-orphan",
    )
