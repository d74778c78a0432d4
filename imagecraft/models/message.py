"""
Message read model.

The polling read model returned by GET /messages/{id}, streamed as SSE
snapshots and consumed by the client poller.

Dependencies: pydantic, imagecraft.boundary.db.models
System role: Message progress API contract
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from imagecraft.boundary.db.models.chat_message_model import ChatMessageModel, MessageStatus


class MessageSnapshot(BaseModel):
    """Point-in-time view of a generating or settled message."""

    id: UUID
    session_id: UUID
    status: MessageStatus
    content: str = ""
    image_urls: list[str] = Field(default_factory=list)
    image_provider_map: dict[str, str] = Field(default_factory=dict)
    provider_errors: dict[str, str] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @classmethod
    def from_model(cls, message: ChatMessageModel) -> "MessageSnapshot":
        return cls(
            id=message.id,
            session_id=message.session_id,
            status=message.status,
            content=message.content,
            image_urls=list(message.image_urls or []),
            image_provider_map=dict(message.image_provider_map or {}),
            provider_errors=dict(message.provider_errors or {}),
            metadata=dict(message.message_metadata or {}),
            created_at=message.created_at,
            updated_at=message.updated_at,
        )
