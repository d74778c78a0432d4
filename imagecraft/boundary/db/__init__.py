"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - ChatSessionModel, ChatMessageModel, GeneratedImageModel, UserModel: Domain entities
  - MessageStatus, MessageRole, UserTier: Enum types
  - chat_message_crud, chat_session_crud, generated_image_crud, user_crud: CRUD singletons

Dependencies: sqlalchemy, imagecraft.configs
System role: Database adapter for messages, images, sessions and users
"""

from imagecraft.boundary.db.base import Base, TimestampMixin, UUIDMixin
from imagecraft.boundary.db.connection import (
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from imagecraft.boundary.db.models import (
    ChatMessageModel,
    ChatSessionModel,
    GeneratedImageModel,
    MessageRole,
    MessageStatus,
    UserModel,
    UserTier,
)
from imagecraft.boundary.db.CRUD import (
    BaseCRUD,
    chat_message_crud,
    chat_session_crud,
    generated_image_crud,
    user_crud,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    "ChatMessageModel",
    "ChatSessionModel",
    "GeneratedImageModel",
    "MessageRole",
    "MessageStatus",
    "UserModel",
    "UserTier",
    "BaseCRUD",
    "chat_message_crud",
    "chat_session_crud",
    "generated_image_crud",
    "user_crud",
]
