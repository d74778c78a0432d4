"""
Database models package.

Exports:
  - UserModel, UserTier: User ORM model and tier enum
  - ChatSessionModel: Conversation container
  - ChatMessageModel, MessageStatus, MessageRole: Message ORM model and enums
  - GeneratedImageModel: Generated image record

Dependencies: sqlalchemy, imagecraft.boundary.db.base
System role: Database model definitions for domain entities
"""

from imagecraft.boundary.db.models.user_model import UserModel, UserTier
from imagecraft.boundary.db.models.chat_session_model import ChatSessionModel
from imagecraft.boundary.db.models.chat_message_model import (
    ChatMessageModel,
    MessageRole,
    MessageStatus,
)
from imagecraft.boundary.db.models.generated_image_model import GeneratedImageModel

__all__ = [
    "UserModel",
    "UserTier",
    "ChatSessionModel",
    "ChatMessageModel",
    "MessageRole",
    "MessageStatus",
    "GeneratedImageModel",
]
