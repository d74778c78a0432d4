"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from imagecraft.boundary.db.CRUD import chat_message_crud, generated_image_crud

    message = await chat_message_crud.get_by_id(db, message_id)
"""

from imagecraft.boundary.db.CRUD.base_crud import BaseCRUD
from imagecraft.boundary.db.CRUD.chat_message_crud import ChatMessageCRUD, chat_message_crud
from imagecraft.boundary.db.CRUD.chat_session_crud import ChatSessionCRUD, chat_session_crud
from imagecraft.boundary.db.CRUD.generated_image_crud import (
    GeneratedImageCRUD,
    generated_image_crud,
)
from imagecraft.boundary.db.CRUD.user_crud import UserCRUD, user_crud

__all__ = [
    "BaseCRUD",
    "ChatMessageCRUD",
    "chat_message_crud",
    "ChatSessionCRUD",
    "chat_session_crud",
    "GeneratedImageCRUD",
    "generated_image_crud",
    "UserCRUD",
    "user_crud",
]
