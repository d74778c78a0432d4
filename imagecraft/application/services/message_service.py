"""
Message read service.

Serves the polling read model. Every read opens a fresh session so a
long-lived consumer (the SSE stream) always sees the latest committed
merge and never holds a transaction open between polls.

Dependencies: sqlalchemy, imagecraft.boundary.db, imagecraft.models
System role: Read side of the generation message
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from imagecraft.boundary.db.CRUD.chat_message_crud import chat_message_crud
from imagecraft.core.exceptions import MessageNotFoundError
from imagecraft.models.message import MessageSnapshot

logger = logging.getLogger(__name__)


class MessageService:
    """Read access to generation messages."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_snapshot(self, message_id: UUID) -> MessageSnapshot:
        """
        Current state of a message.

        Args:
            message_id: Message UUID

        Returns:
            MessageSnapshot: Images merged so far and the current status

        Raises:
            MessageNotFoundError: If no message has this id
        """
        async with self.session_factory() as session:
            message = await chat_message_crud.get_by_id(session, message_id)
            if message is None:
                raise MessageNotFoundError(str(message_id))
            return MessageSnapshot.from_model(message)

    async def list_session_messages(self, session_id: UUID) -> list[MessageSnapshot]:
        """All messages of a chat session, oldest first."""
        async with self.session_factory() as session:
            messages = await chat_message_crud.get_by_session_id(session, session_id)
            return [MessageSnapshot.from_model(message) for message in messages]
