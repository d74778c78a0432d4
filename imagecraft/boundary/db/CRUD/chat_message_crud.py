"""
Chat message CRUD operations.

Provides the message writes the generation fan-out depends on: creation in
the generating state, attach by client-assigned id, locked incremental
merges of image references, and guarded terminal status writes.

Every mutating method here refuses to touch a message that is already in a
terminal state, and image references are only ever appended.

Dependencies: sqlalchemy, imagecraft.boundary.db.models
System role: Message persistence for the generation orchestrator and pollers
"""

import logging
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from imagecraft.boundary.db.CRUD.base_crud import BaseCRUD
from imagecraft.boundary.db.models.chat_message_model import (
    ChatMessageModel,
    MessageRole,
    MessageStatus,
)

logger = logging.getLogger(__name__)


class ChatMessageCRUD(BaseCRUD[ChatMessageModel]):
    """
    CRUD operations for ChatMessageModel.

    Extends BaseCRUD with row-locked read-modify-write helpers used by
    concurrent provider tasks.
    """

    def __init__(self) -> None:
        """Initialize ChatMessageCRUD with ChatMessageModel."""
        super().__init__(ChatMessageModel)

    async def get_for_update(
        self,
        session: AsyncSession,
        id: UUID,
    ) -> ChatMessageModel | None:
        """
        Retrieve a message and lock its row until the transaction ends.

        SELECT ... FOR UPDATE on PostgreSQL; dialects without row locks
        (SQLite) ignore the clause.

        Args:
            session: Async database session
            id: Message UUID

        Returns:
            ChatMessageModel if found, None otherwise
        """
        return await self.get_by_id(session, id, for_update=True)

    async def get_by_session_id(
        self,
        session: AsyncSession,
        session_id: UUID,
    ) -> Sequence[ChatMessageModel]:
        """
        Retrieve all messages of a chat session, oldest first.

        Args:
            session: Async database session
            session_id: Parent chat session UUID

        Returns:
            Sequence of ChatMessageModels
        """
        stmt = (
            select(ChatMessageModel)
            .where(ChatMessageModel.session_id == session_id)
            .order_by(ChatMessageModel.created_at)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def create_generating(
        self,
        session: AsyncSession,
        session_id: UUID,
        prompt: str,
        metadata: dict[str, Any],
        message_id: UUID | None = None,
    ) -> ChatMessageModel:
        """
        Create an assistant image message in the generating state.

        Args:
            session: Async database session
            session_id: Parent chat session UUID
            prompt: Prompt stored as the message content
            metadata: Request echo stored in message_metadata
            message_id: Optional client-assigned id

        Returns:
            Created ChatMessageModel
        """
        fields: dict[str, Any] = {
            "session_id": session_id,
            "role": MessageRole.ASSISTANT,
            "type": "image",
            "content": prompt,
            "status": MessageStatus.GENERATING,
            "image_urls": [],
            "image_provider_map": {},
            "provider_errors": {},
            "message_metadata": metadata,
        }
        if message_id is not None:
            fields["id"] = message_id
        return await self.create(session, **fields)

    async def refresh_request(
        self,
        session: AsyncSession,
        id: UUID,
        prompt: str,
        metadata: dict[str, Any],
    ) -> ChatMessageModel | None:
        """
        Re-attach a generating message to a new request.

        Updates content and the request echo; images, maps and status are
        left untouched.

        Args:
            session: Async database session
            id: Message UUID
            prompt: New prompt
            metadata: New request echo

        Returns:
            Updated ChatMessageModel, or None if missing or already terminal
        """
        message = await self.get_for_update(session, id)
        if message is None or message.status.is_terminal:
            return None

        message.content = prompt
        message.message_metadata = {
            **metadata,
            "imageProviderMap": dict(message.image_provider_map),
            "providerErrors": dict(message.provider_errors),
        }
        await session.flush()
        return message

    async def append_images(
        self,
        session: AsyncSession,
        id: UUID,
        image_urls: list[str],
        provider: str,
    ) -> ChatMessageModel | None:
        """
        Append one provider's image references to a generating message.

        Reads the current row under lock, appends the new references after
        the existing ones, extends the reference -> provider map and writes
        the result back. References already present are skipped.

        Args:
            session: Async database session
            id: Message UUID
            image_urls: Display references in provider order
            provider: Provider that produced the images

        Returns:
            Updated ChatMessageModel, or None if missing or already terminal
        """
        message = await self.get_for_update(session, id)
        if message is None:
            return None
        if message.status.is_terminal:
            logger.warning(
                f"{__name__}:append_images - Ignoring merge into {message.status.value} "
                f"message_id={id}, provider={provider}"
            )
            return None

        existing = list(message.image_urls or [])
        new_urls = [url for url in image_urls if url not in existing]
        provider_map = dict(message.image_provider_map or {})
        provider_map.update({url: provider for url in new_urls})

        message.image_urls = existing + new_urls
        message.image_provider_map = provider_map
        message.message_metadata = {
            **(message.message_metadata or {}),
            "imageProviderMap": provider_map,
        }
        await session.flush()
        return message

    async def finalize(
        self,
        session: AsyncSession,
        id: UUID,
        status: MessageStatus,
        provider_errors: dict[str, str],
    ) -> ChatMessageModel | None:
        """
        Write the terminal status of a generating message.

        image_urls is not modified: the final write only settles status and
        errors over what the incremental merges accumulated.

        Args:
            session: Async database session
            id: Message UUID
            status: Terminal status to write
            provider_errors: Provider -> error text

        Returns:
            Updated ChatMessageModel, or None if missing or already terminal

        Raises:
            ValueError: If status is not terminal
        """
        if not status.is_terminal:
            raise ValueError(f"finalize requires a terminal status, got {status.value}")

        message = await self.get_for_update(session, id)
        if message is None:
            return None
        if not message.status.can_transition_to(status) or message.status.is_terminal:
            logger.warning(
                f"{__name__}:finalize - Message already {message.status.value}, "
                f"not overwriting with {status.value} message_id={id}"
            )
            return None

        message.status = status
        message.provider_errors = dict(provider_errors)
        message.message_metadata = {
            **(message.message_metadata or {}),
            "imageProviderMap": dict(message.image_provider_map or {}),
            "providerErrors": dict(provider_errors),
        }
        await session.flush()
        return message

    async def mark_failed(
        self,
        session: AsyncSession,
        id: UUID,
        error: str,
        error_key: str = "_settlement",
    ) -> ChatMessageModel | None:
        """
        Force a generating message into the failed state.

        Used when settlement itself crashes, so no message is left generating.
        Existing provider errors are kept and the crash is recorded under
        error_key.

        Args:
            session: Async database session
            id: Message UUID
            error: Error text to record
            error_key: provider_errors key for the error

        Returns:
            Updated ChatMessageModel, or None if missing or already terminal
        """
        message = await self.get_for_update(session, id)
        if message is None or message.status.is_terminal:
            return None

        errors = {**(message.provider_errors or {}), error_key: error}
        return await self.finalize(session, id, MessageStatus.FAILED, errors)


chat_message_crud = ChatMessageCRUD()
