"""
Chat session CRUD operations.

Dependencies: sqlalchemy, imagecraft.boundary.db.models
System role: Chat session persistence
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from imagecraft.boundary.db.base import utc_now
from imagecraft.boundary.db.CRUD.base_crud import BaseCRUD
from imagecraft.boundary.db.models.chat_session_model import ChatSessionModel

TITLE_MAX_LENGTH = 50


def title_from_prompt(prompt: str) -> str:
    """Derive a session title from the first prompt of the conversation."""
    prompt = prompt.strip()
    if not prompt:
        return "New Chat"
    if len(prompt) > TITLE_MAX_LENGTH:
        return prompt[:TITLE_MAX_LENGTH] + "..."
    return prompt


class ChatSessionCRUD(BaseCRUD[ChatSessionModel]):
    """CRUD operations for ChatSessionModel."""

    def __init__(self) -> None:
        super().__init__(ChatSessionModel)

    async def ensure_session(
        self,
        session: AsyncSession,
        session_id: UUID,
        user_id: UUID,
        prompt: str,
    ) -> ChatSessionModel:
        """
        Return the chat session, creating it when the client has not saved it yet.

        Args:
            session: Async database session
            session_id: Chat session UUID
            user_id: Owning user
            prompt: Prompt used to title a new session

        Returns:
            Existing or newly created ChatSessionModel
        """
        existing = await self.get_by_id(session, session_id)
        if existing is not None:
            return existing
        return await self.create(
            session,
            id=session_id,
            user_id=user_id,
            title=title_from_prompt(prompt),
        )

    async def touch(self, session: AsyncSession, id: UUID) -> ChatSessionModel | None:
        """Bump updated_at so the session sorts as recently active."""
        return await self.update_by_id(session, id, updated_at=utc_now())


chat_session_crud = ChatSessionCRUD()
