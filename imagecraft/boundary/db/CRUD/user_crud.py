"""
User CRUD operations.

Tier lookups for image retention and atomic credit reservation.

Dependencies: sqlalchemy, imagecraft.boundary.db.models, imagecraft.core.exceptions
System role: User tier and credit persistence
"""

from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from imagecraft.boundary.db.CRUD.base_crud import BaseCRUD
from imagecraft.boundary.db.models.user_model import UserModel, UserTier
from imagecraft.core.exceptions import InsufficientCreditsError


class UserCRUD(BaseCRUD[UserModel]):
    """CRUD operations for UserModel."""

    def __init__(self) -> None:
        super().__init__(UserModel)

    async def get_user_tier(self, session: AsyncSession, user_id: UUID) -> UserTier:
        """
        Look up a user's subscription tier.

        Unknown users are treated as free tier.

        Args:
            session: Async database session
            user_id: User UUID

        Returns:
            UserTier of the user
        """
        user = await self.get_by_id(session, user_id)
        if user is None:
            return UserTier.FREE
        return user.user_type

    async def get_credits(self, session: AsyncSession, user_id: UUID) -> int:
        """Current credit balance (0 for unknown users)."""
        user = await self.get_by_id(session, user_id)
        return user.credits if user is not None else 0

    async def reserve_credits(
        self,
        session: AsyncSession,
        user_id: UUID,
        amount: int,
    ) -> int:
        """
        Atomically deduct credits if the balance covers the amount.

        Args:
            session: Async database session
            user_id: User UUID
            amount: Credits to deduct

        Returns:
            int: Remaining balance

        Raises:
            InsufficientCreditsError: If the balance is lower than amount
        """
        stmt = (
            update(UserModel)
            .where((UserModel.id == user_id) & (UserModel.credits >= amount))
            .values(credits=UserModel.credits - amount)
            .returning(UserModel.credits)
        )
        result = await session.execute(stmt)
        remaining = result.scalar_one_or_none()
        if remaining is None:
            available = await self.get_credits(session, user_id)
            raise InsufficientCreditsError(str(user_id), amount, available)
        return remaining

    async def refund_credits(
        self,
        session: AsyncSession,
        user_id: UUID,
        amount: int,
    ) -> None:
        """Return previously reserved credits."""
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(credits=UserModel.credits + amount)
        )
        await session.execute(stmt)


user_crud = UserCRUD()
