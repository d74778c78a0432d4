"""
Credit service.

Reserves credits before a provider call and refunds them when the call
produced nothing.

Dependencies: imagecraft.boundary.db
System role: Per-provider credit accounting for the fan-out
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from imagecraft.boundary.db.CRUD.user_crud import user_crud
from imagecraft.boundary.db.retry import db_retry

logger = logging.getLogger(__name__)


class CreditService:
    """Credit reservation against the users table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        cost_per_image: int = 1,
        enabled: bool = True,
    ) -> None:
        self.session_factory = session_factory
        self.cost_per_image = cost_per_image
        self.enabled = enabled

    def cost_for(self, image_count: int) -> int:
        return image_count * self.cost_per_image

    @db_retry
    async def reserve(self, user_id: UUID, image_count: int) -> int:
        """
        Deduct the cost of image_count images.

        Returns:
            int: Credits reserved (0 when accounting is disabled)

        Raises:
            InsufficientCreditsError: If the balance does not cover the cost
        """
        if not self.enabled:
            return 0
        amount = self.cost_for(image_count)
        async with self.session_factory() as session:
            remaining = await user_crud.reserve_credits(session, user_id, amount)
            await session.commit()
        logger.info(
            f"{__name__}:reserve - Reserved {amount} credits user_id={user_id}, remaining={remaining}"
        )
        return amount

    @db_retry
    async def refund(self, user_id: UUID, amount: int) -> None:
        """Return reserved credits."""
        if amount <= 0:
            return
        async with self.session_factory() as session:
            await user_crud.refund_credits(session, user_id, amount)
            await session.commit()
        logger.info(f"{__name__}:refund - Refunded {amount} credits user_id={user_id}")
