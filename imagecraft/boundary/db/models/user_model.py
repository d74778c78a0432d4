"""
User ORM model.

Holds the fields the generation pipeline reads: the subscription tier
(drives image retention) and the credit balance.

Dependencies: sqlalchemy, imagecraft.boundary.db.base
System role: Tier and credit lookups for generation
"""

import enum

from sqlalchemy import Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from imagecraft.boundary.db.base import Base, UUIDMixin, TimestampMixin


class UserTier(str, enum.Enum):
    """
    Subscription tiers.

    FREE: Short image retention
    PAID: Long image retention
    """

    FREE = "free"
    PAID = "paid"


class UserModel(Base, UUIDMixin, TimestampMixin):
    """
    User ORM model.

    Attributes:
        id: UUID primary key
        email: Login email (unique)
        user_type: Subscription tier enum (FREE/PAID)
        credits: Remaining generation credits
        created_at: Account creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
    )

    user_type: Mapped[UserTier] = mapped_column(
        Enum(UserTier, native_enum=False),
        nullable=False,
        default=UserTier.FREE,
    )

    credits: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Remaining generation credits",
    )
