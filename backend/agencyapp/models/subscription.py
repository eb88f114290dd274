"""
Subscription model.

A row is written each time a mobile-money payment completes. Renewals add
new rows, so a user may have many; the latest end_date decides access.
"""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Index, Integer, Numeric, String

from agencyapp.db_base import Base
from agencyapp.models.base import TimestampMixin


class SubscriptionStatus(str, PyEnum):
    """Subscription status values."""
    ACTIVE = "active"
    CANCELLED = "cancelled"


class Subscription(Base, TimestampMixin):
    """Paid subscription period for an agent."""

    __tablename__ = "subscriptions"

    id = Column(
        String(255),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    user_id = Column(String(255), nullable=False, index=True)

    plan_name = Column(String(64), nullable=False)
    duration_months = Column(Integer, nullable=False)
    amount_paid = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(8), nullable=False, default="GHS")

    phone_number = Column(String(32), nullable=True)
    provider = Column(String(32), nullable=True)
    transaction_id = Column(String(255), nullable=False, unique=True)

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)

    status = Column(String(32), nullable=False, default=SubscriptionStatus.ACTIVE.value)

    __table_args__ = (
        Index("ix_subscriptions_user_end_date", "user_id", "end_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Subscription(id={self.id}, user_id={self.user_id}, "
            f"end_date={self.end_date}, status={self.status})>"
        )
