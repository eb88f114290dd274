"""
Profile model holding the per-agent trial window.

One row per authenticated user, keyed by the auth provider's user id.
The trial dates are written once at signup and never changed.
"""

from sqlalchemy import Boolean, Column, DateTime, String

from agencyapp.db_base import Base
from agencyapp.models.base import TimestampMixin


class Profile(Base, TimestampMixin):
    """Agent profile and trial record."""

    __tablename__ = "profiles"

    id = Column(String(255), primary_key=True, comment="Auth provider user id")

    trial_start_date = Column(DateTime(timezone=True), nullable=True)
    trial_end_date = Column(DateTime(timezone=True), nullable=True)

    # Denormalized flag; the subscriptions table is the source of truth
    has_active_subscription = Column(Boolean, nullable=False, default=False)

    full_name = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    company = Column(String(255), nullable=True)
    phone_number = Column(String(32), nullable=True)

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, trial_end_date={self.trial_end_date})>"
