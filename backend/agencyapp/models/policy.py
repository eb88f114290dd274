"""
Policy model - an insurance policy an agent sold to one of their clients.

Commission is stored alongside the premium so reports do not need to
recompute it when rates change.
"""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, Date, ForeignKey, Index, Numeric, String, UniqueConstraint

from agencyapp.db_base import Base
from agencyapp.models.base import TimestampMixin


class PolicyType(str, PyEnum):
    """Lines of business an agent can write."""
    MOTOR = "Motor"
    FIRE_AND_BURGLARY = "Fire and Burglary"
    TRAVEL = "Travel"
    PERFORMANCE_BOND = "Performance Bond"
    MARINE = "Marine"
    AVIATION = "Aviation"
    HEALTH = "Health"
    LIFE = "Life"
    PROPERTY = "Property"
    LIABILITY = "Liability"
    OTHER = "Other"


class Policy(Base, TimestampMixin):
    """Insurance policy, scoped to the agent who created it."""

    __tablename__ = "policies"

    id = Column(
        String(255),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    created_by = Column(String(255), nullable=False, index=True)
    client_id = Column(
        String(255),
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    policy_number = Column(String(64), nullable=False, comment="POL-XXXXXX-NNN unless the agent supplies one")
    policy_type = Column(String(64), nullable=False)

    premium = Column(Numeric(12, 2), nullable=False, comment="GHS")
    commission_rate = Column(Numeric(5, 2), nullable=False, comment="Percent, 0-100")
    commission_amount = Column(Numeric(12, 2), nullable=False, comment="premium * rate / 100")

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    __table_args__ = (
        UniqueConstraint("created_by", "policy_number", name="uq_policies_agent_number"),
        Index("ix_policies_agent_end_date", "created_by", "end_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Policy(id={self.id}, policy_number={self.policy_number}, "
            f"client_id={self.client_id})>"
        )
