"""
Claim model - a loss reported by a client and filed by their agent.
"""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import Column, Date, ForeignKey, Numeric, String, Text

from agencyapp.db_base import Base
from agencyapp.models.base import TimestampMixin


class ClaimType(str, PyEnum):
    MOTOR_ACCIDENT = "Motor Accident"
    FIRE_DAMAGE = "Fire Damage"
    THEFT = "Theft"
    PROPERTY_DAMAGE = "Property Damage"
    MEDICAL = "Medical"
    TRAVEL = "Travel"
    LIABILITY = "Liability"
    OTHER = "Other"


class Claim(Base, TimestampMixin):
    """Claim filed for a client, scoped to the agent who created it."""

    __tablename__ = "claims"

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

    claim_type = Column(String(64), nullable=False)
    claim_date = Column(Date, nullable=False, comment="Date of the incident")
    location = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False, comment="Amount involved, GHS")

    def __repr__(self) -> str:
        return f"<Claim(id={self.id}, client_id={self.client_id}, claim_type={self.claim_type})>"
