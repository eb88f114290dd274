"""
Client model - an insurance customer owned by an agent.
"""

import uuid

from sqlalchemy import Column, String, Text

from agencyapp.db_base import Base
from agencyapp.models.base import TimestampMixin


class Client(Base, TimestampMixin):
    """Insurance client record, scoped to the agent who created it."""

    __tablename__ = "clients"

    id = Column(
        String(255),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    created_by = Column(String(255), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone_number = Column(String(32), nullable=True)
    address = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, created_by={self.created_by})>"
