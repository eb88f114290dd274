"""Shared column mixins for ORM models."""

from sqlalchemy import Column, DateTime, func


class TimestampMixin:
    """Adds created_at / updated_at columns maintained by the database."""

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())
