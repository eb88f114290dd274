"""
Claim service - claims filed by an agent for their own clients.
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy.orm import Session

from agencyapp.models.claim import Claim, ClaimType
from agencyapp.platform.errors import ValidationError
from agencyapp.services.client_service import ClientService

logger = logging.getLogger(__name__)

CLAIM_TYPES = tuple(t.value for t in ClaimType)


class ClaimService:
    """Reads and writes claims owned by one agent."""

    def __init__(self, db: Session, user_id: str):
        if not user_id:
            raise ValueError("user_id is required")
        self.db = db
        self.user_id = user_id

    def list_claims(self, client_id: str, limit: int = 100, offset: int = 0) -> List[Claim]:
        """Claims for one of the agent's clients, newest first."""
        client = ClientService(self.db, self.user_id).get_client(client_id)
        return (
            self.db.query(Claim)
            .filter(Claim.client_id == client.id, Claim.created_by == self.user_id)
            .order_by(Claim.created_at.desc(), Claim.claim_date.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def create_claim(
        self,
        client_id: str,
        claim_type: str,
        claim_date: date,
        location: str,
        description: str,
        amount,
    ) -> Claim:
        """
        File a claim for one of the agent's clients.

        Raises:
            NotFoundError: The client does not belong to the agent
            ValidationError: Unknown claim type, blank location or
                description, or a non-positive amount
        """
        client = ClientService(self.db, self.user_id).get_client(client_id)

        if claim_type not in CLAIM_TYPES:
            raise ValidationError(
                f"Unsupported claim type '{claim_type}'",
                details={"field": "claim_type", "allowed": list(CLAIM_TYPES)},
            )

        location = (location or "").strip()
        if not location:
            raise ValidationError("Location is required", details={"field": "location"})
        description = (description or "").strip()
        if not description:
            raise ValidationError("Description is required", details={"field": "description"})

        value = _positive_amount(amount)

        claim = Claim(
            created_by=self.user_id,
            client_id=client.id,
            claim_type=claim_type,
            claim_date=claim_date,
            location=location,
            description=description,
            amount=value,
        )
        self.db.add(claim)
        self.db.commit()

        logger.info(
            "Claim filed",
            extra={"user_id": self.user_id, "claim_id": claim.id, "client_id": client.id, "claim_type": claim_type},
        )
        return claim


def _positive_amount(amount) -> Decimal:
    try:
        value: Optional[Decimal] = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        value = None
    if value is None or not value.is_finite() or value <= 0:
        raise ValidationError("Please enter a valid amount", details={"field": "amount"})
    return value.quantize(Decimal("0.01"))
