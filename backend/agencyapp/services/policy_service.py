"""
Policy service - agent-scoped policies sold to the agent's clients.

A policy can only be attached to a client the agent owns; another agent's
client id is reported as not found, exactly like a missing one.
"""

import logging
import random
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agencyapp.models.policy import Policy, PolicyType
from agencyapp.platform.errors import ConflictError, NotFoundError, ValidationError
from agencyapp.services.client_service import ClientService

logger = logging.getLogger(__name__)

POLICY_TYPES = tuple(t.value for t in PolicyType)
CENTS = Decimal("0.01")

# Generated numbers are retried on collision; agent-supplied ones are not
GENERATED_NUMBER_ATTEMPTS = 3


def generate_policy_number(now: Optional[datetime] = None, rng: Optional[random.Random] = None) -> str:
    """
    Policy number in the POL-XXXXXX-NNN form.

    XXXXXX is the last six digits of the epoch-millisecond clock, NNN a
    zero-padded random number below 1000.
    """
    now = now or datetime.now(timezone.utc)
    rng = rng or random
    millis = str(int(now.timestamp() * 1000))
    return f"POL-{millis[-6:]}-{rng.randint(0, 999):03d}"


def calculate_commission(premium: Decimal, commission_rate: Decimal) -> Decimal:
    """premium * rate / 100, rounded to the pesewa."""
    return (premium * commission_rate / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _to_decimal(value, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", details={"field": field})
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", details={"field": field})
    return amount


class PolicyService:
    """Reads and writes policies owned by one agent."""

    def __init__(self, db: Session, user_id: str):
        if not user_id:
            raise ValueError("user_id is required")
        self.db = db
        self.user_id = user_id

    def list_policies(self, client_id: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[Policy]:
        query = self.db.query(Policy).filter(Policy.created_by == self.user_id)
        if client_id is not None:
            query = query.filter(Policy.client_id == client_id)
        return (
            query
            .order_by(Policy.created_at.desc(), Policy.policy_number)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def get_policy(self, policy_id: str) -> Policy:
        policy = (
            self.db.query(Policy)
            .filter(Policy.id == policy_id, Policy.created_by == self.user_id)
            .first()
        )
        if policy is None:
            raise NotFoundError("Policy", policy_id)
        return policy

    def create_policy(
        self,
        client_id: str,
        policy_type: str,
        premium,
        commission_rate,
        start_date: date,
        end_date: date,
        policy_number: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Policy:
        """
        Create a policy for one of the agent's clients.

        Args:
            client_id: Client the policy covers; must belong to the agent
            policy_type: One of POLICY_TYPES
            premium: Premium in GHS, greater than zero
            commission_rate: Percent between 0 and 100
            start_date: Cover start
            end_date: Cover end; after start_date and in the future
            policy_number: Agent-supplied number; generated when blank
            today: Reference date for the future check (default: UTC today)

        Raises:
            NotFoundError: The client does not belong to the agent
            ValidationError: Any field outside its allowed range
            ConflictError: The agent already has a policy with that number
        """
        today = today or datetime.now(timezone.utc).date()
        client = ClientService(self.db, self.user_id).get_client(client_id)

        if policy_type not in POLICY_TYPES:
            raise ValidationError(
                f"Unsupported policy type '{policy_type}'",
                details={"field": "policy_type", "allowed": list(POLICY_TYPES)},
            )

        premium = _to_decimal(premium, "premium")
        if premium <= 0:
            raise ValidationError("Premium must be a positive number", details={"field": "premium"})

        commission_rate = _to_decimal(commission_rate, "commission_rate")
        if not Decimal(0) <= commission_rate <= Decimal(100):
            raise ValidationError(
                "Commission rate must be between 0 and 100",
                details={"field": "commission_rate"},
            )

        if end_date <= start_date:
            raise ValidationError("End date must be after start date", details={"field": "end_date"})
        if end_date <= today:
            raise ValidationError("End date must be in the future", details={"field": "end_date"})

        supplied = (policy_number or "").strip()
        client_id = client.id
        attempts = 1 if supplied else GENERATED_NUMBER_ATTEMPTS

        for attempt in range(1, attempts + 1):
            number = supplied or generate_policy_number()
            policy = Policy(
                created_by=self.user_id,
                client_id=client_id,
                policy_number=number,
                policy_type=policy_type,
                premium=premium.quantize(CENTS),
                commission_rate=commission_rate,
                commission_amount=calculate_commission(premium, commission_rate),
                start_date=start_date,
                end_date=end_date,
            )
            try:
                self.db.add(policy)
                self.db.commit()
                break
            except IntegrityError:
                self.db.rollback()
                logger.warning(
                    "Policy number already in use",
                    extra={"user_id": self.user_id, "policy_number": number, "attempt": attempt},
                )
        else:
            raise ConflictError(
                "A policy with this number already exists",
                details={"policy_number": number},
            )

        logger.info(
            "Policy created",
            extra={
                "user_id": self.user_id,
                "policy_id": policy.id,
                "client_id": client_id,
                "policy_type": policy_type,
            },
        )
        return policy
