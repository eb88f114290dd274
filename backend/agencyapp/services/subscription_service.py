"""
Subscription service - pricing, recording completed payments and status.

The mobile-money checkout itself runs in the browser; this service is told
about a completed transaction and records the paid period.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from agencyapp.access.models import ensure_utc
from agencyapp.access.policy import days_until
from agencyapp.config.pricing import (
    BUNDLE_PRICES,
    COST_PER_MONTH,
    CURRENCY,
    MAX_DURATION_MONTHS,
    MIN_DURATION_MONTHS,
    MINOR_UNITS_PER_CEDI,
    MOBILE_MONEY_PROVIDERS,
    get_plan_name,
)
from agencyapp.models.profile import Profile
from agencyapp.models.subscription import Subscription, SubscriptionStatus
from agencyapp.platform.errors import ConflictError, ValidationError
from agencyapp.services.trial_service import build_trial_profile
from agencyapp.utils.phone import is_valid_momo_number

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriptionQuote:
    """Price for a subscription duration."""
    months: int
    plan_name: str
    cost_per_month: int
    total: int
    savings: int
    currency: str = CURRENCY

    @property
    def amount_minor_units(self) -> int:
        """Total in pesewas, as charged by the payment gateway."""
        return self.total * MINOR_UNITS_PER_CEDI


def quote_subscription(months: int) -> SubscriptionQuote:
    """
    Price a subscription of the given length.

    Raises:
        ValidationError: If months is outside 1..24
    """
    if not MIN_DURATION_MONTHS <= months <= MAX_DURATION_MONTHS:
        raise ValidationError(
            f"Subscription duration must be between {MIN_DURATION_MONTHS} and {MAX_DURATION_MONTHS} months",
            details={"field": "duration_months", "value": months},
        )

    list_price = COST_PER_MONTH * months
    total = BUNDLE_PRICES.get(months, list_price)
    return SubscriptionQuote(
        months=months,
        plan_name=get_plan_name(months),
        cost_per_month=COST_PER_MONTH,
        total=total,
        savings=list_price - total,
    )


def add_months(start: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def remaining_days(subscription: Optional[Subscription], now: datetime) -> int:
    """Days left on a subscription, rounded up; 0 when none or ended."""
    if subscription is None:
        return 0
    return days_until(subscription.end_date, now)


def is_subscription_active(subscription: Optional[Subscription], now: datetime) -> bool:
    if subscription is None:
        return False
    return ensure_utc(subscription.end_date) > ensure_utc(now)


class SubscriptionService:
    """Records and reads paid subscriptions for an agent."""

    def __init__(self, db: Session):
        self.db = db

    def get_current_subscription(self, user_id: str) -> Optional[Subscription]:
        """Return the most recently created subscription for the user."""
        return (
            self.db.query(Subscription)
            .filter(Subscription.user_id == user_id)
            .order_by(Subscription.created_at.desc(), Subscription.start_date.desc())
            .first()
        )

    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self.db.query(Profile).filter(Profile.id == user_id).first()

    def record_subscription(
        self,
        user_id: str,
        months: int,
        phone_number: str,
        provider: str,
        transaction_reference: str,
        now: datetime,
    ) -> Subscription:
        """
        Record a completed mobile-money payment as a subscription period.

        Args:
            user_id: Authenticated user id
            months: Paid duration (1..24)
            phone_number: Local mobile-money number used to pay
            provider: Mobile-money provider (mtn, airtel, vodafone)
            transaction_reference: Gateway transaction reference
            now: Payment completion time; the period starts here

        Returns:
            The stored Subscription

        Raises:
            ValidationError: Invalid duration, phone number or provider
            ConflictError: The transaction reference was already recorded
        """
        quote = quote_subscription(months)

        if not is_valid_momo_number(phone_number):
            raise ValidationError(
                "Please enter a valid Ghanaian phone number (10 digits starting with 0)",
                details={"field": "phone_number"},
            )
        if provider not in MOBILE_MONEY_PROVIDERS:
            raise ValidationError(
                f"Unsupported mobile money provider '{provider}'",
                details={"field": "provider", "allowed": list(MOBILE_MONEY_PROVIDERS)},
            )
        if not transaction_reference or not transaction_reference.strip():
            raise ValidationError("Transaction reference is required", details={"field": "transaction_reference"})

        start = ensure_utc(now)
        subscription = Subscription(
            user_id=user_id,
            plan_name=quote.plan_name,
            duration_months=months,
            amount_paid=Decimal(quote.total),
            currency=quote.currency,
            phone_number=phone_number,
            provider=provider,
            transaction_id=transaction_reference.strip(),
            start_date=start,
            end_date=add_months(start, months),
            status=SubscriptionStatus.ACTIVE.value,
        )

        try:
            self.db.add(subscription)
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            logger.warning(
                "Duplicate subscription transaction",
                extra={"user_id": user_id, "transaction_id": transaction_reference},
            )
            raise ConflictError(
                "This payment has already been recorded",
                details={"transaction_reference": transaction_reference},
            )

        self._mark_profile_subscribed(user_id, start)
        self.db.commit()

        logger.info(
            "Subscription recorded",
            extra={
                "user_id": user_id,
                "subscription_id": subscription.id,
                "plan_name": subscription.plan_name,
                "amount_paid": quote.total,
                "end_date": subscription.end_date.isoformat(),
            },
        )
        return subscription

    def _mark_profile_subscribed(self, user_id: str, now: datetime) -> None:
        profile = self.get_profile(user_id)
        if profile is None:
            # Signup never wrote a profile; create one so the flag has a home
            self.db.add(build_trial_profile(user_id, now, has_active_subscription=True))
        else:
            profile.has_active_subscription = True
        self.db.flush()

    def sync_profile_flag(self, user_id: str) -> bool:
        """
        Set profiles.has_active_subscription for a user whose subscription is active.

        Returns:
            True if the flag was written; False if the update failed
        """
        try:
            profile = self.get_profile(user_id)
            if profile is None or profile.has_active_subscription:
                return False
            profile.has_active_subscription = True
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(
                "Failed to update subscription flag on profile",
                extra={"user_id": user_id, "error": str(e)},
            )
            return False
        return True
