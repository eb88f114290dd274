"""
Subscription API routes.

All routes require an authenticated session but NOT an active trial or
subscription: a blocked agent must still be able to pay.
user_id is NEVER accepted from the request body.
"""

import logging
from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from agencyapp.access.loader import trial_from_profile
from agencyapp.access.models import Identity, TrialRecord, ensure_utc
from agencyapp.access.policy import days_until
from agencyapp.api.dependencies.request_db import get_request_db_session
from agencyapp.platform.errors import ValidationError
from agencyapp.platform.session import get_identity
from agencyapp.services.subscription_service import (
    SubscriptionService,
    is_subscription_active,
    quote_subscription,
    remaining_days,
)
from agencyapp.utils.phone import format_phone_number, to_paystack_msisdn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscription", tags=["subscription"])

MobileMoneyProvider = Literal["mtn", "airtel", "vodafone"]


# Request/Response Models

class QuoteRequest(BaseModel):
    """Request to price a subscription."""
    duration_months: int = Field(..., description="Duration in months (1-24)")
    phone_number: Optional[str] = Field(None, description="Local mobile money number, 0XXXXXXXXX")


class QuoteResponse(BaseModel):
    """Subscription price breakdown."""
    duration_months: int
    plan_name: str
    cost_per_month: int
    total: int
    savings: int
    currency: str
    amount_minor_units: int
    msisdn: Optional[str] = None


class RecordSubscriptionRequest(BaseModel):
    """A completed mobile-money payment reported by the client."""
    duration_months: int = Field(..., description="Paid duration in months (1-24)")
    phone_number: str = Field(..., description="Local mobile money number, 0XXXXXXXXX")
    provider: MobileMoneyProvider = Field("mtn", description="Mobile money provider")
    transaction_reference: str = Field(..., description="Payment gateway reference")


class SubscriptionResponse(BaseModel):
    """Subscription details response."""
    id: str
    plan_name: str
    duration_months: int
    amount_paid: float
    currency: str
    phone_number: Optional[str]
    start_date: datetime
    end_date: datetime
    status: str
    is_active: bool
    remaining_days: int


class TrialInfoResponse(BaseModel):
    """Trial window shown on the subscription page."""
    days_left: int
    trial_end_date: datetime
    is_default: bool


class SubscriptionOverviewResponse(BaseModel):
    """Current subscription (if any) plus trial status."""
    subscription: Optional[SubscriptionResponse]
    trial: TrialInfoResponse


def _to_response(subscription, now: datetime) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=subscription.id,
        plan_name=subscription.plan_name,
        duration_months=subscription.duration_months,
        amount_paid=float(subscription.amount_paid),
        currency=subscription.currency,
        phone_number=format_phone_number(subscription.phone_number or "") or None,
        start_date=ensure_utc(subscription.start_date),
        end_date=ensure_utc(subscription.end_date),
        status=subscription.status,
        is_active=is_subscription_active(subscription, now),
        remaining_days=remaining_days(subscription, now),
    )


@router.get("", response_model=SubscriptionOverviewResponse)
async def get_subscription_overview(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_request_db_session),
):
    """
    Get the agent's latest subscription and trial status.

    A missing profile shows the default 14-day trial.
    """
    now = datetime.now(timezone.utc)
    service = SubscriptionService(db)

    subscription = service.get_current_subscription(identity.user_id)
    trial = trial_from_profile(service.get_profile(identity.user_id))
    is_default = trial is None
    if trial is None:
        trial = TrialRecord.default(now)

    return SubscriptionOverviewResponse(
        subscription=_to_response(subscription, now) if subscription else None,
        trial=TrialInfoResponse(
            days_left=days_until(trial.trial_end, now),
            trial_end_date=trial.trial_end,
            is_default=is_default,
        ),
    )


@router.post("/quote", response_model=QuoteResponse)
async def create_quote(
    quote_request: QuoteRequest,
    identity: Identity = Depends(get_identity),
):
    """
    Price a subscription duration, including bundle savings.

    When a phone number is given, the international form the payment
    gateway expects is returned as msisdn.
    """
    quote = quote_subscription(quote_request.duration_months)

    msisdn = None
    if quote_request.phone_number:
        try:
            msisdn = to_paystack_msisdn(quote_request.phone_number)
        except ValueError as e:
            raise ValidationError(str(e), details={"field": "phone_number"})

    return QuoteResponse(
        msisdn=msisdn,
        duration_months=quote.months,
        plan_name=quote.plan_name,
        cost_per_month=quote.cost_per_month,
        total=quote.total,
        savings=quote.savings,
        currency=quote.currency,
        amount_minor_units=quote.amount_minor_units,
    )


@router.post("", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
async def record_subscription(
    subscription_request: RecordSubscriptionRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_request_db_session),
):
    """
    Record a completed payment as a new subscription period.

    The period starts now and runs for the paid number of calendar months.
    """
    now = datetime.now(timezone.utc)

    logger.info("Recording subscription payment", extra={
        "user_id": identity.user_id,
        "duration_months": subscription_request.duration_months,
        "provider": subscription_request.provider,
    })

    subscription = SubscriptionService(db).record_subscription(
        user_id=identity.user_id,
        months=subscription_request.duration_months,
        phone_number=subscription_request.phone_number,
        provider=subscription_request.provider,
        transaction_reference=subscription_request.transaction_reference,
        now=now,
    )

    return _to_response(subscription, now)
