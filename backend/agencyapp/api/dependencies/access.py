"""
Access guard for protected routes.

Runs on every protected request:
1. identity from the session token (401 -> /login)
2. inactivity check, inside get_identity (401 SESSION_EXPIRED -> /login)
3. trial / subscription evaluation
   - BLOCK: 402 TRIAL_EXPIRED -> /dashboard/subscription
   - WARN:  request proceeds with X-Trial-Warning / X-Trial-Days-Left headers
   - ALLOW: request proceeds

Usage:
    @router.get("/api/clients")
    async def list_clients(ctx: AccessContext = Depends(require_access)):
        ...
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from agencyapp.access.loader import AccessRecordLoader
from agencyapp.access.models import AccessDecision, AccessRecords, Identity, Verdict
from agencyapp.access.policy import evaluate_access
from agencyapp.api.dependencies.request_db import get_request_db_session
from agencyapp.monitoring.access_alerts import record_block_and_alert
from agencyapp.platform.errors import PaymentRequiredError
from agencyapp.platform.session import get_identity
from agencyapp.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

TRIAL_WARNING_HEADER = "X-Trial-Warning"
TRIAL_DAYS_LEFT_HEADER = "X-Trial-Days-Left"


@dataclass(frozen=True)
class AccessContext:
    """Identity and access decision for the current request."""
    identity: Identity
    decision: AccessDecision
    records: AccessRecords


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def evaluate_for_identity(identity: Identity, db: Session) -> AccessContext:
    """Load records for the identity and evaluate access at the current time."""
    records = AccessRecordLoader(db).load(identity.user_id)
    decision = evaluate_access(utc_now(), records.trial, records.subscriptions)

    if records.degraded:
        logger.warning(
            "Access evaluated with default trial after fetch failure",
            extra={"user_id": identity.user_id, "verdict": decision.verdict.value},
        )

    if decision.has_active_subscription and records.profile_exists and not records.profile_subscribed:
        SubscriptionService(db).sync_profile_flag(identity.user_id)

    return AccessContext(identity=identity, decision=decision, records=records)


def apply_decision(decision: AccessDecision, identity: Identity, request: Request, response: Response) -> None:
    """Act on a decision: raise on BLOCK, add warning headers on WARN."""
    if decision.verdict == Verdict.BLOCK:
        record_block_and_alert(identity.user_id, request.url.path)
        logger.warning(
            "Access blocked: trial expired",
            extra={"user_id": identity.user_id, "path": request.url.path},
        )
        raise PaymentRequiredError(
            message="Your 14-day free trial has ended. Please subscribe to continue using the app.",
            details=decision.to_dict(),
            code="TRIAL_EXPIRED",
        )

    if decision.verdict == Verdict.WARN:
        response.headers[TRIAL_WARNING_HEADER] = "trial_ending"
        response.headers[TRIAL_DAYS_LEFT_HEADER] = str(decision.days_left_in_trial)


def get_access_context(
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_request_db_session),
) -> AccessContext:
    """Evaluate access without enforcing it (for billing and status routes)."""
    return evaluate_for_identity(identity, db)


def require_access(
    request: Request,
    response: Response,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_request_db_session),
) -> AccessContext:
    """FastAPI dependency that enforces the access policy on a protected route."""
    context = evaluate_for_identity(identity, db)
    apply_decision(context.decision, identity, request, response)
    return context
