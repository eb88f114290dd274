"""
Trial / subscription access policy.

Decides ALLOW, WARN or BLOCK for a user from the current time, the user's
trial record and their subscription records:

- any subscription ending after now: ALLOW, no trial countdown
- trial has days left above the warning threshold: ALLOW
- trial has 1..WARNING_THRESHOLD_DAYS days left: WARN
- trial over: BLOCK

A missing trial record is replaced by a fresh 14-day trial starting now.
The function is pure: callers fetch records beforehand and pass `now` in.
"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from agencyapp.access.models import (
    AccessDecision,
    SubscriptionRecord,
    TrialRecord,
    Verdict,
    ensure_utc,
)
from agencyapp.config.access import WARNING_THRESHOLD_DAYS

ONE_DAY = timedelta(days=1)


def days_until(end: datetime, now: datetime) -> int:
    """
    Whole calendar days from now until end, rounded up, never negative.

    Any partial day counts as a full day, so 36 hours left is 2 days.
    """
    delta = ensure_utc(end) - ensure_utc(now)
    whole, remainder = divmod(delta, ONE_DAY)
    days = whole + (1 if remainder else 0)
    return max(0, days)


def latest_subscription(
    subscriptions: Iterable[SubscriptionRecord],
) -> Optional[SubscriptionRecord]:
    """Return the subscription with the latest end_date, or None."""
    latest = None
    for subscription in subscriptions:
        if latest is None or subscription.end_date > latest.end_date:
            latest = subscription
    return latest


def evaluate_access(
    now: datetime,
    trial: Optional[TrialRecord],
    subscriptions: Iterable[SubscriptionRecord],
) -> AccessDecision:
    """
    Evaluate access for one user.

    Args:
        now: Evaluation time
        trial: Trial record, or None when the user has no trial row
        subscriptions: All subscription records for the user, any order

    Returns:
        AccessDecision
    """
    now = ensure_utc(now)

    latest = latest_subscription(subscriptions)
    if latest is not None and latest.is_active(now):
        return AccessDecision(
            verdict=Verdict.ALLOW,
            days_left_in_trial=None,
            has_active_subscription=True,
        )

    if trial is None:
        trial = TrialRecord.default(now)

    days_left = days_until(trial.trial_end, now)

    if days_left <= 0:
        verdict = Verdict.BLOCK
    elif days_left <= WARNING_THRESHOLD_DAYS:
        verdict = Verdict.WARN
    else:
        verdict = Verdict.ALLOW

    return AccessDecision(
        verdict=verdict,
        days_left_in_trial=days_left,
        has_active_subscription=False,
    )
