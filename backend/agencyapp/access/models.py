from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from agencyapp.config.access import SUBSCRIPTION_REDIRECT, TRIAL_LENGTH_DAYS


class Verdict(str, Enum):
    """Outcome of an access evaluation."""
    ALLOW = "ALLOW"
    WARN = "WARN"
    BLOCK = "BLOCK"


def ensure_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime; naive values are taken as UTC."""
    if not isinstance(value, datetime):
        raise TypeError(f"Expected datetime, got {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Identity:
    """Authenticated user as reported by the session provider."""

    user_id: str
    email: Optional[str] = None
    # Unix time the session token was issued (`iat`), if the token carries one
    issued_at: Optional[float] = None

    def __post_init__(self) -> None:
        user_id = str(self.user_id).strip()
        if not user_id:
            raise ValueError("user_id is required")
        object.__setattr__(self, "user_id", user_id)
        if self.issued_at is not None:
            object.__setattr__(self, "issued_at", float(self.issued_at))


@dataclass(frozen=True)
class TrialRecord:
    """Trial window created at signup."""

    trial_start: datetime
    trial_end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "trial_start", ensure_utc(self.trial_start))
        object.__setattr__(self, "trial_end", ensure_utc(self.trial_end))
        if self.trial_end < self.trial_start:
            raise ValueError("trial_end must not precede trial_start")

    @classmethod
    def default(cls, now: datetime) -> "TrialRecord":
        """Synthetic trial used when no trial row exists for the user."""
        start = ensure_utc(now)
        return cls(trial_start=start, trial_end=start + timedelta(days=TRIAL_LENGTH_DAYS))


@dataclass(frozen=True)
class SubscriptionRecord:
    """A paid subscription period."""

    user_id: str
    start_date: datetime
    end_date: datetime
    amount_paid: Decimal = Decimal("0")
    status: str = "active"

    def __post_init__(self) -> None:
        user_id = str(self.user_id).strip()
        if not user_id:
            raise ValueError("user_id is required")
        object.__setattr__(self, "user_id", user_id)
        object.__setattr__(self, "start_date", ensure_utc(self.start_date))
        object.__setattr__(self, "end_date", ensure_utc(self.end_date))
        object.__setattr__(self, "amount_paid", Decimal(str(self.amount_paid)))

    def is_active(self, now: datetime) -> bool:
        return self.end_date > ensure_utc(now)


@dataclass(frozen=True)
class AccessDecision:
    """Result of evaluate_access. Recomputed per request, never stored."""

    verdict: Verdict
    days_left_in_trial: Optional[int]
    has_active_subscription: bool

    @property
    def redirect_to(self) -> Optional[str]:
        if self.verdict == Verdict.BLOCK:
            return SUBSCRIPTION_REDIRECT
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "days_left_in_trial": self.days_left_in_trial,
            "has_active_subscription": self.has_active_subscription,
            "redirect_to": self.redirect_to,
        }


@dataclass(frozen=True)
class AccessRecords:
    """Trial and subscription records fetched for one user."""

    trial: Optional[TrialRecord] = None
    subscriptions: Tuple[SubscriptionRecord, ...] = ()
    profile_exists: bool = False
    profile_subscribed: bool = False
    # True when the fetch failed and the records are the permissive default
    degraded: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "subscriptions", tuple(self.subscriptions))
