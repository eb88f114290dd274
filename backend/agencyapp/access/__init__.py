"""
Trial and subscription access control.

This module provides:
- evaluate_access: pure ALLOW / WARN / BLOCK decision
- TrialRecord, SubscriptionRecord, AccessDecision: typed records
- AccessRecordLoader: fetch and validate records from the database

Trial length: 14 days. Warning window: last 3 days.
"""

from agencyapp.access.models import (
    AccessDecision,
    AccessRecords,
    Identity,
    SubscriptionRecord,
    TrialRecord,
    Verdict,
    ensure_utc,
)
from agencyapp.access.policy import days_until, evaluate_access, latest_subscription
from agencyapp.access.loader import AccessRecordLoader

__all__ = [
    # Records
    "AccessDecision",
    "AccessRecords",
    "Identity",
    "SubscriptionRecord",
    "TrialRecord",
    "Verdict",
    "ensure_utc",
    # Policy
    "days_until",
    "evaluate_access",
    "latest_subscription",
    # Loader
    "AccessRecordLoader",
]
