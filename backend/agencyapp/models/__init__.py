"""
Database models for agent profiles, subscriptions and the CRM records.

Client, policy and claim rows are scoped by created_by; profile and
subscription rows by user id.
"""

from agencyapp.models.base import TimestampMixin
from agencyapp.models.profile import Profile
from agencyapp.models.subscription import Subscription, SubscriptionStatus
from agencyapp.models.client import Client
from agencyapp.models.policy import Policy, PolicyType
from agencyapp.models.claim import Claim, ClaimType

__all__ = [
    "TimestampMixin",
    "Profile",
    "Subscription",
    "SubscriptionStatus",
    "Client",
    "Policy",
    "PolicyType",
    "Claim",
    "ClaimType",
]
