"""Configuration module for backend services."""

from agencyapp.config.access import (
    INACTIVITY_TIMEOUT_SECONDS,
    LOGIN_REDIRECT,
    SUBSCRIPTION_REDIRECT,
    TRIAL_LENGTH_DAYS,
    WARNING_THRESHOLD_DAYS,
    is_inactivity_logout_enabled,
)
from agencyapp.config.pricing import (
    BUNDLE_PRICES,
    COST_PER_MONTH,
    CURRENCY,
    MAX_DURATION_MONTHS,
    MIN_DURATION_MONTHS,
    MOBILE_MONEY_PROVIDERS,
    get_plan_name,
)

__all__ = [
    "INACTIVITY_TIMEOUT_SECONDS",
    "LOGIN_REDIRECT",
    "SUBSCRIPTION_REDIRECT",
    "TRIAL_LENGTH_DAYS",
    "WARNING_THRESHOLD_DAYS",
    "is_inactivity_logout_enabled",
    "BUNDLE_PRICES",
    "COST_PER_MONTH",
    "CURRENCY",
    "MAX_DURATION_MONTHS",
    "MIN_DURATION_MONTHS",
    "MOBILE_MONEY_PROVIDERS",
    "get_plan_name",
]
