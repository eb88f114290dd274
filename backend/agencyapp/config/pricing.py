"""
Subscription pricing configuration.

CRM Premium is billed in Ghana cedis (GHS) for 1 to 24 months at a time.
The 12 and 24 month bundles are discounted (2 and 4 months free).
"""

from typing import Dict

CURRENCY = "GHS"

COST_PER_MONTH = 10

MIN_DURATION_MONTHS = 1
MAX_DURATION_MONTHS = 24

# Flat bundle prices that override COST_PER_MONTH * months
BUNDLE_PRICES: Dict[int, int] = {
    12: 100,
    24: 200,
}

PLAN_NAMES: Dict[int, str] = {
    1: "Monthly",
    12: "Annual",
    24: "Biennial",
}

# Paystack amounts are in the minor unit (pesewas)
MINOR_UNITS_PER_CEDI = 100

MOBILE_MONEY_PROVIDERS = ("mtn", "airtel", "vodafone")


def get_plan_name(months: int) -> str:
    """Return the display name for a subscription duration."""
    return PLAN_NAMES.get(months, f"{months}-Month")
