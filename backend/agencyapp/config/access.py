"""
Trial and session policy configuration.

Trial length and warning window are fixed product rules and live in code.
Session inactivity settings are read from the environment.
"""

import os

# Length of the free trial granted at signup (in days)
TRIAL_LENGTH_DAYS = 14

# A trial with this many days or fewer remaining triggers the warning banner
WARNING_THRESHOLD_DAYS = 3

# Where the client is sent when access is blocked / the session is gone
SUBSCRIPTION_REDIRECT = "/dashboard/subscription"
LOGIN_REDIRECT = "/login"

# Inactivity auto-logout (5 minutes by default)
INACTIVITY_TIMEOUT_SECONDS = int(os.getenv("INACTIVITY_TIMEOUT_SECONDS", "300"))


def is_inactivity_logout_enabled() -> bool:
    """Check if inactivity logout is enabled via environment variable."""
    return os.getenv("INACTIVITY_LOGOUT_ENABLED", "true").lower() in ("true", "1", "yes")
