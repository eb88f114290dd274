"""
Utility modules for the agency CRM backend.

This package contains shared utilities used across the application.
"""

from agencyapp.utils.phone import (
    format_phone_for_sms,
    format_phone_number,
    is_valid_momo_number,
    to_paystack_msisdn,
)

__all__ = [
    "format_phone_for_sms",
    "format_phone_number",
    "is_valid_momo_number",
    "to_paystack_msisdn",
]
