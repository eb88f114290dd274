"""
Ghana phone number helpers for mobile-money payments and SMS.
"""

import re

GHANA_COUNTRY_CODE = "233"

# Local mobile-money format: 10 digits starting with 0
_LOCAL_NUMBER = re.compile(r"^0\d{9}$")
_NINE_DIGITS = re.compile(r"^\d{9}$")
_DISPLAY = re.compile(r"^(\+233)(\d{2})(\d{3})(\d{4})$")
_NON_DIGITS = re.compile(r"[^\d+]")
_HAS_DIGIT = re.compile(r"\d")


def is_valid_momo_number(number: str) -> bool:
    """True if number is a local Ghanaian mobile number (0XXXXXXXXX)."""
    return bool(number) and _LOCAL_NUMBER.match(number) is not None


def to_paystack_msisdn(number: str) -> str:
    """
    Convert a local number to the international form Paystack expects.

    0241234567 -> 233241234567

    Raises:
        ValueError: If number is not a valid local mobile number
    """
    if not is_valid_momo_number(number):
        raise ValueError("Please enter a valid Ghanaian phone number (10 digits starting with 0)")
    return GHANA_COUNTRY_CODE + number[1:]


def _with_country_code(cleaned: str) -> str:
    if cleaned.startswith("+233"):
        return cleaned
    if cleaned.startswith("0"):
        return "+233" + cleaned[1:]
    if _NINE_DIGITS.match(cleaned):
        return "+233" + cleaned
    return ""


def format_phone_number(phone: str) -> str:
    """Format a number for display as +233 XX XXX XXXX; unknown shapes are returned as given."""
    if not phone:
        return ""
    cleaned = _NON_DIGITS.sub("", phone)
    international = _with_country_code(cleaned)
    match = _DISPLAY.match(international)
    if not match:
        return phone
    return " ".join(match.groups())


def format_phone_for_sms(phone: str) -> str:
    """
    Normalize a number to +233XXXXXXXXX for SMS delivery.

    Returns "" when the input has no digits at all ("n/a", "-", "+").
    """
    if not phone:
        return ""
    cleaned = _NON_DIGITS.sub("", phone)
    if not _HAS_DIGIT.search(cleaned):
        return ""
    international = _with_country_code(cleaned)
    if international:
        return international
    if cleaned.startswith("+"):
        return cleaned
    return "+233" + cleaned
