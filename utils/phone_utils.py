"""
utils/phone_utils.py

Purpose: Phone number helpers

- Converts user-supplied phone numbers into WhatsApp chat addresses
- Never rejects input: malformed numbers produce an undeliverable
  address and the failure surfaces at send time
"""

import re
from typing import Optional

from app.core.config import settings

_NON_DIGITS = re.compile(r"\D")


def extract_digits(phone: str) -> str:
    """
    Removes every non-digit character.

    Args:
        phone: Raw phone number ("+91 98765-43210")

    Returns:
        Digits only ("919876543210")
    """
    return _NON_DIGITS.sub("", phone or "")


def normalize_address(
    phone: str,
    country_code: Optional[str] = None,
    suffix: Optional[str] = None
) -> str:
    """
    Converts a phone number into a WhatsApp chat address.

    Exactly ten digits are treated as a national number and get the
    default country code prepended.

    Examples:
        "9876543210"       -> "919876543210@c.us"
        "+91 98765 43210"  -> "919876543210@c.us"
        "+1 (415) 555-0100" -> "14155550100@c.us"
    """
    if country_code is None:
        country_code = settings.DEFAULT_COUNTRY_CODE
    if suffix is None:
        suffix = settings.WHATSAPP_ADDRESS_SUFFIX

    digits = extract_digits(phone)
    if len(digits) == 10:
        digits = country_code + digits

    return digits + suffix


def mask_phone(phone: str) -> str:
    """
    Masks a phone number for logs, keeping the last four digits.
    """
    digits = extract_digits(phone)
    if len(digits) <= 4:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]
