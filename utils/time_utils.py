"""
utils/time_utils.py

Purpose: Time and expiry helpers

- Single clock used by the OTP store and service
- OTP expiry calculations
- Timestamp formatting for API responses
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """
    Returns the current time as a timezone-aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def calculate_otp_expiry(created_at: datetime, validity_seconds: int = 300) -> datetime:
    """
    Calculates OTP expiry timestamp.
    """
    return created_at + timedelta(seconds=validity_seconds)


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """
    Formats a datetime as ISO-8601 with millisecond precision and a Z suffix.
    """
    if not dt:
        return None
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_duration(seconds: int) -> str:
    """
    Human-readable duration used in responses and messages.

    300 -> "5 minutes", 60 -> "1 minute", 90 -> "90 seconds"
    """
    if seconds % 60 == 0:
        minutes = seconds // 60
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} second" if seconds == 1 else f"{seconds} seconds"
