"""
app/models/otp_record.py

Purpose: OTP record model

- One issued code and the number it was sent to
- Expiry window and single-use consumption state
- Owned by OtpStore; everyone else works with copies
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


@dataclass
class OtpRecord:
    id: str
    phone_number: str
    subject_address: str
    code: str
    created_at: datetime
    expires_at: datetime
    consumed: bool = False
    consumed_at: Optional[datetime] = None

    def __post_init__(self):
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be later than created_at")
        if self.consumed and self.consumed_at is None:
            raise ValueError("consumed records need consumed_at")

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def is_pending(self, now: datetime) -> bool:
        """Not yet consumed and still inside its validity window."""
        return not self.consumed and not self.is_expired(now)

    def copy(self) -> "OtpRecord":
        return replace(self)


@dataclass(frozen=True)
class VerifiedOtp:
    """Result of a successful consumption."""
    otp_id: str
    phone_number: str
    subject_address: str
    verified_at: datetime


@dataclass(frozen=True)
class IssuedOtp:
    """Result of a successful issue: the code itself never leaves the service."""
    otp_id: str
    phone_number: str
    subject_address: str
    expires_in_seconds: int


@dataclass(frozen=True)
class OtpStats:
    active: int
    total: int
