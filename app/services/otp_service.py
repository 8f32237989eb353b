"""
app/services/otp_service.py

Purpose: OTP issue and verification workflow

- Generates 6-digit codes and renders the WhatsApp message
- Sends first, stores second: a code is only valid if it was delivered
- Resolves verification requests by OTP id or by phone number
- Exposes counters for the status endpoint
"""

import random
import uuid
from typing import Optional

from app.core.config import settings
from app.core.exceptions import (
    MissingIdentifierError,
    MissingOtpError,
    MissingPhoneError,
    NotConnectedError,
    OtpNotFoundError,
    OtpServiceError,
)
from app.core.logging import get_logger, LogContext
from app.models.otp_record import IssuedOtp, OtpRecord, OtpStats, VerifiedOtp
from app.services.otp_store import OtpStore
from app.whatsapp.manager import ConnectionManager
from utils.constants import DEFAULT_OTP_TEMPLATE, OTP_PLACEHOLDER
from utils.phone_utils import mask_phone, normalize_address
from utils.time_utils import Clock, calculate_otp_expiry, format_duration, utcnow

logger = get_logger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999


class OtpService:
    """Coordinates the OTP store and the WhatsApp connection."""

    def __init__(
        self,
        store: OtpStore,
        connection: ConnectionManager,
        clock: Clock = utcnow,
        rng: Optional[random.Random] = None,
        expiry_seconds: Optional[int] = None,
    ):
        self.store = store
        self.connection = connection
        self._clock = clock
        self._rng = rng or random.SystemRandom()
        self.expiry_seconds = expiry_seconds or settings.OTP_EXPIRY_SECONDS

    def generate_code(self) -> str:
        return str(self._rng.randint(OTP_MIN, OTP_MAX))

    def render_message(self, code: str, message_template: Optional[str] = None) -> str:
        """
        Builds the WhatsApp message text.

        Only the first {otp} in a custom template is replaced.
        """
        if message_template:
            return message_template.replace(OTP_PLACEHOLDER, code, 1)

        template = DEFAULT_OTP_TEMPLATE.replace("{expiry}", format_duration(self.expiry_seconds))
        return template.replace(OTP_PLACEHOLDER, code, 1)

    async def issue_otp(self, phone_number: Optional[str], message_template: Optional[str] = None) -> IssuedOtp:
        """
        Sends a new OTP to a phone number over WhatsApp.

        Raises:
            MissingPhoneError: phone_number is empty
            NotConnectedError: WhatsApp session is not ready
            DeliveryFailedError: WhatsApp did not accept the message
        """
        if not phone_number or not phone_number.strip():
            raise MissingPhoneError()

        if not self.connection.is_ready:
            raise NotConnectedError()

        code = self.generate_code()
        otp_id = f"otp_{uuid.uuid4().hex}"
        address = normalize_address(phone_number)

        # Nothing is stored unless the message went out
        await self.connection.send(address, self.render_message(code, message_template))

        created_at = self._clock()
        record = OtpRecord(
            id=otp_id,
            phone_number=phone_number,
            subject_address=address,
            code=code,
            created_at=created_at,
            expires_at=calculate_otp_expiry(created_at, self.expiry_seconds),
        )
        await self.store.put(record)

        # LogContext swaps the global record factory, so it never spans an await
        with LogContext(otp_id=otp_id, phone=mask_phone(address)):
            logger.info("✅ OTP sent")

        return IssuedOtp(
            otp_id=otp_id,
            phone_number=phone_number,
            subject_address=address,
            expires_in_seconds=self.expiry_seconds,
        )

    async def verify_otp(
        self,
        code: Optional[str],
        otp_id: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> VerifiedOtp:
        """
        Checks a submitted code and consumes the OTP on success.

        otp_id wins when both identifiers are given. By phone number, the
        most recent unconsumed OTP for that number is checked.

        Raises:
            MissingOtpError, MissingIdentifierError, OtpNotFoundError,
            OtpExpiredError, OtpAlreadyVerifiedError, InvalidOtpError
        """
        if not code:
            raise MissingOtpError()

        if not otp_id and not phone_number:
            raise MissingIdentifierError()

        if otp_id:
            record = await self.store.get(otp_id)
        else:
            record = await self.store.find_latest_pending_for_address(normalize_address(phone_number))

        if record is None:
            raise OtpNotFoundError()

        try:
            verified = await self.store.consume(record.id, code, self._clock())
        except OtpServiceError as e:
            with LogContext(otp_id=record.id, phone=mask_phone(record.subject_address)):
                logger.info(f"OTP rejected: {e.code}")
            raise

        with LogContext(otp_id=verified.otp_id, phone=mask_phone(verified.subject_address)):
            logger.info("🔓 OTP verified")
        return verified

    async def stats(self) -> OtpStats:
        return OtpStats(
            active=await self.store.active_count(self._clock()),
            total=await self.store.total_count(),
        )
