"""
app/api/otp.py

Purpose: OTP endpoints

- Sends an OTP to a phone number over WhatsApp
- Verifies a submitted OTP (by otpId or by phone number)
- Service status with OTP counters
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_otp_service
from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.otp import (
    OtpStatsSummary,
    SendOtpRequest,
    SendOtpResponse,
    ServiceStatusResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
    WhatsAppSummary,
)
from app.services.otp_service import OtpService
from utils.constants import MSG_OTP_SENT, MSG_OTP_VERIFIED, SERVICE_STATUS_RUNNING
from utils.time_utils import format_duration, format_timestamp, utcnow

logger = get_logger(__name__)
router = APIRouter()


@router.post("/send-otp", response_model=SendOtpResponse)
async def send_otp(body: SendOtpRequest, service: OtpService = Depends(get_otp_service)):
    issued = await service.issue_otp(body.phone_number, body.message)

    return SendOtpResponse(
        message=MSG_OTP_SENT,
        otp_id=issued.otp_id,
        phone_number=issued.phone_number,
        expires_in=format_duration(issued.expires_in_seconds)
    )


@router.post("/verify-otp", response_model=VerifyOtpResponse)
async def verify_otp(body: VerifyOtpRequest, service: OtpService = Depends(get_otp_service)):
    verified = await service.verify_otp(
        code=body.otp,
        otp_id=body.otp_id,
        phone_number=body.phone_number
    )

    return VerifyOtpResponse(
        message=MSG_OTP_VERIFIED,
        verified=True,
        phone_number=verified.phone_number,
        verified_at=format_timestamp(verified.verified_at)
    )


@router.get("/status", response_model=ServiceStatusResponse)
async def service_status(service: OtpService = Depends(get_otp_service)):
    session = service.connection.status()
    stats = await service.stats()

    return ServiceStatusResponse(
        service=settings.SERVICE_NAME,
        status=SERVICE_STATUS_RUNNING,
        whatsapp=WhatsAppSummary(connected=session.connected, qr_available=session.qr_available),
        stats=OtpStatsSummary(active_otps=stats.active, total_otps=stats.total),
        timestamp=format_timestamp(utcnow())
    )
