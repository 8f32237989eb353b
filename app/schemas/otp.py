"""
app/schemas/otp.py

Purpose: OTP request/response schemas

- camelCase on the wire, snake_case in Python
- Required fields are optional here so the service can answer with
  its own error codes (MISSING_PHONE, MISSING_OTP) instead of a 422
"""

from pydantic import BaseModel, Field
from typing import Optional


class SendOtpRequest(BaseModel):
    phone_number: Optional[str] = Field(None, alias="phoneNumber", description="Destination phone number")
    message: Optional[str] = Field(
        None,
        description="Custom message; the first {otp} is replaced with the code"
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "phoneNumber": "9876543210",
                "message": "Your login code is {otp}"
            }
        }


class SendOtpResponse(BaseModel):
    message: str
    otp_id: str = Field(..., alias="otpId")
    phone_number: str = Field(..., alias="phoneNumber")
    expires_in: str = Field(..., alias="expiresIn")

    class Config:
        populate_by_name = True


class VerifyOtpRequest(BaseModel):
    otp_id: Optional[str] = Field(None, alias="otpId")
    otp: Optional[str] = None
    phone_number: Optional[str] = Field(None, alias="phoneNumber")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "otpId": "otp_5f1c0e8a9b4d4c7e8f0a1b2c3d4e5f60",
                "otp": "123456"
            }
        }


class VerifyOtpResponse(BaseModel):
    message: str
    verified: bool
    phone_number: str = Field(..., alias="phoneNumber")
    verified_at: str = Field(..., alias="verifiedAt")

    class Config:
        populate_by_name = True


class WhatsAppSummary(BaseModel):
    connected: bool
    qr_available: bool = Field(..., alias="qrAvailable")

    class Config:
        populate_by_name = True


class OtpStatsSummary(BaseModel):
    active_otps: int = Field(..., alias="activeOTPs")
    total_otps: int = Field(..., alias="totalOTPs")

    class Config:
        populate_by_name = True


class ServiceStatusResponse(BaseModel):
    service: str
    status: str
    whatsapp: WhatsAppSummary
    stats: OtpStatsSummary
    timestamp: str
