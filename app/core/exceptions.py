from typing import Optional, Any


class OtpServiceError(Exception):
    """
    Base exception for the OTP service.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class NotConnectedError(OtpServiceError):
    """
    Raised when an operation needs a ready WhatsApp session and there is none.
    """
    def __init__(self, message: str = "WhatsApp not connected. Please connect WhatsApp first.", details: Optional[Any] = None):
        super().__init__(message, code="NOT_CONNECTED", status_code=400, details=details)


class DeliveryFailedError(OtpServiceError):
    """
    Raised when the transport could not deliver a message.

    `kind` tells callers why: invalid_address, timeout, transport_error.
    """
    def __init__(self, message: str = "Failed to send OTP via WhatsApp", kind: str = "transport_error", details: Optional[Any] = None):
        self.kind = kind
        super().__init__(message, code="DELIVERY_FAILED", status_code=502, details=details or {"kind": kind})


class ConnectTimeoutError(OtpServiceError):
    """
    Raised when the session produced neither a QR code nor a ready state in time.
    """
    def __init__(self, message: str = "Failed to generate QR code", details: Optional[Any] = None):
        super().__init__(message, code="CONNECT_TIMEOUT", status_code=504, details=details)


class ConnectionFailedError(OtpServiceError):
    """
    Raised when the session failed (auth failure, link dropped) while a caller waited on it.
    """
    def __init__(self, message: str = "Failed to connect WhatsApp", details: Optional[Any] = None):
        super().__init__(message, code="CONNECTION_FAILED", status_code=503, details=details)


class MissingPhoneError(OtpServiceError):
    def __init__(self, message: str = "Phone number is required", details: Optional[Any] = None):
        super().__init__(message, code="MISSING_PHONE", status_code=400, details=details)


class MissingOtpError(OtpServiceError):
    def __init__(self, message: str = "OTP is required", details: Optional[Any] = None):
        super().__init__(message, code="MISSING_OTP", status_code=400, details=details)


class MissingIdentifierError(OtpServiceError):
    def __init__(self, message: str = "otpId or phoneNumber is required", details: Optional[Any] = None):
        super().__init__(message, code="MISSING_IDENTIFIER", status_code=400, details=details)


class OtpNotFoundError(OtpServiceError):
    def __init__(self, message: str = "OTP not found", details: Optional[Any] = None):
        super().__init__(message, code="OTP_NOT_FOUND", status_code=400, details=details)


class OtpExpiredError(OtpServiceError):
    def __init__(self, message: str = "OTP has expired", details: Optional[Any] = None):
        super().__init__(message, code="OTP_EXPIRED", status_code=400, details=details)


class OtpAlreadyVerifiedError(OtpServiceError):
    def __init__(self, message: str = "OTP already verified", details: Optional[Any] = None):
        super().__init__(message, code="OTP_ALREADY_VERIFIED", status_code=400, details=details)


class InvalidOtpError(OtpServiceError):
    def __init__(self, message: str = "Invalid OTP", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_OTP", status_code=400, details=details)


class DuplicateOtpError(OtpServiceError):
    """
    Raised when a record id is stored twice. Indicates a bug, not bad input.
    """
    def __init__(self, otp_id: str):
        super().__init__(f"OTP id already stored: {otp_id}", code="INTERNAL_ERROR", status_code=500)
