"""
utils/constants.py

Purpose: Centralized static content

- Outgoing WhatsApp message templates
- API response messages
- Placeholder tokens

(Prevents hardcoding across the codebase)
"""

# ============================================================
# OTP MESSAGES
# ============================================================

OTP_PLACEHOLDER = "{otp}"

DEFAULT_OTP_TEMPLATE = """Your OTP is: {otp}

This OTP will expire in {expiry}.

- WhatsApp OTP Service"""

# ============================================================
# API RESPONSE MESSAGES
# ============================================================

MSG_OTP_SENT = "OTP sent successfully"
MSG_OTP_VERIFIED = "OTP verified successfully"

MSG_ALREADY_CONNECTED = "WhatsApp already connected"
MSG_CONNECTED = "WhatsApp connected successfully"
MSG_QR_GENERATED = "QR code generated. Please scan with WhatsApp."
MSG_DISCONNECTED = "WhatsApp disconnected"

SERVICE_STATUS_RUNNING = "Running"
