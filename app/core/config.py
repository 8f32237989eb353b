"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (OTP expiry, WhatsApp bridge, etc.)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # WhatsApp Web bridge
    WHATSAPP_BRIDGE_URL: str = Field(
        default="http://localhost:3000",
        description="Base URL of the WhatsApp Web HTTP bridge"
    )
    WHATSAPP_BRIDGE_API_KEY: Optional[str] = Field(
        default=None,
        validate_default=True,
        description="API key sent to the bridge in the X-API-Key header"
    )
    WHATSAPP_BRIDGE_TIMEOUT: float = Field(
        default=15.0,
        description="Bridge request timeout in seconds"
    )
    WHATSAPP_CLIENT_ID: str = Field(
        default="whatsapp_otp_service",
        description="Persisted session handle reused across restarts"
    )
    WHATSAPP_ADDRESS_SUFFIX: str = Field(
        default="@c.us",
        description="Chat address suffix appended to normalized numbers"
    )
    DEFAULT_COUNTRY_CODE: str = Field(
        default="91",
        description="Country code prepended to 10-digit numbers"
    )
    WHATSAPP_PRINT_QR: Optional[bool] = Field(
        default=None,
        description="Draw pairing QR codes in the logs (defaults to on in development)"
    )
    CONNECT_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Maximum time POST /whatsapp/connect waits for a QR code or session"
    )

    # OTP
    OTP_EXPIRY_SECONDS: int = Field(
        default=300,
        description="OTP validity window in seconds"
    )
    OTP_SWEEP_INTERVAL_SECONDS: float = Field(
        default=60.0,
        description="Interval between expired-OTP sweeps"
    )

    # Application
    SERVICE_NAME: str = Field(
        default="WhatsApp OTP Service",
        description="Service name reported by the status endpoint"
    )
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @field_validator("WHATSAPP_BRIDGE_API_KEY")
    @classmethod
    def validate_bridge_key(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        """Ensure the bridge key is set in production."""
        if info.data.get("ENVIRONMENT") == "production" and not v:
            raise ValueError("WHATSAPP_BRIDGE_API_KEY is required in production environment")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.WHATSAPP_BRIDGE_URL:
        errors.append("WHATSAPP_BRIDGE_URL is required")

    if settings.OTP_EXPIRY_SECONDS <= 0:
        errors.append("OTP_EXPIRY_SECONDS must be positive")

    if settings.OTP_SWEEP_INTERVAL_SECONDS <= 0:
        errors.append("OTP_SWEEP_INTERVAL_SECONDS must be positive")

    if settings.CONNECT_TIMEOUT_SECONDS <= 0:
        errors.append("CONNECT_TIMEOUT_SECONDS must be positive")

    if not settings.DEFAULT_COUNTRY_CODE.isdigit():
        errors.append("DEFAULT_COUNTRY_CODE must contain digits only")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
