"""
app/api/deps.py

Purpose: FastAPI dependencies

- Hands route handlers the service objects built at startup
  (stored on app.state by the lifespan)
"""

from fastapi import Request

from app.services.otp_service import OtpService
from app.whatsapp.manager import ConnectionManager


def get_connection_manager(request: Request) -> ConnectionManager:
    return request.app.state.connection_manager


def get_otp_service(request: Request) -> OtpService:
    return request.app.state.otp_service
