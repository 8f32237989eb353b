"""
app/schemas/whatsapp.py

Purpose: WhatsApp connection schemas

- Connect / disconnect responses
- Connection status with QR code and connected account info
"""

from pydantic import BaseModel, Field
from typing import Optional


class ClientInfo(BaseModel):
    number: str
    name: Optional[str] = None


class ConnectResponse(BaseModel):
    message: str
    qr_code: Optional[str] = Field(None, alias="qrCode")
    connected: bool

    class Config:
        populate_by_name = True


class DisconnectResponse(BaseModel):
    message: str
    connected: bool = False


class ConnectionStatusResponse(BaseModel):
    connected: bool
    state: str
    qr_available: bool = Field(..., alias="qrAvailable")
    qr_code: Optional[str] = Field(None, alias="qrCode")
    client_info: Optional[ClientInfo] = Field(None, alias="clientInfo")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "connected": True,
                "state": "READY",
                "qrAvailable": False,
                "qrCode": None,
                "clientInfo": {"number": "919876543210", "name": "Support"}
            }
        }
