"""
app/schemas/bridge.py

Purpose: WhatsApp Web bridge payload schemas and parsers

- Validates events streamed by the bridge (one JSON object per line)
- Normalizes them into typed transport events
- Ignores informational events the state machine has no use for

Bridge format (mirrors the WhatsApp Web client events):
    {"type": "qr", "qr": "2@AbC..."}
    {"type": "authenticated"}
    {"type": "ready", "info": {"wid": {"user": "919876543210"}, "pushname": "Support"}}
    {"type": "auth_failure", "message": "restore session failed"}
    {"type": "disconnected", "reason": "LOGOUT"}
"""

from pydantic import BaseModel, Field
from typing import Optional

from app.whatsapp.events import (
    AuthFailure,
    Authorized,
    ClientIdentity,
    LinkDropped,
    PairingRequired,
    TransportEvent,
)


class BridgeWid(BaseModel):
    user: str = ""


class BridgeClientInfo(BaseModel):
    wid: BridgeWid = Field(default_factory=BridgeWid)
    pushname: Optional[str] = None


class BridgeEvent(BaseModel):
    type: str
    qr: Optional[str] = None
    info: Optional[BridgeClientInfo] = None
    message: Optional[str] = None
    reason: Optional[str] = None

    class Config:
        extra = "ignore"


def parse_bridge_event(payload: dict) -> Optional[TransportEvent]:
    """
    Converts a bridge payload into a transport event.

    Returns None for events that do not move the session
    (e.g. "authenticated", "loading_screen", unknown types).

    Raises:
        pydantic.ValidationError: If the payload has no "type"
    """
    event = BridgeEvent.model_validate(payload)

    if event.type == "qr":
        if not event.qr:
            return None
        return PairingRequired(challenge=event.qr)

    if event.type == "ready":
        info = event.info or BridgeClientInfo()
        return Authorized(identity=ClientIdentity(number=info.wid.user, name=info.pushname))

    if event.type == "auth_failure":
        return AuthFailure(reason=event.message or "")

    if event.type == "disconnected":
        return LinkDropped(reason=event.reason or "")

    return None
