"""
app/whatsapp/session.py

Purpose: Read-only view of the WhatsApp session

- ConnectionSession snapshots are what callers of status() receive
- The QR challenge exists only while awaiting pairing, the identity
  only while ready
"""

from dataclasses import dataclass
from typing import Optional

from app.whatsapp.events import ClientIdentity
from app.whatsapp.states import ConnectionState


@dataclass(frozen=True)
class ConnectionSession:
    state: ConnectionState = ConnectionState.IDLE
    pairing_challenge: Optional[str] = None
    identity: Optional[ClientIdentity] = None

    def __post_init__(self):
        if (self.pairing_challenge is not None) != (self.state == ConnectionState.AWAITING_PAIRING):
            raise ValueError("pairing_challenge is set only while awaiting pairing")
        if (self.identity is not None) != (self.state == ConnectionState.READY):
            raise ValueError("identity is set only while ready")

    @property
    def connected(self) -> bool:
        return self.state == ConnectionState.READY

    @property
    def qr_available(self) -> bool:
        return self.pairing_challenge is not None
