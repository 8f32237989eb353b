"""
app/whatsapp/events.py

Purpose: Typed events emitted by a WhatsApp transport session

The connection manager consumes these from one stream and turns them
into state transitions; nothing else reacts to them.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class ClientIdentity:
    """The authorized WhatsApp account."""
    number: str
    name: Optional[str] = None


@dataclass(frozen=True)
class PairingRequired:
    """No valid stored authorization; the operator must scan this QR payload."""
    challenge: str


@dataclass(frozen=True)
class Authorized:
    identity: ClientIdentity


@dataclass(frozen=True)
class AuthFailure:
    reason: str = ""


@dataclass(frozen=True)
class LinkDropped:
    reason: str = ""


TransportEvent = Union[PairingRequired, Authorized, AuthFailure, LinkDropped]
