"""
app/whatsapp/states.py

Purpose: Defines all WhatsApp connection states

- Enum for each stage of the session lifecycle
  (IDLE, INITIALIZING, AWAITING_PAIRING, READY, FAILED)
- Single source of truth for the lifecycle
- State transition validation
- Metadata for each state
"""

from enum import Enum
from typing import Dict, List
from dataclasses import dataclass


class ConnectionState(str, Enum):
    """
    Lifecycle of the single outbound WhatsApp session.
    """

    IDLE = "IDLE"
    INITIALIZING = "INITIALIZING"
    AWAITING_PAIRING = "AWAITING_PAIRING"
    READY = "READY"

    # Terminal until reset(); never retried automatically
    FAILED = "FAILED"


@dataclass
class StateMetadata:
    name: ConnectionState
    display_name: str
    settled: bool = False  # connect() callers stop waiting here
    description: str = ""


STATE_METADATA: Dict[ConnectionState, StateMetadata] = {
    ConnectionState.IDLE: StateMetadata(
        name=ConnectionState.IDLE,
        display_name="Disconnected",
        description="No session; connect() starts one"
    ),
    ConnectionState.INITIALIZING: StateMetadata(
        name=ConnectionState.INITIALIZING,
        display_name="Initializing",
        description="Session bootstrapping, trying the persisted authorization"
    ),
    ConnectionState.AWAITING_PAIRING: StateMetadata(
        name=ConnectionState.AWAITING_PAIRING,
        display_name="Waiting for QR scan",
        settled=True,
        description="QR code issued; operator must scan it from the phone"
    ),
    ConnectionState.READY: StateMetadata(
        name=ConnectionState.READY,
        display_name="Connected",
        settled=True,
        description="Authorized; messages can be sent"
    ),
    ConnectionState.FAILED: StateMetadata(
        name=ConnectionState.FAILED,
        display_name="Failed",
        settled=True,
        description="Authentication failed or link dropped"
    ),
}


STATE_TRANSITIONS: Dict[ConnectionState, List[ConnectionState]] = {
    ConnectionState.IDLE: [
        ConnectionState.INITIALIZING,
    ],
    ConnectionState.INITIALIZING: [
        ConnectionState.AWAITING_PAIRING,
        ConnectionState.READY,  # Persisted authorization still valid
        ConnectionState.FAILED,
        ConnectionState.IDLE,  # Explicit disconnect
    ],
    ConnectionState.AWAITING_PAIRING: [
        ConnectionState.AWAITING_PAIRING,  # QR code refreshed
        ConnectionState.READY,
        ConnectionState.FAILED,
        ConnectionState.IDLE,
    ],
    ConnectionState.READY: [
        ConnectionState.FAILED,  # Link dropped
        ConnectionState.IDLE,
    ],
    ConnectionState.FAILED: [
        ConnectionState.IDLE,  # reset()
    ],
}


def is_valid_transition(from_state: ConnectionState, to_state: ConnectionState) -> bool:
    """
    Checks if a state transition is valid.

    Args:
        from_state: Current state
        to_state: Target state

    Returns:
        True if transition is allowed, False otherwise
    """
    allowed_transitions = STATE_TRANSITIONS.get(from_state, [])
    return to_state in allowed_transitions


def get_state_metadata(state: ConnectionState) -> StateMetadata:
    return STATE_METADATA.get(state, StateMetadata(
        name=state,
        display_name=state.value,
        description="Unknown state"
    ))


def is_settled(state: ConnectionState) -> bool:
    """True once a connect() caller has something to report."""
    return get_state_metadata(state).settled
