"""
app/api/whatsapp.py

Purpose: WhatsApp connection endpoints

- Starts the session and returns the QR code to scan
- Reports connection status and the connected account
- Lets an operator tear the session down
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_connection_manager
from app.core.logging import get_logger
from app.schemas.whatsapp import (
    ClientInfo,
    ConnectionStatusResponse,
    ConnectResponse,
    DisconnectResponse,
)
from app.whatsapp.manager import ConnectionManager
from utils.constants import (
    MSG_ALREADY_CONNECTED,
    MSG_CONNECTED,
    MSG_DISCONNECTED,
    MSG_QR_GENERATED,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/whatsapp")


@router.post("/connect", response_model=ConnectResponse)
async def connect_whatsapp(manager: ConnectionManager = Depends(get_connection_manager)):
    """
    Connects WhatsApp.

    Waits until the session is ready or a QR code is available
    (CONNECT_TIMEOUT_SECONDS at most). Calling it again while a session
    is starting does not start a second one.
    """
    if manager.is_ready:
        return ConnectResponse(message=MSG_ALREADY_CONNECTED, qr_code=None, connected=True)

    session = await manager.connect_and_wait()

    if session.connected:
        return ConnectResponse(message=MSG_CONNECTED, qr_code=None, connected=True)

    return ConnectResponse(
        message=MSG_QR_GENERATED,
        qr_code=session.pairing_challenge,
        connected=False
    )


@router.post("/disconnect", response_model=DisconnectResponse)
async def disconnect_whatsapp(manager: ConnectionManager = Depends(get_connection_manager)):
    await manager.disconnect()
    return DisconnectResponse(message=MSG_DISCONNECTED)


@router.get("/status", response_model=ConnectionStatusResponse)
async def whatsapp_status(manager: ConnectionManager = Depends(get_connection_manager)):
    """Current connection state, QR code (if any) and connected account."""
    session = manager.status()

    client_info = None
    if session.identity is not None:
        client_info = ClientInfo(number=session.identity.number, name=session.identity.name)

    return ConnectionStatusResponse(
        connected=session.connected,
        state=session.state.value,
        qr_available=session.qr_available,
        qr_code=session.pairing_challenge,
        client_info=client_info
    )
