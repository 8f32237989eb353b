"""
app/whatsapp/manager.py

Purpose: WhatsApp connection lifecycle

- Owns the single outbound WhatsApp session
- Starts sessions on demand (reusing the persisted authorization)
- Applies transport events as validated state transitions
- Lets callers wait for a QR code / ready session without polling
- Sends messages and normalizes transport failures
"""

import asyncio
from typing import Optional

from app.core.config import settings
from app.core.exceptions import (
    ConnectionFailedError,
    ConnectTimeoutError,
    DeliveryFailedError,
    NotConnectedError,
)
from app.core.logging import get_logger, LogContext
from app.whatsapp.events import (
    AuthFailure,
    Authorized,
    LinkDropped,
    PairingRequired,
    TransportEvent,
)
from app.whatsapp.session import ConnectionSession
from app.whatsapp.states import ConnectionState, is_settled, is_valid_transition
from app.whatsapp.transport import DeliveryError, TransportError, WhatsAppTransport
from utils.phone_utils import mask_phone, normalize_address
from utils.qr_utils import render_qr_ascii

logger = get_logger(__name__)


class ConnectionManager:
    """
    State machine for the WhatsApp session.

    IDLE -> INITIALIZING -> (AWAITING_PAIRING ->) READY, with FAILED
    reachable from every live state. FAILED is left only through reset();
    connect() performs that reset itself so callers can simply retry.

    Each connect() from IDLE starts a new generation. Events from an older
    generation are dropped, so a session that was torn down can never move
    the state of its successor.
    """

    def __init__(
        self,
        transport: WhatsAppTransport,
        credential_handle: Optional[str] = None,
        connect_timeout: Optional[float] = None,
        print_qr: Optional[bool] = None,
    ):
        self._transport = transport
        self._credential_handle = credential_handle or settings.WHATSAPP_CLIENT_ID
        self._connect_timeout = connect_timeout or settings.CONNECT_TIMEOUT_SECONDS
        if print_qr is None:
            print_qr = settings.WHATSAPP_PRINT_QR if settings.WHATSAPP_PRINT_QR is not None else settings.is_development
        self._print_qr = print_qr
        self._session = ConnectionSession()
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._changed = asyncio.Event()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def status(self) -> ConnectionSession:
        return self._session

    @property
    def is_ready(self) -> bool:
        return self._session.state == ConnectionState.READY

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> ConnectionSession:
        """
        Starts a session unless one is ready or already starting.

        Never waits for the transport; observe progress with status()
        or wait_until_settled().
        """
        state = self._session.state

        if state in (
            ConnectionState.READY,
            ConnectionState.INITIALIZING,
            ConnectionState.AWAITING_PAIRING,
        ):
            logger.debug(f"connect() ignored, session is {state.value}")
            return self._session

        if state == ConnectionState.FAILED:
            self.reset()

        self._generation += 1
        generation = self._generation

        self._transition(generation, ConnectionSession(state=ConnectionState.INITIALIZING))
        logger.info(f"🔌 Initializing WhatsApp session (generation {generation})")

        self._task = asyncio.get_running_loop().create_task(
            self._consume_events(generation),
            name=f"whatsapp-session-{generation}",
        )
        return self._session

    def reset(self) -> ConnectionSession:
        """Discards a failed session so a fresh one can be started."""
        if self._session.state != ConnectionState.FAILED:
            return self._session

        self._task = None
        self._transition(self._generation, ConnectionSession(state=ConnectionState.IDLE))
        logger.info("WhatsApp session reset")
        return self._session

    async def disconnect(self) -> ConnectionSession:
        """Tears down the current session, whatever its state."""
        if self._session.state == ConnectionState.IDLE:
            return self._session

        # Invalidate the running generation before touching the task
        self._generation += 1
        task, self._task = self._task, None

        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        try:
            await self._transport.end_session(self._credential_handle)
        except TransportError as e:
            logger.warning(f"Error closing WhatsApp session: {e}")

        self._set(ConnectionSession(state=ConnectionState.IDLE))
        logger.info("👋 WhatsApp disconnected")
        return self._session

    async def wait_until_settled(self, timeout: Optional[float] = None) -> ConnectionSession:
        """
        Waits until the session shows a QR code, is ready, or failed.

        Raises:
            ConnectTimeoutError: If none of those happened within timeout
        """
        timeout = timeout if timeout is not None else self._connect_timeout

        try:
            return await asyncio.wait_for(self._wait_for_settled(), timeout)
        except asyncio.TimeoutError:
            raise ConnectTimeoutError(
                details={"timeout_seconds": timeout, "state": self._session.state.value}
            )

    async def connect_and_wait(self, timeout: Optional[float] = None) -> ConnectionSession:
        """
        connect() followed by wait_until_settled().

        Raises:
            ConnectTimeoutError: Nothing happened in time
            ConnectionFailedError: The session failed while we waited
        """
        self.connect()
        session = await self.wait_until_settled(timeout)

        if session.state == ConnectionState.FAILED:
            raise ConnectionFailedError()

        return session

    async def _wait_for_settled(self) -> ConnectionSession:
        while True:
            session = self._session
            if is_settled(session.state):
                return session
            changed = self._changed
            await changed.wait()

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(self, phone: str, text: str) -> None:
        """
        Delivers text to a phone number or chat address.

        Raises:
            NotConnectedError: Session is not ready
            DeliveryFailedError: The transport could not deliver the message
        """
        if not self.is_ready:
            raise NotConnectedError()

        address = normalize_address(phone)

        try:
            await self._transport.deliver(address, text)
        except DeliveryError as e:
            logger.error(f"❌ WhatsApp send error to {mask_phone(address)}: {e}")
            raise DeliveryFailedError(kind=e.kind) from e
        except TransportError as e:
            logger.error(f"❌ WhatsApp send error to {mask_phone(address)}: {e}")
            raise DeliveryFailedError(kind="transport_error") from e
        except Exception as e:
            logger.error(f"Unexpected WhatsApp send error: {e}", exc_info=True)
            raise DeliveryFailedError(kind="transport_error") from e

        logger.info(f"📤 Message delivered to {mask_phone(address)}")

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    async def _consume_events(self, generation: int) -> None:
        events = self._transport.begin_session(self._credential_handle)

        try:
            async for event in events:
                if generation != self._generation:
                    return
                self.apply_event(event, generation)
                if self._session.state == ConnectionState.FAILED:
                    return

            self._fail(generation, "event stream ended")

        except TransportError as e:
            logger.error(f"WhatsApp transport error: {e}")
            self._fail(generation, str(e))
        except Exception as e:
            logger.error(f"Unexpected error in WhatsApp session: {e}", exc_info=True)
            self._fail(generation, str(e))
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()

    def apply_event(self, event: TransportEvent, generation: Optional[int] = None) -> bool:
        """
        Applies one transport event. Returns True if the state changed.

        generation defaults to the current one; events tagged with an
        older generation are ignored.
        """
        if generation is None:
            generation = self._generation

        current = self._session.state

        with LogContext(connection_state=current.value):
            if isinstance(event, PairingRequired):
                logger.info(f"📱 WhatsApp QR code generated, waiting for scan: {event.challenge}")
                if self._print_qr:
                    logger.info(f"Scan this QR code with WhatsApp:\n{render_qr_ascii(event.challenge)}")
                target = ConnectionSession(
                    state=ConnectionState.AWAITING_PAIRING,
                    pairing_challenge=event.challenge,
                )
            elif isinstance(event, Authorized):
                logger.info(f"✅ WhatsApp client is ready: {event.identity.number}")
                target = ConnectionSession(state=ConnectionState.READY, identity=event.identity)
            elif isinstance(event, AuthFailure):
                logger.error(f"WhatsApp authentication failed: {event.reason or 'no reason given'}")
                target = ConnectionSession(state=ConnectionState.FAILED)
            elif isinstance(event, LinkDropped):
                logger.warning(f"WhatsApp disconnected: {event.reason or 'no reason given'}")
                target = ConnectionSession(state=ConnectionState.FAILED)
            else:
                logger.warning(f"Unknown transport event ignored: {event!r}")
                return False

            return self._transition(generation, target)

    def _fail(self, generation: int, reason: str) -> None:
        if generation != self._generation or self._session.state in (
            ConnectionState.FAILED,
            ConnectionState.IDLE,
        ):
            return
        logger.error(f"WhatsApp session failed: {reason}")
        self._transition(generation, ConnectionSession(state=ConnectionState.FAILED))

    def _transition(self, generation: int, target: ConnectionSession) -> bool:
        if generation != self._generation:
            logger.debug(f"Dropping event from stale session generation {generation}")
            return False

        current = self._session.state
        if not is_valid_transition(current, target.state):
            logger.warning(f"Invalid connection transition ignored: {current.value} -> {target.state.value}")
            return False

        self._set(target)
        if current != target.state:
            logger.info(f"Connection state: {current.value} -> {target.state.value}")
        return True

    def _set(self, session: ConnectionSession) -> None:
        self._session = session
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()

