"""
app/whatsapp/transport.py

Purpose: WhatsApp transport capability

- WhatsAppTransport: what the connection manager needs from a transport
- BridgeTransport: talks to a WhatsApp Web HTTP bridge that hosts the
  browser session and its persisted authorization
- Transport errors carry a kind so delivery failures can be reported
  without leaking transport details
"""

import json
from typing import Any, AsyncIterator, Dict, Optional, Protocol

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.bridge import parse_bridge_event
from app.whatsapp.events import TransportEvent

logger = get_logger(__name__)


class TransportError(Exception):
    """Session-level transport failure (bridge unreachable, stream broken)."""
    pass


class DeliveryError(TransportError):
    """
    A single message could not be delivered.

    kind: invalid_address | timeout | transport_error
    """

    def __init__(self, message: str, kind: str = "transport_error"):
        self.kind = kind
        super().__init__(message)


class WhatsAppTransport(Protocol):
    def begin_session(self, credential_handle: Optional[str] = None) -> AsyncIterator[TransportEvent]:
        """
        Starts (or resumes) a session and yields its events until the
        session ends. Reuses the persisted authorization behind
        credential_handle when it is still valid.
        """
        ...

    async def deliver(self, address: str, text: str) -> None:
        """Sends text to a chat address. Raises DeliveryError on failure."""
        ...

    async def end_session(self, credential_handle: Optional[str] = None) -> None:
        ...


class BridgeTransport:
    """
    Transport backed by a WhatsApp Web bridge.

    Endpoints:
        POST   /sessions/{id}/start     start or resume the browser session
        GET    /sessions/{id}/events    newline-delimited JSON event stream
        POST   /sessions/{id}/messages  {"chatId", "text"}
        DELETE /sessions/{id}           close the browser session
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        client_id: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.WHATSAPP_BRIDGE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.WHATSAPP_BRIDGE_API_KEY
        self.timeout = timeout or settings.WHATSAPP_BRIDGE_TIMEOUT
        self.client_id = client_id or settings.WHATSAPP_CLIENT_ID
        self._client: Optional[httpx.AsyncClient] = http_client
        self._active_handle: Optional[str] = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
            )
        return self._client

    def _session_path(self, credential_handle: Optional[str]) -> str:
        return f"/sessions/{credential_handle or self.client_id}"

    async def begin_session(self, credential_handle: Optional[str] = None) -> AsyncIterator[TransportEvent]:
        client = self._get_client()
        path = self._session_path(credential_handle)

        try:
            response = await client.post(f"{path}/start")
        except httpx.HTTPError as e:
            raise TransportError(f"WhatsApp bridge unreachable: {e}") from e

        if response.status_code not in (200, 201, 202):
            raise TransportError(f"WhatsApp bridge refused session start: {response.status_code}")

        self._active_handle = credential_handle or self.client_id
        logger.info(f"WhatsApp bridge session started: {path}")

        # The event stream stays open for the lifetime of the session
        stream_timeout = httpx.Timeout(self.timeout, read=None)
        try:
            async with client.stream("GET", f"{path}/events", timeout=stream_timeout) as stream:
                if stream.status_code != 200:
                    raise TransportError(f"WhatsApp bridge event stream failed: {stream.status_code}")

                async for line in stream.aiter_lines():
                    event = self._decode_line(line)
                    if event is not None:
                        yield event
        except httpx.HTTPError as e:
            raise TransportError(f"WhatsApp bridge event stream broken: {e}") from e

    def _decode_line(self, line: str) -> Optional[TransportEvent]:
        line = line.strip()
        if not line:
            return None

        try:
            payload: Any = json.loads(line)
            return parse_bridge_event(payload)
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.warning(f"Ignoring malformed bridge event: {line[:100]} ({e})")
            return None

    async def deliver(self, address: str, text: str) -> None:
        client = self._get_client()
        path = self._session_path(self._active_handle)

        try:
            response = await client.post(
                f"{path}/messages",
                json={"chatId": address, "text": text},
            )
        except httpx.TimeoutException as e:
            raise DeliveryError("WhatsApp bridge timeout", kind="timeout") from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"WhatsApp bridge error: {e}", kind="transport_error") from e

        if response.status_code in (200, 201):
            return

        if response.status_code in (400, 404, 422):
            raise DeliveryError(
                f"WhatsApp rejected address {address}: {response.status_code}",
                kind="invalid_address",
            )

        raise DeliveryError(
            f"WhatsApp bridge error: {response.status_code} - {response.text[:200]}",
            kind="transport_error",
        )

    async def end_session(self, credential_handle: Optional[str] = None) -> None:
        if self._client is None or self._client.is_closed:
            return

        try:
            await self._client.delete(self._session_path(credential_handle or self._active_handle))
        except httpx.HTTPError as e:
            logger.warning(f"Failed to close WhatsApp bridge session: {e}")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
