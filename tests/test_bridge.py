import json

import httpx
import pytest
from pydantic import ValidationError

from app.schemas.bridge import parse_bridge_event
from app.whatsapp.events import AuthFailure, Authorized, ClientIdentity, LinkDropped, PairingRequired
from app.whatsapp.transport import BridgeTransport, DeliveryError, TransportError

BASE_URL = "http://bridge.test"


def make_transport(handler) -> BridgeTransport:
    client = httpx.AsyncClient(
        base_url=BASE_URL,
        headers={"X-API-Key": "secret"},
        transport=httpx.MockTransport(handler),
    )
    return BridgeTransport(base_url=BASE_URL, api_key="secret", timeout=5.0, client_id="otp", http_client=client)


def ndjson(*events) -> bytes:
    return "\n".join(json.dumps(e) for e in events).encode() + b"\n"


class TestParseBridgeEvent:
    def test_qr(self):
        assert parse_bridge_event({"type": "qr", "qr": "2@abc"}) == PairingRequired(challenge="2@abc")

    def test_empty_qr_ignored(self):
        assert parse_bridge_event({"type": "qr", "qr": ""}) is None

    def test_ready(self):
        event = parse_bridge_event({
            "type": "ready",
            "info": {"wid": {"user": "919876543210", "server": "c.us"}, "pushname": "Support"},
        })
        assert event == Authorized(identity=ClientIdentity(number="919876543210", name="Support"))

    def test_auth_failure(self):
        assert parse_bridge_event({"type": "auth_failure", "message": "restore failed"}) == AuthFailure(
            reason="restore failed"
        )

    def test_disconnected(self):
        assert parse_bridge_event({"type": "disconnected", "reason": "LOGOUT"}) == LinkDropped(reason="LOGOUT")

    def test_informational_events_ignored(self):
        assert parse_bridge_event({"type": "authenticated"}) is None
        assert parse_bridge_event({"type": "loading_screen", "percent": 50}) is None

    def test_missing_type(self):
        with pytest.raises(ValidationError):
            parse_bridge_event({"qr": "2@abc"})


async def test_begin_session_streams_events():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.headers.get("X-API-Key")))
        if request.url.path.endswith("/start"):
            return httpx.Response(202, json={"status": "starting"})
        return httpx.Response(
            200,
            content=ndjson(
                {"type": "qr", "qr": "2@abc"},
                {"type": "authenticated"},
                {"type": "ready", "info": {"wid": {"user": "919999900000"}, "pushname": "Bot"}},
            ) + b"not json\n",
        )

    transport = make_transport(handler)
    events = [event async for event in transport.begin_session()]

    assert events == [
        PairingRequired(challenge="2@abc"),
        Authorized(identity=ClientIdentity(number="919999900000", name="Bot")),
    ]
    assert seen[0] == ("POST", "/sessions/otp/start", "secret")
    assert seen[1][:2] == ("GET", "/sessions/otp/events")
    await transport.close()


async def test_begin_session_refused():
    transport = make_transport(lambda request: httpx.Response(500))

    with pytest.raises(TransportError):
        async for _ in transport.begin_session("other"):
            pass
    await transport.close()


async def test_deliver_posts_message():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "msg_1"})

    transport = make_transport(handler)
    await transport.deliver("919876543210@c.us", "Your OTP is: 123456")

    assert captured["path"] == "/sessions/otp/messages"
    assert captured["body"] == {"chatId": "919876543210@c.us", "text": "Your OTP is: 123456"}
    await transport.close()


@pytest.mark.parametrize("status_code,kind", [
    (400, "invalid_address"),
    (404, "invalid_address"),
    (500, "transport_error"),
])
async def test_deliver_error_kinds(status_code, kind):
    transport = make_transport(lambda request: httpx.Response(status_code, text="nope"))

    with pytest.raises(DeliveryError) as exc_info:
        await transport.deliver("123@c.us", "hello")

    assert exc_info.value.kind == kind
    await transport.close()


async def test_deliver_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    transport = make_transport(handler)

    with pytest.raises(DeliveryError) as exc_info:
        await transport.deliver("919876543210@c.us", "hello")

    assert exc_info.value.kind == "timeout"
    await transport.close()


async def test_end_session_without_client_is_noop():
    transport = BridgeTransport(base_url=BASE_URL)
    await transport.end_session()


async def test_deliver_uses_started_session():
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append((request.method, request.url.path))
        if request.url.path.endswith("/start"):
            return httpx.Response(202)
        if request.url.path.endswith("/events"):
            return httpx.Response(200, content=ndjson({"type": "qr", "qr": "2@abc"}))
        return httpx.Response(200)

    transport = make_transport(handler)
    async for _ in transport.begin_session("tenant-session"):
        pass

    await transport.deliver("919876543210@c.us", "hello")
    await transport.end_session()

    assert ("POST", "/sessions/tenant-session/messages") in paths
    assert ("DELETE", "/sessions/tenant-session") in paths
    await transport.close()
