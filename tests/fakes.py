"""
In-memory stand-ins for the clock, the random source and the WhatsApp transport.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from app.whatsapp.events import ClientIdentity


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class FakeTransport:
    """
    In-memory WhatsApp transport.

    Events in `script` are emitted as soon as a session starts; more can be
    pushed with emit(). The stream stays open until close_stream().
    """

    def __init__(self, script=()):
        self.script = list(script)
        self.sessions_started = 0
        self.sessions_ended = 0
        self.delivered: List[Tuple[str, str]] = []
        self.delivery_error: Optional[Exception] = None
        self.start_error: Optional[Exception] = None
        self._queue: asyncio.Queue = asyncio.Queue()

    async def begin_session(self, credential_handle=None):
        self.sessions_started += 1
        if self.start_error is not None:
            raise self.start_error

        for event in self.script:
            yield event

        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event

    def emit(self, event) -> None:
        self._queue.put_nowait(event)

    def close_stream(self) -> None:
        self._queue.put_nowait(None)

    async def deliver(self, address: str, text: str) -> None:
        if self.delivery_error is not None:
            raise self.delivery_error
        self.delivered.append((address, text))

    async def end_session(self, credential_handle=None) -> None:
        self.sessions_ended += 1


class FixedRandom:
    """Stands in for random.Random with a fixed randint result."""

    def __init__(self, value: int):
        self.value = value

    def randint(self, a: int, b: int) -> int:
        return self.value


IDENTITY = ClientIdentity(number="919999900000", name="OTP Bot")


async def settle(rounds: int = 5) -> None:
    """Lets background session tasks process queued events."""
    for _ in range(rounds):
        await asyncio.sleep(0)
