"""
app/services/otp_store.py

Purpose: In-memory OTP storage

- Owns every OTP record; callers only ever get copies
- Single-use consumption with a fixed check order
  (exists -> not expired -> not consumed -> code matches)
- Per-record deletion at expiry plus a periodic sweep
- All reads and writes are serialized by one asyncio lock
"""

import asyncio
from datetime import datetime
from typing import Dict, Optional, Set

from app.core.exceptions import (
    DuplicateOtpError,
    InvalidOtpError,
    OtpAlreadyVerifiedError,
    OtpExpiredError,
    OtpNotFoundError,
)
from app.core.logging import get_logger
from app.models.otp_record import OtpRecord, VerifiedOtp
from utils.time_utils import Clock, utcnow

logger = get_logger(__name__)


class OtpStore:
    """
    Holds OTP records keyed by id.

    Deferred deletions and the sweep are independent of each other:
    deleting an id that is already gone is a no-op.
    """

    def __init__(self, clock: Clock = utcnow, schedule_expiry: bool = True):
        self._clock = clock
        self._schedule_expiry = schedule_expiry
        self._records: Dict[str, OtpRecord] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._deletions: Set[asyncio.Task] = set()
        self._lock = asyncio.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    async def put(self, record: OtpRecord) -> None:
        """
        Stores a new record and schedules its deletion at expires_at.

        Raises:
            DuplicateOtpError: If the id is already stored
        """
        async with self._lock:
            if record.id in self._records:
                raise DuplicateOtpError(record.id)

            self._records[record.id] = record.copy()

            if self._schedule_expiry:
                self._schedule_deletion(record)

        logger.debug(f"OTP stored: {record.id}")

    async def get(self, otp_id: str) -> Optional[OtpRecord]:
        async with self._lock:
            record = self._records.get(otp_id)
            return record.copy() if record else None

    async def find_latest_pending_for_address(self, address: str) -> Optional[OtpRecord]:
        """
        Returns the newest unconsumed record for an address.

        Expired records are still candidates: consuming one reports
        OtpExpiredError, the same answer a lookup by id gives, rather than
        OtpNotFoundError. Records with equal created_at are ordered by id,
        so the result does not depend on insertion order.
        """
        async with self._lock:
            candidates = [
                record for record in self._records.values()
                if record.subject_address == address and not record.consumed
            ]
            if not candidates:
                return None

            latest = max(candidates, key=lambda record: (record.created_at, record.id))
            return latest.copy()

    async def consume(self, otp_id: str, code: str, now: datetime) -> VerifiedOtp:
        """
        Marks a record as used if the submitted code is valid.

        Raises:
            OtpNotFoundError: No record with this id
            OtpExpiredError: now is past expires_at
            OtpAlreadyVerifiedError: Record was consumed before
            InvalidOtpError: Code does not match
        """
        async with self._lock:
            record = self._records.get(otp_id)

            if record is None:
                raise OtpNotFoundError()

            if record.is_expired(now):
                raise OtpExpiredError()

            if record.consumed:
                raise OtpAlreadyVerifiedError()

            if record.code != code:
                raise InvalidOtpError()

            record.consumed = True
            record.consumed_at = now

            return VerifiedOtp(
                otp_id=record.id,
                phone_number=record.phone_number,
                subject_address=record.subject_address,
                verified_at=now,
            )

    async def delete(self, otp_id: str) -> bool:
        async with self._lock:
            return self._remove(otp_id)

    async def sweep_expired(self, now: datetime) -> int:
        """Removes every record whose expires_at is before now."""
        async with self._lock:
            expired = [
                otp_id for otp_id, record in self._records.items()
                if record.expires_at < now
            ]
            for otp_id in expired:
                self._remove(otp_id)

        if expired:
            logger.info(f"🧹 Swept {len(expired)} expired OTP(s)")
        return len(expired)

    async def active_count(self, now: datetime) -> int:
        async with self._lock:
            return sum(1 for record in self._records.values() if record.is_pending(now))

    async def total_count(self) -> int:
        async with self._lock:
            return len(self._records)

    # ------------------------------------------------------------------
    # Background cleanup
    # ------------------------------------------------------------------

    def start_sweeper(self, interval_seconds: float) -> asyncio.Task:
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.get_running_loop().create_task(
                self._run_sweeper(interval_seconds),
                name="otp-sweeper",
            )
            logger.info(f"OTP sweeper started (every {interval_seconds}s)")
        return self._sweeper

    async def stop(self) -> None:
        """Stops the sweeper and cancels pending per-record deletions."""
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None and not sweeper.done():
            sweeper.cancel()
            await asyncio.gather(sweeper, return_exceptions=True)

        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

        deletions = list(self._deletions)
        for task in deletions:
            task.cancel()
        await asyncio.gather(*deletions, return_exceptions=True)
        self._deletions.clear()

    async def _run_sweeper(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.sweep_expired(self._clock())
            except Exception as e:
                logger.error(f"OTP sweep failed, skipping this tick: {e}", exc_info=True)

    def _schedule_deletion(self, record: OtpRecord) -> None:
        delay = max(0.0, (record.expires_at - self._clock()).total_seconds())
        loop = asyncio.get_running_loop()
        self._timers[record.id] = loop.call_later(delay, self._on_expiry_timer, record.id)

    def _on_expiry_timer(self, otp_id: str) -> None:
        self._timers.pop(otp_id, None)
        task = asyncio.get_running_loop().create_task(self.delete(otp_id))
        self._deletions.add(task)
        task.add_done_callback(self._deletions.discard)

    def _remove(self, otp_id: str) -> bool:
        timer = self._timers.pop(otp_id, None)
        if timer is not None:
            timer.cancel()
        return self._records.pop(otp_id, None) is not None
