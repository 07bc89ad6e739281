"""Process-local rate limit store.

Counters live in a dictionary and vanish on restart. Each key has its own
``asyncio.Lock`` so read-modify-write on one key is serialized without
blocking other keys. Suitable for development, tests and single-process
deployments only.
"""

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from gatekeeper.core.result import Result, Success
from gatekeeper.domain.errors import RateLimitError
from gatekeeper.domain.value_objects.rate_limit import RateLimitCounter

type _Key = tuple[str, str]


@dataclass(slots=True)
class _Slot:
    lock: asyncio.Lock
    counter: RateLimitCounter | None = None


class MemoryRateLimitStore:
    """Volatile fixed-window counters keyed by (identifier, endpoint)."""

    def __init__(self) -> None:
        self._slots: dict[_Key, _Slot] = {}

    def _slot(self, identifier: str, endpoint: str) -> _Slot:
        key = (identifier, endpoint)
        slot = self._slots.get(key)
        if slot is None:
            slot = _Slot(lock=asyncio.Lock())
            self._slots[key] = slot
        return slot

    async def increment(
        self,
        *,
        identifier: str,
        endpoint: str,
        window: timedelta,
        now: datetime,
    ) -> Result[RateLimitCounter, RateLimitError]:
        """Count one attempt under the key's lock."""
        slot = self._slot(identifier, endpoint)
        async with slot.lock:
            current = slot.counter
            if current is None or current.is_window_expired(window=window, now=now):
                updated = RateLimitCounter(
                    attempts=1,
                    window_start=now,
                    last_attempt_at=now,
                    blocked_until=current.blocked_until if current else None,
                )
            else:
                updated = replace(
                    current,
                    attempts=current.attempts + 1,
                    last_attempt_at=now,
                )
            slot.counter = updated
        return Success(value=updated)

    async def get(
        self,
        *,
        identifier: str,
        endpoint: str,
    ) -> Result[RateLimitCounter | None, RateLimitError]:
        """Read the counter without counting an attempt."""
        slot = self._slots.get((identifier, endpoint))
        return Success(value=slot.counter if slot else None)

    async def block(
        self,
        *,
        identifier: str,
        endpoint: str,
        until: datetime,
        now: datetime,
    ) -> Result[None, RateLimitError]:
        """Mark the key blocked until ``until``."""
        slot = self._slot(identifier, endpoint)
        async with slot.lock:
            if slot.counter is None:
                slot.counter = RateLimitCounter(
                    attempts=0,
                    window_start=now,
                    last_attempt_at=now,
                    blocked_until=until,
                )
            else:
                slot.counter = replace(slot.counter, blocked_until=until)
        return Success(value=None)

    async def reset(
        self,
        *,
        identifier: str,
        endpoint: str,
    ) -> Result[None, RateLimitError]:
        """Forget the key."""
        self._slots.pop((identifier, endpoint), None)
        return Success(value=None)

    async def cleanup(self, *, older_than: datetime) -> Result[int, RateLimitError]:
        """Drop counters idle since before ``older_than`` and not blocked past it."""
        stale = [
            key
            for key, slot in self._slots.items()
            if slot.counter is not None
            and not slot.lock.locked()
            and slot.counter.last_attempt_at < older_than
            and (
                slot.counter.blocked_until is None
                or slot.counter.blocked_until < older_than
            )
        ]
        for key in stale:
            del self._slots[key]
        return Success(value=len(stale))
