"""Rate limit store protocol (port).

Counter storage is injected into ``RateLimiter`` instead of living in module
state. Adapters:

- DatabaseRateLimitStore: durable rows, one atomic upsert per attempt
- MemoryRateLimitStore: process-local, lost on restart
- RedisRateLimitStore: shared Redis hash updated by a Lua script

Every method returns ``Failure(RateLimitError)`` when the store cannot be
reached. Callers surface that as a fault; it is never an allow or a deny.
"""

from datetime import datetime, timedelta
from typing import Protocol

from gatekeeper.core.result import Result
from gatekeeper.domain.errors import RateLimitError
from gatekeeper.domain.value_objects.rate_limit import RateLimitCounter


class RateLimitStoreProtocol(Protocol):
    """Storage contract for fixed-window counters keyed by (identifier, endpoint)."""

    async def increment(
        self,
        *,
        identifier: str,
        endpoint: str,
        window: timedelta,
        now: datetime,
    ) -> Result[RateLimitCounter, RateLimitError]:
        """Count one attempt atomically.

        If no counter exists, or ``now - window_start >= window``, the counter
        restarts at 1 with ``window_start = now``. Otherwise it is incremented.
        Read and write happen as one serialized step per key: two concurrent
        calls never observe the same pre-increment value.

        Returns:
            The counter state after this attempt.
        """
        ...

    async def get(
        self,
        *,
        identifier: str,
        endpoint: str,
    ) -> Result[RateLimitCounter | None, RateLimitError]:
        """Read the counter without counting an attempt."""
        ...

    async def block(
        self,
        *,
        identifier: str,
        endpoint: str,
        until: datetime,
        now: datetime,
    ) -> Result[None, RateLimitError]:
        """Mark the key as blocked until ``until``."""
        ...

    async def reset(
        self,
        *,
        identifier: str,
        endpoint: str,
    ) -> Result[None, RateLimitError]:
        """Forget the counter (and any block) for the key."""
        ...

    async def cleanup(self, *, older_than: datetime) -> Result[int, RateLimitError]:
        """Delete counters whose last attempt precedes ``older_than``.

        Returns:
            Number of counters removed.
        """
        ...
