"""Integration tests for DatabaseRateLimitStore against SQLite.

Counting goes through the ON CONFLICT upsert, so these tests exercise the
same statement production runs on PostgreSQL.
"""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from gatekeeper.core.result import Success
from gatekeeper.infrastructure.rate_limit import (
    RATE_LIMITS,
    DatabaseRateLimitStore,
    RateLimitName,
)
from gatekeeper.services import RateLimiter

WINDOW = timedelta(minutes=15)
START = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def store(test_database):
    return DatabaseRateLimitStore(test_database)


async def _increment(store, now, identifier="ip:198.51.100.1", endpoint="login"):
    result = await store.increment(
        identifier=identifier, endpoint=endpoint, window=WINDOW, now=now
    )
    assert isinstance(result, Success)
    return result.value


@pytest.mark.integration
class TestIncrement:
    """Test fixed-window counting."""

    async def test_counts_within_window(self, store):
        counters = [
            await _increment(store, START + timedelta(seconds=i)) for i in range(3)
        ]

        assert [c.attempts for c in counters] == [1, 2, 3]
        assert all(c.window_start == START for c in counters)
        assert counters[-1].last_attempt_at == START + timedelta(seconds=2)

    async def test_window_elapsed_restarts(self, store):
        await _increment(store, START)
        await _increment(store, START + timedelta(minutes=1))

        restarted = await _increment(store, START + WINDOW)

        assert restarted.attempts == 1
        assert restarted.window_start == START + WINDOW

    async def test_keys_independent(self, store):
        await _increment(store, START)

        other = await _increment(store, START, identifier="ip:198.51.100.2")
        other_endpoint = await _increment(store, START, endpoint="register")

        assert other.attempts == 1
        assert other_endpoint.attempts == 1

    async def test_concurrent_increments_all_counted(self, store):
        """Test concurrent upserts never lose an attempt."""
        counters = await asyncio.gather(*(_increment(store, START) for _ in range(10)))

        assert sorted(c.attempts for c in counters) == list(range(1, 11))


@pytest.mark.integration
class TestBlockResetCleanup:
    """Test block, reset and cleanup statements."""

    async def test_block_then_get(self, store):
        until = START + timedelta(hours=1)

        await store.block(
            identifier="user:1", endpoint="login", until=until, now=START
        )
        counter = (await store.get(identifier="user:1", endpoint="login")).value

        assert counter.blocked_until == until
        assert counter.attempts == 0

    async def test_block_survives_window_restart(self, store):
        await _increment(store, START)
        await store.block(
            identifier="ip:198.51.100.1",
            endpoint="login",
            until=START + timedelta(hours=2),
            now=START,
        )

        counter = await _increment(store, START + WINDOW)

        assert counter.attempts == 1
        assert counter.blocked_until == START + timedelta(hours=2)

    async def test_reset_deletes(self, store):
        await _increment(store, START)

        await store.reset(identifier="ip:198.51.100.1", endpoint="login")

        assert (
            await store.get(identifier="ip:198.51.100.1", endpoint="login")
        ).value is None

    async def test_cleanup_keeps_recent_and_blocked(self, store):
        await _increment(store, START, identifier="ip:stale")
        await _increment(store, START, identifier="ip:blocked")
        await store.block(
            identifier="ip:blocked",
            endpoint="login",
            until=START + timedelta(days=2),
            now=START,
        )
        await _increment(store, START + timedelta(days=1), identifier="ip:recent")

        removed = await store.cleanup(older_than=START + timedelta(hours=1))

        assert removed.value == 1
        assert (await store.get(identifier="ip:stale", endpoint="login")).value is None
        assert (await store.get(identifier="ip:blocked", endpoint="login")).value


@pytest.mark.integration
class TestRateLimiterOnDatabase:
    """Test the limiter end to end on durable counters."""

    async def test_sixth_login_denied(self, store, logger):
        limiter = RateLimiter(store, logger)
        config = RATE_LIMITS[RateLimitName.LOGIN]

        results = [
            (await limiter.check_rate_limit("ip:198.51.100.1", "login", config)).value
            for _ in range(6)
        ]

        assert [r.remaining for r in results] == [4, 3, 2, 1, 0, 0]
        assert results[-1].allowed is False
        assert (await limiter.is_blocked("ip:198.51.100.1", "login", config)).value
