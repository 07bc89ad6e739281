"""Unit tests for RateLimiter over the in-memory store.

Tests cover:
- Fixed window counting (allowed/remaining per attempt)
- Window reset after the configured duration
- Blocks (over-limit within block_duration, explicit blocks)
- Status, reset and cleanup
- Store faults surface as Failure, never as allow/deny
- Header rendering of results
"""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from freezegun import freeze_time

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.errors import RateLimitError
from gatekeeper.domain.value_objects import RateLimitConfig, RateLimitResult
from gatekeeper.infrastructure.rate_limit import (
    RATE_LIMITS,
    MemoryRateLimitStore,
    RateLimitName,
)
from gatekeeper.services import RateLimiter

LOGIN = RATE_LIMITS[RateLimitName.LOGIN]
START = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def limiter(logger):
    return RateLimiter(MemoryRateLimitStore(), logger)


@pytest.mark.unit
class TestRateLimitConfig:
    """Test configuration validation."""

    def test_rejects_non_positive_window(self):
        with pytest.raises(ValueError, match="window"):
            RateLimitConfig(window=timedelta(0), max_attempts=5)

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError, match="max_attempts"):
            RateLimitConfig(window=timedelta(minutes=1), max_attempts=0)

    def test_named_login_limit(self):
        """Test the login configuration is 5 per 15 minutes."""
        assert LOGIN.max_attempts == 5
        assert LOGIN.window == timedelta(minutes=15)
        assert LOGIN.window_ms == 900_000


@pytest.mark.unit
class TestRateLimitResultHeaders:
    """Test header rendering."""

    def test_allowed_headers(self):
        result = RateLimitResult(
            allowed=True,
            remaining=3,
            reset_at=START + timedelta(seconds=30),
            total_attempts=2,
            limit=5,
        )

        headers = result.to_headers(START)

        assert headers == {
            "X-RateLimit-Limit": "5",
            "X-RateLimit-Remaining": "3",
            "X-RateLimit-Reset": str(int((START + timedelta(seconds=30)).timestamp())),
        }

    def test_denied_headers_carry_retry_after(self):
        result = RateLimitResult(
            allowed=False,
            remaining=0,
            reset_at=START + timedelta(seconds=90, milliseconds=200),
            total_attempts=6,
            limit=5,
        )

        assert result.to_headers(START)["Retry-After"] == "91"

    def test_retry_after_at_least_one_second(self):
        result = RateLimitResult(
            allowed=False, remaining=0, reset_at=START, total_attempts=6, limit=5
        )

        assert result.retry_after_seconds(START + timedelta(seconds=5)) == 1


@pytest.mark.unit
class TestCheckRateLimit:
    """Test counted checks."""

    async def test_five_allowed_then_denied(self, limiter):
        """Test attempts 1-5 pass with remaining 4..0 and the 6th is denied."""
        with freeze_time(START):
            results = [
                (await limiter.check_rate_limit("ip:1.2.3.4", "login", LOGIN)).value
                for _ in range(6)
            ]

        assert [r.allowed for r in results] == [True] * 5 + [False]
        assert [r.remaining for r in results] == [4, 3, 2, 1, 0, 0]
        assert results[-1].total_attempts == 6
        assert results[0].reset_at == START + LOGIN.window

    async def test_keys_are_independent(self, limiter):
        """Test identifiers and endpoints are counted separately."""
        for _ in range(5):
            await limiter.check_rate_limit("ip:1.2.3.4", "login", LOGIN)

        other_ip = await limiter.check_rate_limit("ip:5.6.7.8", "login", LOGIN)
        other_endpoint = await limiter.check_rate_limit(
            "ip:1.2.3.4", "register", LOGIN
        )

        assert other_ip.value.remaining == 4
        assert other_endpoint.value.remaining == 4

    async def test_window_reset(self, limiter):
        """Test a new window opens once the old one elapses."""
        with freeze_time(START) as frozen:
            for _ in range(6):
                await limiter.check_rate_limit("ip:1.2.3.4", "login", LOGIN)

            frozen.tick(LOGIN.window)
            result = await limiter.check_rate_limit("ip:1.2.3.4", "login", LOGIN)

        assert result.value.allowed
        assert result.value.remaining == 4
        assert result.value.total_attempts == 1

    async def test_concurrent_attempts_counted_once_each(self, limiter):
        """Test concurrent checks never share a count."""
        config = RateLimitConfig(window=timedelta(minutes=1), max_attempts=10)

        results = await asyncio.gather(
            *(limiter.check_rate_limit("ip:9.9.9.9", "api", config) for _ in range(20))
        )

        totals = sorted(r.value.total_attempts for r in results)
        assert totals == list(range(1, 21))
        assert sum(r.value.allowed for r in results) == 10

    async def test_denial_logged(self, limiter, logger):
        config = RateLimitConfig(window=timedelta(minutes=1), max_attempts=1)

        await limiter.check_rate_limit("ip:1.1.1.1", "api", config)
        await limiter.check_rate_limit("ip:1.1.1.1", "api", config)

        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[0] == "rate_limit_exceeded"


@pytest.mark.unit
class TestBlocks:
    """Test block detection."""

    async def test_over_limit_blocks_for_block_duration(self, limiter):
        """Test exceeding the limit blocks until last attempt + block_duration."""
        with freeze_time(START) as frozen:
            for _ in range(6):
                await limiter.check_rate_limit("ip:1.2.3.4", "login", LOGIN)

            frozen.tick(LOGIN.window)
            blocked = await limiter.check_block("ip:1.2.3.4", "login", LOGIN)
            assert (await limiter.is_blocked("ip:1.2.3.4", "login", LOGIN)).value

            frozen.tick(LOGIN.block_duration - LOGIN.window)
            released = await limiter.is_blocked("ip:1.2.3.4", "login", LOGIN)

        assert blocked.value.allowed is False
        assert blocked.value.reset_at == START + LOGIN.block_duration
        assert released.value is False

    async def test_retry_after_covers_block(self, limiter):
        """Test a client retrying at Retry-After is let through."""
        with freeze_time(START) as frozen:
            for _ in range(6):
                result = await limiter.check_rate_limit("ip:1.2.3.4", "login", LOGIN)

            denied = result.value
            retry_after = int(denied.to_headers(START)["Retry-After"])
            assert denied.reset_at == START + LOGIN.block_duration
            assert retry_after == LOGIN.block_duration.total_seconds()

            frozen.tick(timedelta(seconds=retry_after))
            block = await limiter.check_block("ip:1.2.3.4", "login", LOGIN)
            retried = await limiter.check_rate_limit("ip:1.2.3.4", "login", LOGIN)

        assert block.value is None
        assert retried.value.allowed
        assert retried.value.total_attempts == 1

    async def test_denial_without_block_resets_with_window(self, limiter):
        config = RateLimitConfig(window=timedelta(minutes=1), max_attempts=1)
        with freeze_time(START):
            await limiter.check_rate_limit("ip:1.2.3.4", "api", config)
            denied = await limiter.check_rate_limit("ip:1.2.3.4", "api", config)

        assert denied.value.reset_at == START + config.window

    async def test_within_limit_not_blocked(self, limiter):
        for _ in range(5):
            await limiter.check_rate_limit("ip:1.2.3.4", "login", LOGIN)

        assert (await limiter.is_blocked("ip:1.2.3.4", "login", LOGIN)).value is False

    async def test_no_record_not_blocked(self, limiter):
        result = await limiter.check_block("ip:1.2.3.4", "login", LOGIN)

        assert result == Success(value=None)

    async def test_explicit_block(self, limiter):
        """Test administrative blocks apply even without attempts."""
        with freeze_time(START):
            until = await limiter.block_identifier(
                "user:7", "login", timedelta(minutes=10)
            )
            blocked = await limiter.check_block("user:7", "login", LOGIN)

        assert until.value == START + timedelta(minutes=10)
        assert blocked.value.reset_at == until.value

    async def test_reset_clears_block(self, limiter):
        await limiter.block_identifier("user:7", "login")

        await limiter.reset_rate_limit("user:7", "login")

        assert (await limiter.is_blocked("user:7", "login", LOGIN)).value is False


@pytest.mark.unit
class TestStatusAndCleanup:
    """Test non-counting reads and retention."""

    async def test_status_does_not_count(self, limiter):
        await limiter.check_rate_limit("ip:1.2.3.4", "login", LOGIN)

        first = await limiter.get_rate_limit_status("ip:1.2.3.4", "login", LOGIN)
        second = await limiter.get_rate_limit_status("ip:1.2.3.4", "login", LOGIN)

        assert first.value.total_attempts == second.value.total_attempts == 1
        assert second.value.remaining == 4

    async def test_status_without_record(self, limiter):
        result = await limiter.get_rate_limit_status("ip:1.2.3.4", "login", LOGIN)

        assert result.value.allowed
        assert result.value.remaining == LOGIN.max_attempts

    async def test_cleanup_removes_idle_counters(self, limiter):
        with freeze_time(START) as frozen:
            await limiter.check_rate_limit("ip:old", "login", LOGIN)
            frozen.tick(timedelta(hours=25))
            await limiter.check_rate_limit("ip:new", "login", LOGIN)

            removed = await limiter.cleanup_rate_limit_records()
            old = await limiter.get_rate_limit_status("ip:old", "login", LOGIN)
            new = await limiter.get_rate_limit_status("ip:new", "login", LOGIN)

        assert removed.value == 1
        assert old.value.total_attempts == 0
        assert new.value.total_attempts == 1


@pytest.mark.unit
class TestStoreFaults:
    """Test store failures propagate as Failure."""

    @pytest.fixture
    def failing_limiter(self, logger):
        error = RateLimitError(
            code=ErrorCode.RATE_LIMIT_CHECK_FAILED, message="store down"
        )
        store = AsyncMock()
        store.increment.return_value = Failure(error=error)
        store.get.return_value = Failure(error=error)
        return RateLimiter(store, logger)

    async def test_check_failure(self, failing_limiter, logger):
        result = await failing_limiter.check_rate_limit("ip:1", "login", LOGIN)

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.RATE_LIMIT_CHECK_FAILED
        assert logger.error.call_args.args[0] == "rate_limit_store_failed"

    async def test_block_check_failure(self, failing_limiter):
        result = await failing_limiter.is_blocked("ip:1", "login", LOGIN)

        assert isinstance(result, Failure)
