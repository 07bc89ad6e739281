"""Rate limiter service.

Fixed-window limiting per ``(identifier, endpoint)`` on top of an injected
``RateLimitStoreProtocol``. The store performs the atomic count; this
service turns counters into allow/deny decisions.

State per key:
    no record -> within window, under limit -> within window, over limit
    -> window elapsed (behaves like no record)

A denial is a normal ``Success(RateLimitResult(allowed=False))``. Only a
store fault is a ``Failure(RateLimitError)``.
"""

from datetime import UTC, datetime, timedelta

from starlette.requests import HTTPConnection

from gatekeeper.core.fingerprinting import get_client_ip
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.errors import RateLimitError
from gatekeeper.domain.protocols import LoggerProtocol, RateLimitStoreProtocol
from gatekeeper.domain.value_objects.rate_limit import (
    RateLimitConfig,
    RateLimitCounter,
    RateLimitResult,
)

DEFAULT_BLOCK_DURATION = timedelta(hours=1)


def get_client_identifier(connection: HTTPConnection, user_id: int | None = None) -> str:
    """Counter identity: ``user:<id>`` when authenticated, else ``ip:<addr>``."""
    if user_id is not None:
        return f"user:{user_id}"
    return f"ip:{get_client_ip(connection)}"


class RateLimiter:
    """Allow/deny decisions over a rate limit store.

    Args:
        store: Counter storage (database, memory or redis).
        logger: Structured logger.
        retention: Idle counters older than this are removed by cleanup.
    """

    def __init__(
        self,
        store: RateLimitStoreProtocol,
        logger: LoggerProtocol,
        retention: timedelta = timedelta(hours=24),
    ) -> None:
        self._store = store
        self._logger = logger
        self._retention = retention

    async def check_rate_limit(
        self,
        identifier: str,
        endpoint: str,
        config: RateLimitConfig,
    ) -> Result[RateLimitResult, RateLimitError]:
        """Count this attempt and decide.

        The n-th attempt in a window is allowed iff ``n <= max_attempts``;
        ``remaining = max(0, max_attempts - n)``.
        """
        now = datetime.now(UTC)
        match await self._store.increment(
            identifier=identifier, endpoint=endpoint, window=config.window, now=now
        ):
            case Failure(error=error):
                self._logger.error(
                    "rate_limit_store_failed",
                    identifier=identifier,
                    endpoint=endpoint,
                    reason=error.message,
                )
                return Failure(error=error)
            case Success(value=counter):
                pass

        result = _evaluate(counter, config)
        if not result.allowed:
            self._logger.warning(
                "rate_limit_exceeded",
                identifier=identifier,
                endpoint=endpoint,
                attempts=result.total_attempts,
                limit=result.limit,
            )
        return Success(value=result)

    async def get_rate_limit_status(
        self,
        identifier: str,
        endpoint: str,
        config: RateLimitConfig,
    ) -> Result[RateLimitResult, RateLimitError]:
        """Current standing without counting an attempt."""
        now = datetime.now(UTC)
        match await self._store.get(identifier=identifier, endpoint=endpoint):
            case Failure(error=error):
                return Failure(error=error)
            case Success(value=counter):
                pass

        if counter is None or counter.is_window_expired(window=config.window, now=now):
            return Success(
                value=RateLimitResult(
                    allowed=True,
                    remaining=config.max_attempts,
                    reset_at=now + config.window,
                    total_attempts=0,
                    limit=config.max_attempts,
                )
            )
        return Success(value=_evaluate(counter, config))

    async def is_blocked(
        self,
        identifier: str,
        endpoint: str,
        config: RateLimitConfig,
    ) -> Result[bool, RateLimitError]:
        """Whether the key is blocked right now.

        Blocked means an explicit block that has not ended, or an over-limit
        attempt (``attempts > max_attempts``) within the last
        ``config.block_duration``. Configurations without a block duration
        only honour explicit blocks.
        """
        match await self.check_block(identifier, endpoint, config):
            case Failure(error=error):
                return Failure(error=error)
            case Success(value=denial):
                return Success(value=denial is not None)

    async def check_block(
        self,
        identifier: str,
        endpoint: str,
        config: RateLimitConfig,
    ) -> Result[RateLimitResult | None, RateLimitError]:
        """The denial to return while the key is blocked, else None.

        The denial's ``reset_at`` is when the block ends.
        """
        now = datetime.now(UTC)
        match await self._store.get(identifier=identifier, endpoint=endpoint):
            case Failure(error=error):
                return Failure(error=error)
            case Success(value=counter):
                pass

        if counter is None:
            return Success(value=None)

        ends_at: datetime | None = None
        if counter.blocked_until is not None and counter.blocked_until > now:
            ends_at = counter.blocked_until
        elif (
            config.block_duration is not None
            and counter.attempts > config.max_attempts
            and now - counter.last_attempt_at < config.block_duration
        ):
            ends_at = counter.last_attempt_at + config.block_duration

        if ends_at is None:
            return Success(value=None)
        return Success(
            value=RateLimitResult(
                allowed=False,
                remaining=0,
                reset_at=ends_at,
                total_attempts=counter.attempts,
                limit=config.max_attempts,
            )
        )

    async def block_identifier(
        self,
        identifier: str,
        endpoint: str,
        duration: timedelta = DEFAULT_BLOCK_DURATION,
    ) -> Result[datetime, RateLimitError]:
        """Administratively block a key.

        Returns:
            When the block ends.
        """
        now = datetime.now(UTC)
        until = now + duration
        match await self._store.block(
            identifier=identifier, endpoint=endpoint, until=until, now=now
        ):
            case Failure(error=error):
                return Failure(error=error)
            case Success():
                self._logger.warning(
                    "rate_limit_identifier_blocked",
                    identifier=identifier,
                    endpoint=endpoint,
                    blocked_until=until.isoformat(),
                )
                return Success(value=until)

    async def reset_rate_limit(
        self, identifier: str, endpoint: str
    ) -> Result[None, RateLimitError]:
        """Forget the key's counter and any block."""
        result = await self._store.reset(identifier=identifier, endpoint=endpoint)
        if isinstance(result, Success):
            self._logger.info(
                "rate_limit_reset", identifier=identifier, endpoint=endpoint
            )
        return result

    async def cleanup_rate_limit_records(
        self, older_than: timedelta | None = None
    ) -> Result[int, RateLimitError]:
        """Remove counters idle for longer than ``older_than`` (default retention)."""
        cutoff = datetime.now(UTC) - (older_than or self._retention)
        result = await self._store.cleanup(older_than=cutoff)
        if isinstance(result, Success) and result.value:
            self._logger.info("rate_limit_records_cleaned", count=result.value)
        return result


def _evaluate(counter: RateLimitCounter, config: RateLimitConfig) -> RateLimitResult:
    allowed = counter.attempts <= config.max_attempts
    reset_at = counter.window_start + config.window
    if not allowed:
        # A denial lasts as long as the block check will keep denying.
        if config.block_duration is not None:
            reset_at = max(reset_at, counter.last_attempt_at + config.block_duration)
        if counter.blocked_until is not None:
            reset_at = max(reset_at, counter.blocked_until)
    return RateLimitResult(
        allowed=allowed,
        remaining=max(0, config.max_attempts - counter.attempts),
        reset_at=reset_at,
        total_attempts=counter.attempts,
        limit=config.max_attempts,
    )
