"""Redis-backed rate limit store using an atomic Lua script.

Each ``(identifier, endpoint)`` key is a Redis hash updated by
``lua_scripts/fixed_window.lua`` through EVALSHA, so the window check and the
increment run as one atomic step on the Redis server. Keys expire on their
own ``retention`` after the last attempt (or after the block ends), which
replaces explicit cleanup.

Unlike a fail-open limiter, every Redis failure is returned as
``Failure(RateLimitError)``: an unreachable store is neither an allow nor a
deny.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import partial
from pathlib import Path
from typing import Any

from redis.exceptions import NoScriptError, RedisError

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.errors import RateLimitError
from gatekeeper.domain.value_objects.rate_limit import RateLimitCounter


@dataclass(slots=True)
class _LuaRefs:
    """Holds loaded Lua script SHA references."""

    fixed_window_sha: str | None = None


class RedisRateLimitStore:
    """Shared fixed-window counters in Redis.

    Args:
        redis_client: Async Redis client (``redis.asyncio.Redis``) created
            with ``decode_responses=True``.
        retention: How long an idle key survives its last attempt.
        key_prefix: Namespace for counter keys.
    """

    def __init__(
        self,
        *,
        redis_client: Any,
        retention: timedelta = timedelta(hours=24),
        key_prefix: str = "rate_limit",
    ) -> None:
        self.redis = redis_client
        self._retention_ms = _to_ms(retention)
        self._key_prefix = key_prefix
        self._lua = _LuaRefs()
        self._script_lock = asyncio.Lock()

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    async def increment(
        self,
        *,
        identifier: str,
        endpoint: str,
        window: timedelta,
        now: datetime,
    ) -> Result[RateLimitCounter, RateLimitError]:
        """Count one attempt atomically via the Lua script."""
        key = self._key(identifier, endpoint)
        window_ms = _to_ms(window)
        retention_ms = max(self._retention_ms, window_ms)
        try:
            resp = await self._run_fixed_window(
                key, _epoch_ms(now), window_ms, retention_ms
            )
        except RedisError as e:
            return Failure(
                error=_store_error(
                    ErrorCode.RATE_LIMIT_CHECK_FAILED,
                    "Failed to count rate limit attempt",
                    identifier,
                    endpoint,
                    e,
                )
            )

        attempts, window_start, last_attempt, blocked_until = (int(v) for v in resp)
        return Success(
            value=RateLimitCounter(
                attempts=attempts,
                window_start=_from_ms(window_start),
                last_attempt_at=_from_ms(last_attempt),
                blocked_until=_from_ms(blocked_until) if blocked_until >= 0 else None,
            )
        )

    async def get(
        self,
        *,
        identifier: str,
        endpoint: str,
    ) -> Result[RateLimitCounter | None, RateLimitError]:
        """Read the counter hash without counting an attempt."""
        try:
            fields: dict[str, str] = await self.redis.hgetall(
                self._key(identifier, endpoint)
            )
        except RedisError as e:
            return Failure(
                error=_store_error(
                    ErrorCode.RATE_LIMIT_CHECK_FAILED,
                    "Failed to read rate limit counter",
                    identifier,
                    endpoint,
                    e,
                )
            )

        if not fields or "window_start" not in fields:
            return Success(value=None)

        blocked_until = fields.get("blocked_until")
        return Success(
            value=RateLimitCounter(
                attempts=int(fields.get("attempts", 0)),
                window_start=_from_ms(int(fields["window_start"])),
                last_attempt_at=_from_ms(
                    int(fields.get("last_attempt", fields["window_start"]))
                ),
                blocked_until=_from_ms(int(blocked_until)) if blocked_until else None,
            )
        )

    async def block(
        self,
        *,
        identifier: str,
        endpoint: str,
        until: datetime,
        now: datetime,
    ) -> Result[None, RateLimitError]:
        """Set ``blocked_until`` and keep the key alive past the block."""
        key = self._key(identifier, endpoint)
        now_ms = _epoch_ms(now)
        until_ms = _epoch_ms(until)
        try:
            pipe = self.redis.pipeline(transaction=True)
            pipe.hsetnx(key, "window_start", now_ms)
            pipe.hsetnx(key, "attempts", 0)
            pipe.hsetnx(key, "last_attempt", now_ms)
            pipe.hset(key, "blocked_until", until_ms)
            pipe.pexpireat(key, until_ms + self._retention_ms)
            await pipe.execute()
        except RedisError as e:
            return Failure(
                error=_store_error(
                    ErrorCode.RATE_LIMIT_BLOCK_FAILED,
                    "Failed to block identifier",
                    identifier,
                    endpoint,
                    e,
                )
            )
        return Success(value=None)

    async def reset(
        self,
        *,
        identifier: str,
        endpoint: str,
    ) -> Result[None, RateLimitError]:
        """Delete the counter hash."""
        try:
            await self.redis.delete(self._key(identifier, endpoint))
        except RedisError as e:
            return Failure(
                error=_store_error(
                    ErrorCode.RATE_LIMIT_RESET_FAILED,
                    "Failed to reset rate limit",
                    identifier,
                    endpoint,
                    e,
                )
            )
        return Success(value=None)

    async def cleanup(self, *, older_than: datetime) -> Result[int, RateLimitError]:
        """No-op: keys expire through their own TTL."""
        return Success(value=0)

    # ---------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------
    def _key(self, identifier: str, endpoint: str) -> str:
        return f"{self._key_prefix}:{endpoint}:{identifier}"

    async def _run_fixed_window(
        self, key: str, now_ms: int, window_ms: int, retention_ms: int
    ) -> list[Any]:
        sha = await self._ensure_fixed_window_script()
        try:
            resp: list[Any] = await self.redis.evalsha(
                sha, 1, key, now_ms, window_ms, retention_ms
            )
        except NoScriptError:
            # Script cache flushed (Redis restart); load again and rerun.
            self._lua.fixed_window_sha = None
            sha = await self._ensure_fixed_window_script()
            resp = await self.redis.evalsha(sha, 1, key, now_ms, window_ms, retention_ms)
        return resp

    async def _ensure_fixed_window_script(self) -> str:
        """Load the fixed window Lua script into Redis and cache the SHA."""
        if self._lua.fixed_window_sha:
            return self._lua.fixed_window_sha
        async with self._script_lock:
            if self._lua.fixed_window_sha:
                return self._lua.fixed_window_sha
            script = await _read_lua_script("lua_scripts/fixed_window.lua")
            sha: str = await self.redis.script_load(script)
            self._lua.fixed_window_sha = sha
            return sha


def _to_ms(delta: timedelta) -> int:
    return int(delta.total_seconds() * 1000)


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _from_ms(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=UTC)


def _store_error(
    code: ErrorCode,
    message: str,
    identifier: str,
    endpoint: str,
    error: Exception,
) -> RateLimitError:
    return RateLimitError(
        code=code,
        message=f"{message}: {error}",
        details={
            "identifier": identifier,
            "endpoint": endpoint,
            "error_type": type(error).__name__,
        },
    )


def _read_lua_script_sync(path: Path) -> str:
    """Synchronous helper to read Lua script (called via run_in_executor)."""
    return path.read_text(encoding="utf-8")


async def _read_lua_script(rel_path: str) -> str:
    """Read a Lua script relative to this module without blocking the loop."""
    full_path = Path(__file__).parent / rel_path
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(_read_lua_script_sync, full_path))
