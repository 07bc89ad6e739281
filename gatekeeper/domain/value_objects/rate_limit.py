"""Rate limit value objects.

Fixed-window counting: the first attempt for an ``(identifier, endpoint)``
pair opens a window, later attempts increment the counter, and once
``now - window_start >= window`` the next attempt opens a fresh window.

Usage:
    from datetime import timedelta
    from gatekeeper.domain.value_objects import RateLimitConfig

    login = RateLimitConfig(
        window=timedelta(minutes=15),
        max_attempts=5,
        block_duration=timedelta(minutes=30),
    )
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitConfig:
    """Rate limit configuration for one named endpoint class.

    Attributes:
        window: Length of the counting window.
        max_attempts: Attempts allowed per window (inclusive).
        block_duration: How long an over-limit identifier stays blocked.
            None disables blocking for this configuration.

    Raises:
        ValueError: If window is not positive or max_attempts < 1.
    """

    window: timedelta
    max_attempts: int
    block_duration: timedelta | None = None

    def __post_init__(self) -> None:
        """Validate configuration.

        Raises:
            ValueError: If any field is out of range.
        """
        if self.window <= timedelta(0):
            raise ValueError(f"window must be positive, got {self.window}")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.block_duration is not None and self.block_duration <= timedelta(0):
            raise ValueError(
                f"block_duration must be positive, got {self.block_duration}"
            )

    @property
    def window_ms(self) -> int:
        """Window length in milliseconds."""
        return int(self.window.total_seconds() * 1000)


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitCounter:
    """Stored counter state for one ``(identifier, endpoint)`` key.

    Attributes:
        attempts: Attempts counted in the current window.
        window_start: When the current window opened.
        last_attempt_at: Most recent counted attempt.
        blocked_until: Explicit block expiry, if any.
    """

    attempts: int
    window_start: datetime
    last_attempt_at: datetime
    blocked_until: datetime | None = None

    def is_window_expired(self, *, window: timedelta, now: datetime) -> bool:
        """Whether the window has elapsed (the record is logically reset)."""
        return now - self.window_start >= window


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitResult:
    """Outcome of a rate limit check.

    Attributes:
        allowed: Whether the attempt is within the limit.
        remaining: Attempts left in the window, never negative.
        reset_at: When the current window ends.
        total_attempts: Attempts counted in the window, this one included.
        limit: Configured max attempts.
    """

    allowed: bool
    remaining: int
    reset_at: datetime
    total_attempts: int
    limit: int

    def retry_after_seconds(self, now: datetime) -> int:
        """Whole seconds until the window resets (at least 1)."""
        return max(1, math.ceil((self.reset_at - now).total_seconds()))

    def to_headers(self, now: datetime) -> dict[str, str]:
        """HTTP headers describing this result.

        Returns:
            X-RateLimit-Limit, X-RateLimit-Remaining, X-RateLimit-Reset
            (Unix seconds) and, when denied, Retry-After.
        """
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at.timestamp())),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after_seconds(now))
        return headers
