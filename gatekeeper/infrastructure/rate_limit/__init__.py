"""Rate limit stores and named configurations."""

from gatekeeper.infrastructure.rate_limit.config import RATE_LIMITS, RateLimitName
from gatekeeper.infrastructure.rate_limit.database_store import (
    DatabaseRateLimitStore,
)
from gatekeeper.infrastructure.rate_limit.memory_store import MemoryRateLimitStore
from gatekeeper.infrastructure.rate_limit.redis_store import RedisRateLimitStore

__all__ = [
    "DatabaseRateLimitStore",
    "MemoryRateLimitStore",
    "RATE_LIMITS",
    "RateLimitName",
    "RedisRateLimitStore",
]
