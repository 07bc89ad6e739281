"""Rate limit store backends selectable from configuration."""

from enum import Enum


class RateLimitBackend(str, Enum):
    """Where rate limit counters live.

    DATABASE: Durable rows in the relational store (default).
    MEMORY: Process-local dictionary, lost on restart.
    REDIS: Shared Redis hash updated by an atomic Lua script.
    """

    DATABASE = "database"
    MEMORY = "memory"
    REDIS = "redis"
