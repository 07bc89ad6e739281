"""Core enums package."""

from gatekeeper.core.enums.environment import Environment
from gatekeeper.core.enums.error_code import ErrorCode
from gatekeeper.core.enums.rate_limit_backend import RateLimitBackend

__all__ = [
    "Environment",
    "ErrorCode",
    "RateLimitBackend",
]
