"""Rate limit error types.

Used when the counter store cannot be read or written.

Note that a rate limit DENIAL is NOT an error: it is a successful check that
returns ``allowed=False``. This error class is for store failures only, and
those are surfaced to the caller instead of being turned into an allow or a
deny.

Usage:
    from gatekeeper.domain.errors import RateLimitError
    from gatekeeper.core.enums import ErrorCode
    from gatekeeper.core.result import Failure

    return Failure(
        error=RateLimitError(
            code=ErrorCode.RATE_LIMIT_CHECK_FAILED,
            message="Failed to check rate limit: connection lost",
        )
    )
"""

from dataclasses import dataclass

from gatekeeper.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitError(DomainError):
    """Rate limit store failure.

    Attributes:
        code: ErrorCode enum (RATE_LIMIT_CHECK_FAILED, etc.).
        message: Human-readable message.
        details: Additional context (endpoint, identifier, error_type).
    """

    pass  # Inherits all fields from DomainError
