"""Domain errors package.

Usage:
    from gatekeeper.domain.errors import AuditError, AuthenticationError, RateLimitError
"""

from gatekeeper.domain.errors.audit_error import AuditError
from gatekeeper.domain.errors.authentication_error import AuthenticationError
from gatekeeper.domain.errors.rate_limit_error import RateLimitError

__all__ = [
    "AuditError",
    "AuthenticationError",
    "RateLimitError",
]
