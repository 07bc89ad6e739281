"""Audit trail error types.

Used when writing or reading the security audit log fails.

Usage:
    from gatekeeper.domain.errors import AuditError
    from gatekeeper.core.enums import ErrorCode
    from gatekeeper.core.result import Failure

    return Failure(
        error=AuditError(
            code=ErrorCode.AUDIT_RECORD_FAILED,
            message="Failed to record audit entry: database connection lost",
        )
    )
"""

from dataclasses import dataclass

from gatekeeper.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class AuditError(DomainError):
    """Audit store failure.

    Attributes:
        code: ErrorCode enum (AUDIT_RECORD_FAILED, AUDIT_QUERY_FAILED).
        message: Human-readable message.
        details: Additional context (action, error_type).
    """

    pass  # Inherits all fields from DomainError
