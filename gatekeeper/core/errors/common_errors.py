"""Common error classes shared by every component.

Error Types:
- ValidationError: Input validation failures (bad scope, bad permission name)
- NotFoundError: Referenced row does not exist
- AuthorizationError: Identity is valid but not allowed

Usage:
    from gatekeeper.core.errors import ValidationError
    from gatekeeper.core.enums import ErrorCode
    from gatekeeper.core.result import Failure

    return Failure(
        error=ValidationError(
            code=ErrorCode.INVALID_SCOPE,
            message="Unknown scope format",
            field="scopes",
        )
    )
"""

from dataclasses import dataclass

from gatekeeper.core.errors.domain_error import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationError(DomainError):
    """Input validation failure.

    Attributes:
        field: Field name that failed validation.
    """

    field: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class NotFoundError(DomainError):
    """Resource not found.

    Attributes:
        resource_type: Type of resource (user, permission, device).
        resource_id: Identifier that was not found.
    """

    resource_type: str
    resource_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class AuthorizationError(DomainError):
    """Authenticated identity lacks the required permission.

    Attributes:
        permission: Permission name that was missing.
    """

    permission: str | None = None
