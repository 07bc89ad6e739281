"""Permission and scope dependencies.

Layered on top of authentication:
    - Security tiers (security_tiers.py): who is calling
    - This file: whether that caller may do this

A denial answers 403 and appends one ``permission_denied`` audit event.

Usage:
    @router.get("/users")
    async def list_users(
        current_user: CurrentUser = Depends(require_permission("user.read")),
    ): ...

    @router.get("/me")
    async def me(
        current_user: CurrentUser = Depends(require_scope("profile:read")),
    ): ...
"""

from collections.abc import Awaitable, Callable
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status

from gatekeeper.core.container import (
    get_audit_service,
    get_logger,
    get_permission_resolver,
)
from gatekeeper.core.fingerprinting import extract_request_metadata
from gatekeeper.core.result import Failure
from gatekeeper.domain.enums import CredentialKind, SecurityAction
from gatekeeper.domain.errors import AuthenticationError
from gatekeeper.domain.protocols import LoggerProtocol
from gatekeeper.presentation.middleware.auth_dependencies import CurrentUser
from gatekeeper.presentation.middleware.security_tiers import get_current_user
from gatekeeper.services import PermissionResolver, SecurityAuditService, has_scope


def require_permission(permission_name: str) -> Callable[..., Awaitable[CurrentUser]]:
    """Create a dependency that requires one permission.

    Resolution is the resolver's: override, then role. Holders of
    ``admin.manage`` pass every check.

    Raises:
        HTTPException 403: If the user lacks the permission.
    """

    async def permission_checker(
        request: Request,
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
        resolver: Annotated[PermissionResolver, Depends(get_permission_resolver)],
        audit: Annotated[SecurityAuditService, Depends(get_audit_service)],
        logger: Annotated[LoggerProtocol, Depends(get_logger)],
    ) -> CurrentUser:
        missing = await resolver.missing_permissions(
            current_user.user_id, [permission_name]
        )
        if missing:
            await _deny(
                request,
                current_user,
                audit,
                logger,
                {"permission": permission_name, "path": request.url.path},
            )
        return current_user

    return permission_checker


def require_scope(scope: str) -> Callable[..., Awaitable[CurrentUser]]:
    """Create a dependency that requires a token scope.

    Only token callers (API token or JWT) are restricted by scopes; a
    session caller acts with the full authority of its user.

    Raises:
        HTTPException 403: If the token does not carry the scope.
    """

    async def scope_checker(
        request: Request,
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
        audit: Annotated[SecurityAuditService, Depends(get_audit_service)],
        logger: Annotated[LoggerProtocol, Depends(get_logger)],
    ) -> CurrentUser:
        if current_user.credential_kind is CredentialKind.SESSION:
            return current_user
        if not has_scope(current_user.scopes, scope):
            await _deny(
                request,
                current_user,
                audit,
                logger,
                {"scope": scope, "path": request.url.path},
            )
        return current_user

    return scope_checker


async def _deny(
    request: Request,
    current_user: CurrentUser,
    audit: SecurityAuditService,
    logger: LoggerProtocol,
    details: dict[str, Any],
) -> None:
    logger.warning("permission_denied", user_id=current_user.user_id, **details)
    result = await audit.log_security_event(
        user_id=current_user.user_id,
        action=SecurityAction.PERMISSION_DENIED,
        resource="route",
        details=details,
        metadata=extract_request_metadata(request),
        success=False,
    )
    if isinstance(result, Failure):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=AuthenticationError.AUDIT_UNAVAILABLE,
        )
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=AuthenticationError.INSUFFICIENT_PERMISSIONS,
    )
