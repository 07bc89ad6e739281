"""Multi-tier route security.

Tiers (each includes everything below it):
    STANDARD  session cookie or bearer credential
    HIGH      + HTTP Basic ``email:password`` for the same user
    CRITICAL  + every required permission

Denials:
    missing primary credential  401 (API) / 302 to login?redirectTo= (UI)
    missing or bad Basic        401 + WWW-Authenticate: Basic realm="..."
    invalid primary credential  401
    missing permission          403

Every denial appends exactly one ``auth_failed`` audit event carrying the
tier, the reason and the path; HIGH and CRITICAL successes append one
``route_access`` event. A tier that cannot write its audit event answers 503
instead of proceeding.

Where the Basic credential comes from:
    session cookie caller  ->  Authorization: Basic ...
    bearer caller          ->  settings.secondary_auth_header (Authorization
                               already carries the bearer token)

Usage:
    @router.delete("/admin/users/{user_id}")
    async def delete_user(
        current_user: CurrentUser = Depends(SecurityPresets.USER_MANAGEMENT),
    ): ...
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Annotated, Any
from urllib.parse import quote

from fastapi import Depends, HTTPException, Request, status

from gatekeeper.core.container import (
    get_audit_service,
    get_basic_auth_verifier,
    get_logger,
    get_permission_resolver,
    get_settings,
)
from gatekeeper.core.fingerprinting import extract_request_metadata
from gatekeeper.core.result import Failure
from gatekeeper.domain.enums import (
    AuthFailureReason,
    AuthFlow,
    CredentialKind,
    SecurityAction,
    SecurityLevel,
)
from gatekeeper.domain.errors import AuthenticationError
from gatekeeper.domain.protocols import LoggerProtocol
from gatekeeper.domain.value_objects.device import RequestMetadata
from gatekeeper.presentation.middleware.auth_dependencies import (
    CurrentUser,
    IdentityResolver,
    extract_primary_credential,
    get_identity_resolver,
)
from gatekeeper.presentation.middleware.request_context import detect_auth_flow
from gatekeeper.services import (
    BasicAuthVerifier,
    PermissionResolver,
    SecurityAuditService,
    parse_basic_authorization,
)


class _TierGuard:
    """Per-request evaluation of one tier."""

    def __init__(
        self,
        *,
        level: SecurityLevel,
        request: Request,
        audit: SecurityAuditService,
        logger: LoggerProtocol,
    ) -> None:
        self.level = level
        self.request = request
        self.audit = audit
        self.logger = logger
        self.metadata: RequestMetadata = extract_request_metadata(request)

    async def deny(
        self,
        *,
        reason: AuthFailureReason,
        status_code: int,
        detail: str,
        user_id: int | None = None,
        headers: dict[str, str] | None = None,
        extra: dict[str, Any] | None = None,
    ) -> HTTPException:
        details: dict[str, Any] = {
            "tier": self.level.value,
            "reason": reason.value,
            "path": self.request.url.path,
        }
        if extra:
            details.update(extra)

        self.logger.warning(
            "route_access_denied",
            tier=self.level.value,
            reason=reason.value,
            path=self.request.url.path,
            user_id=user_id,
        )
        await self.record(
            SecurityAction.AUTH_FAILED, user_id=user_id, details=details, success=False
        )
        return HTTPException(status_code=status_code, detail=detail, headers=headers)

    async def record(
        self,
        action: SecurityAction,
        *,
        user_id: int | None,
        details: dict[str, Any],
        success: bool,
    ) -> None:
        result = await self.audit.log_security_event(
            user_id=user_id,
            action=action,
            resource="route",
            details=details,
            metadata=self.metadata,
            success=success,
        )
        if isinstance(result, Failure):
            self.logger.critical(
                "security_audit_unavailable",
                tier=self.level.value,
                path=self.request.url.path,
                reason=result.error.message,
            )
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=AuthenticationError.AUDIT_UNAVAILABLE,
            )


def require_security(
    level: SecurityLevel,
    permissions: Sequence[str] = (),
) -> Callable[..., Awaitable[CurrentUser]]:
    """Create a dependency enforcing a security tier.

    Args:
        level: Tier to enforce.
        permissions: Permissions the CRITICAL tier requires. Lower tiers
            carry them for documentation only.

    Returns:
        Dependency resolving to the authenticated ``CurrentUser``.
    """
    required = tuple(permissions)

    async def tier_guard(
        request: Request,
        resolver: Annotated[IdentityResolver, Depends(get_identity_resolver)],
        basic_auth: Annotated[BasicAuthVerifier, Depends(get_basic_auth_verifier)],
        permission_resolver: Annotated[
            PermissionResolver, Depends(get_permission_resolver)
        ],
        audit: Annotated[SecurityAuditService, Depends(get_audit_service)],
        logger: Annotated[LoggerProtocol, Depends(get_logger)],
    ) -> CurrentUser:
        settings = get_settings()
        guard = _TierGuard(level=level, request=request, audit=audit, logger=logger)

        credential = extract_primary_credential(request, settings.session_cookie_name)
        if credential is None:
            if detect_auth_flow(request) is AuthFlow.UI:
                target = quote(str(request.url.path), safe="/")
                raise await guard.deny(
                    reason=AuthFailureReason.MISSING_CREDENTIAL,
                    status_code=status.HTTP_302_FOUND,
                    detail=AuthenticationError.CREDENTIAL_REQUIRED,
                    headers={"Location": f"{settings.login_path}?redirectTo={target}"},
                )
            raise await guard.deny(
                reason=AuthFailureReason.MISSING_CREDENTIAL,
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=AuthenticationError.CREDENTIAL_REQUIRED,
                headers={"WWW-Authenticate": "Bearer"},
            )

        current_user = await resolver.resolve(credential)
        if current_user is None:
            invalid_detail = (
                AuthenticationError.INVALID_SESSION
                if credential.kind is CredentialKind.SESSION
                else AuthenticationError.INVALID_TOKEN
            )
            raise await guard.deny(
                reason=AuthFailureReason.INVALID_CREDENTIAL,
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=invalid_detail,
                headers={"WWW-Authenticate": "Bearer"},
            )

        if level.requires_secondary_factor():
            challenge = {"WWW-Authenticate": f'Basic realm="{settings.basic_auth_realm}"'}
            header_name = (
                "authorization"
                if credential.kind is CredentialKind.SESSION
                else settings.secondary_auth_header
            )
            basic = parse_basic_authorization(request.headers.get(header_name))
            if basic is None:
                raise await guard.deny(
                    reason=AuthFailureReason.MISSING_CREDENTIAL,
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail=AuthenticationError.BASIC_AUTH_REQUIRED,
                    user_id=current_user.user_id,
                    headers=challenge,
                    extra={"factor": "basic"},
                )

            basic_user = await basic_auth.verify(basic)
            if basic_user is None or basic_user.id != current_user.user_id:
                raise await guard.deny(
                    reason=AuthFailureReason.INVALID_CREDENTIAL,
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail=(
                        AuthenticationError.INVALID_CREDENTIALS
                        if basic_user is None
                        else AuthenticationError.IDENTITY_MISMATCH
                    ),
                    user_id=current_user.user_id,
                    headers=challenge,
                    extra={"factor": "basic"},
                )

        if level.requires_permissions() and required:
            missing = await permission_resolver.missing_permissions(
                current_user.user_id, required
            )
            if missing:
                raise await guard.deny(
                    reason=AuthFailureReason.INSUFFICIENT_PERMISSION,
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=AuthenticationError.INSUFFICIENT_PERMISSIONS,
                    user_id=current_user.user_id,
                    extra={"missingPermissions": missing},
                )

        if level.requires_secondary_factor():
            await guard.record(
                SecurityAction.ROUTE_ACCESS,
                user_id=current_user.user_id,
                details={
                    "tier": level.value,
                    "path": request.url.path,
                    "credential": current_user.credential_kind.value,
                },
                success=True,
            )
        return current_user

    return tier_guard


class SecurityPresets:
    """Named tier configurations for common route groups."""

    STANDARD = require_security(SecurityLevel.STANDARD)
    PROFILE = require_security(SecurityLevel.HIGH, ["profile.read"])
    PROFILE_EDIT = require_security(SecurityLevel.HIGH, ["profile.update"])
    ADMIN = require_security(SecurityLevel.CRITICAL, ["admin.manage"])
    USER_MANAGEMENT = require_security(
        SecurityLevel.CRITICAL, ["user.read", "user.update", "user.delete"]
    )
    SYSTEM_ADMIN = require_security(SecurityLevel.CRITICAL, ["admin.manage"])


get_current_user = SecurityPresets.STANDARD

AuthenticatedUser = Annotated[CurrentUser, Depends(get_current_user)]
