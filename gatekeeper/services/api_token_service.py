"""API token service.

Issues long-lived opaque tokens bound to a user and a scope set. Only the
SHA-256 hash of a token is stored; the raw value is returned once by
``create_api_token`` and cannot be recovered afterwards.

Token format: ``<prefix>_<url-safe random>`` (e.g. ``gk_Zx3...``).
"""

from collections.abc import Collection
from datetime import UTC, datetime, timedelta

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import ValidationError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities.api_token import (
    ApiToken,
    IssuedApiToken,
    VerifiedApiToken,
)
from gatekeeper.domain.enums import WILDCARD_SCOPES, SecurityAction
from gatekeeper.domain.protocols import LoggerProtocol
from gatekeeper.domain.value_objects.device import RequestMetadata
from gatekeeper.infrastructure.persistence.repositories import ApiTokenRepository
from gatekeeper.infrastructure.persistence.serialization import validate_scopes
from gatekeeper.infrastructure.security.token_utilities import (
    generate_secure_token,
    hash_token,
)
from gatekeeper.services.security_audit_service import SecurityAuditService

MAX_TOKEN_NAME_LENGTH = 100


def has_scope(granted_scopes: Collection[str], required_scope: str) -> bool:
    """Whether the granted scopes satisfy ``required_scope``.

    A wildcard (``*`` or ``admin:*``) satisfies anything; otherwise the scope
    must be granted exactly.

    Example:
        >>> has_scope(["*"], "users:write")
        True
        >>> has_scope(["profile:read"], "profile:write")
        False
    """
    if any(scope in WILDCARD_SCOPES for scope in granted_scopes):
        return True
    return required_scope in granted_scopes


class ApiTokenService:
    """Issue, verify, list and revoke API tokens.

    Args:
        session: Request database session.
        audit: Audit service for issuance and revocation events.
        logger: Structured logger.
        token_prefix: Prefix for generated tokens.
    """

    def __init__(
        self,
        session: AsyncSession,
        audit: SecurityAuditService,
        logger: LoggerProtocol,
        token_prefix: str = "gk",
    ) -> None:
        self._tokens = ApiTokenRepository(session)
        self._audit = audit
        self._logger = logger
        self._token_prefix = token_prefix

    async def create_api_token(
        self,
        user_id: int,
        *,
        name: str,
        scopes: list[str] | None = None,
        expires_in_days: int | None = None,
        metadata: RequestMetadata | None = None,
    ) -> Result[IssuedApiToken, ValidationError]:
        """Issue a token.

        Args:
            user_id: Owning user.
            name: Human label (1-100 characters).
            scopes: Granted scopes (``*`` or ``resource:action``).
            expires_in_days: Lifetime; None issues a non-expiring token.
            metadata: Client context for the audit event.

        Returns:
            Success(IssuedApiToken) carrying the raw token, or
            Failure(ValidationError) for a bad name, scope or lifetime.
        """
        clean_name = name.strip()
        if not clean_name or len(clean_name) > MAX_TOKEN_NAME_LENGTH:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.INVALID_TOKEN_NAME,
                    message=f"Token name must be 1-{MAX_TOKEN_NAME_LENGTH} characters",
                    field="name",
                )
            )
        if expires_in_days is not None and expires_in_days < 1:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.VALIDATION_FAILED,
                    message="expires_in_days must be at least 1",
                    field="expires_in_days",
                )
            )
        try:
            granted = validate_scopes(scopes or [])
        except PydanticValidationError:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.INVALID_SCOPE,
                    message="Scopes must be '*' or 'resource:action'",
                    field="scopes",
                )
            )

        now = datetime.now(UTC)
        expires_at = (
            now + timedelta(days=expires_in_days) if expires_in_days is not None else None
        )
        raw_token = f"{self._token_prefix}_{generate_secure_token()}"

        token = await self._tokens.create(
            user_id=user_id,
            name=clean_name,
            token_hash=hash_token(raw_token),
            scopes=granted,
            expires_at=expires_at,
        )

        self._logger.info(
            "api_token_created", user_id=user_id, token_id=token.id, scopes=granted
        )
        await self._record(
            user_id,
            SecurityAction.API_TOKEN_CREATED,
            {"tokenId": token.id, "name": clean_name, "scopes": granted},
            metadata,
        )

        return Success(
            value=IssuedApiToken(
                token=raw_token,
                token_id=token.id,
                name=token.name,
                scopes=token.scopes,
                expires_at=token.expires_at,
            )
        )

    async def verify_api_token(self, raw_token: str) -> VerifiedApiToken | None:
        """Resolve a presented token to its owner and scopes.

        Unknown and expired tokens both return None through the same single
        lookup. A successful verification stamps ``last_used_at``.
        """
        if not raw_token:
            return None

        now = datetime.now(UTC)
        found = await self._tokens.find_active_by_hash(hash_token(raw_token), now)
        if found is None:
            return None

        token, user = found
        await self._tokens.mark_used(token.id, now)
        return VerifiedApiToken(user=user, token_id=token.id, scopes=token.scopes)

    async def list_api_tokens(self, user_id: int) -> list[ApiToken]:
        """The user's tokens (metadata only), newest first."""
        return await self._tokens.list_for_user(user_id)

    async def revoke_api_token(
        self,
        user_id: int,
        token_id: int,
        metadata: RequestMetadata | None = None,
    ) -> bool:
        """Delete a token if ``user_id`` owns it.

        Returns:
            True when a token was revoked; False when it does not exist or
            belongs to someone else.
        """
        revoked = await self._tokens.delete_for_user(token_id, user_id)
        if not revoked:
            self._logger.warning(
                "api_token_revoke_rejected", user_id=user_id, token_id=token_id
            )
            return False

        self._logger.info("api_token_revoked", user_id=user_id, token_id=token_id)
        await self._record(
            user_id,
            SecurityAction.API_TOKEN_REVOKED,
            {"tokenId": token_id},
            metadata,
        )
        return True

    async def cleanup_expired_api_tokens(self) -> int:
        """Delete expired tokens. Returns the number removed."""
        deleted = await self._tokens.delete_expired(datetime.now(UTC))
        if deleted:
            self._logger.info("expired_api_tokens_removed", count=deleted)
        return deleted

    async def _record(
        self,
        user_id: int,
        action: SecurityAction,
        details: dict[str, object],
        metadata: RequestMetadata | None,
    ) -> None:
        # The token change is already committed; a lost audit row is logged.
        result = await self._audit.log_security_event(
            user_id=user_id,
            action=action,
            resource="api_token",
            details=details,
            metadata=metadata,
        )
        if isinstance(result, Failure):
            self._logger.error(
                "api_token_audit_failed",
                user_id=user_id,
                action=action.value,
                reason=result.error.message,
            )
