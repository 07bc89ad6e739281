"""Multi-factor authentication service.

TOTP (RFC 6238) via pyotp with 30 second steps and one step of drift either
way. Enrollment is two-phase: ``generate_mfa_secret`` stores a pending
secret and ``enable_mfa`` switches it on once the user proves their
authenticator produces valid codes.

Backup codes are 8 characters from ``A-Z0-9``, stored as SHA-256 hashes and
matched case-insensitively. Each works once.
"""

import secrets
import string
from datetime import UTC, datetime

import pyotp
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import ValidationError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities.mfa import MfaSetup, MfaStatus
from gatekeeper.domain.enums import SecurityAction
from gatekeeper.domain.protocols import LoggerProtocol
from gatekeeper.domain.value_objects.device import RequestMetadata
from gatekeeper.infrastructure.persistence.repositories import MfaSecretRepository
from gatekeeper.infrastructure.security.token_utilities import hash_token
from gatekeeper.services.security_audit_service import SecurityAuditService

BACKUP_CODE_LENGTH = 8
BACKUP_CODE_ALPHABET = string.ascii_uppercase + string.digits
TOTP_VALID_WINDOW = 1


def generate_backup_codes(count: int) -> list[str]:
    """``count`` random backup codes."""
    return [
        "".join(secrets.choice(BACKUP_CODE_ALPHABET) for _ in range(BACKUP_CODE_LENGTH))
        for _ in range(count)
    ]


def verify_totp(secret: str, code: str, at: datetime | None = None) -> bool:
    """Whether ``code`` is valid for ``secret`` at ``at`` (default: now).

    Codes from the previous and next 30 second step are accepted too.

    Example:
        >>> secret = pyotp.random_base32()
        >>> verify_totp(secret, pyotp.TOTP(secret).now())
        True
    """
    candidate = code.replace(" ", "")
    if not candidate.isdigit():
        return False
    return pyotp.TOTP(secret).verify(
        candidate, for_time=at, valid_window=TOTP_VALID_WINDOW
    )


def _not_configured() -> ValidationError:
    return ValidationError(
        code=ErrorCode.MFA_NOT_CONFIGURED,
        message="MFA has not been set up for this user",
    )


class MfaService:
    """TOTP enrollment, verification and backup codes.

    Args:
        session: Request database session.
        audit: Audit service for enable, disable and backup code events.
        logger: Structured logger.
        issuer: Label authenticator apps show next to the account.
        backup_code_count: Codes generated per setup or regeneration.
    """

    def __init__(
        self,
        session: AsyncSession,
        audit: SecurityAuditService,
        logger: LoggerProtocol,
        issuer: str = "Gatekeeper",
        backup_code_count: int = 8,
    ) -> None:
        self._secrets = MfaSecretRepository(session)
        self._audit = audit
        self._logger = logger
        self._issuer = issuer
        self._backup_code_count = backup_code_count

    async def generate_mfa_secret(
        self, user_id: int, email: str
    ) -> Result[MfaSetup, ValidationError]:
        """Start (or restart) enrollment with a new secret and backup codes.

        A pending enrollment is replaced. An enabled one must be disabled
        first.

        Returns:
            Success(MfaSetup) with the secret, the ``otpauth://`` URI for QR
            rendering and the plain backup codes, or
            Failure(ValidationError) if MFA is already enabled.
        """
        existing = await self._secrets.find_by_user(user_id)
        if existing is not None and existing.is_enabled:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.MFA_ALREADY_ENABLED,
                    message="MFA is already enabled",
                )
            )

        secret = pyotp.random_base32()
        backup_codes = generate_backup_codes(self._backup_code_count)
        await self._secrets.save_pending(
            user_id=user_id,
            secret=secret,
            backup_code_hashes=[hash_token(c) for c in backup_codes],
        )

        self._logger.info("mfa_setup_started", user_id=user_id)
        return Success(
            value=MfaSetup(
                secret=secret,
                provisioning_uri=pyotp.TOTP(secret).provisioning_uri(
                    name=email, issuer_name=self._issuer
                ),
                backup_codes=backup_codes,
            )
        )

    async def enable_mfa(
        self,
        user_id: int,
        code: str,
        metadata: RequestMetadata | None = None,
    ) -> Result[None, ValidationError]:
        """Confirm a pending enrollment with a current TOTP code."""
        record = await self._secrets.find_by_user(user_id)
        if record is None:
            return Failure(error=_not_configured())
        if record.is_enabled:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.MFA_ALREADY_ENABLED,
                    message="MFA is already enabled",
                )
            )

        now = datetime.now(UTC)
        if not verify_totp(record.secret, code, now):
            self._logger.warning("mfa_enable_rejected", user_id=user_id)
            return Failure(
                error=ValidationError(
                    code=ErrorCode.INVALID_MFA_CODE,
                    message="Invalid authentication code",
                    field="code",
                )
            )

        await self._secrets.enable(user_id, now)
        self._logger.info("mfa_enabled", user_id=user_id)
        await self._record(user_id, SecurityAction.MFA_ENABLED, {}, metadata)
        return Success(value=None)

    async def disable_mfa(
        self, user_id: int, metadata: RequestMetadata | None = None
    ) -> bool:
        """Remove the enrollment. Returns False if there was none."""
        deleted = await self._secrets.delete_for_user(user_id)
        if not deleted:
            return False

        self._logger.info("mfa_disabled", user_id=user_id)
        await self._record(user_id, SecurityAction.MFA_DISABLED, {}, metadata)
        return True

    async def verify_backup_code(
        self,
        user_id: int,
        code: str,
        metadata: RequestMetadata | None = None,
    ) -> bool:
        """Spend a backup code. A code that was already used fails."""
        normalized = code.strip().upper()
        if not normalized:
            return False

        remaining = await self._secrets.consume_backup_code(
            user_id, hash_token(normalized), datetime.now(UTC)
        )
        if remaining is None:
            return False

        self._logger.info("mfa_backup_code_used", user_id=user_id, remaining=remaining)
        await self._record(
            user_id,
            SecurityAction.MFA_BACKUP_CODE_USED,
            {"remaining": remaining},
            metadata,
        )
        return True

    async def verify_mfa_code(
        self,
        user_id: int,
        code: str,
        metadata: RequestMetadata | None = None,
    ) -> bool:
        """Second-factor check for login: TOTP first, then a backup code.

        Always False when MFA is not enabled for the user.
        """
        record = await self._secrets.find_by_user(user_id)
        if record is None or not record.is_enabled:
            return False

        now = datetime.now(UTC)
        if verify_totp(record.secret, code, now):
            await self._secrets.mark_used(user_id, now)
            return True

        if await self.verify_backup_code(user_id, code, metadata):
            return True

        self._logger.warning("mfa_code_rejected", user_id=user_id)
        return False

    async def regenerate_backup_codes(
        self, user_id: int, metadata: RequestMetadata | None = None
    ) -> Result[list[str], ValidationError]:
        """Replace every backup code with a fresh set.

        Returns:
            Success(list of plain codes), or Failure(ValidationError) when
            the user has no enrollment.
        """
        backup_codes = generate_backup_codes(self._backup_code_count)
        replaced = await self._secrets.replace_backup_codes(
            user_id, [hash_token(c) for c in backup_codes]
        )
        if not replaced:
            return Failure(error=_not_configured())

        self._logger.info("mfa_backup_codes_regenerated", user_id=user_id)
        await self._record(
            user_id,
            SecurityAction.MFA_BACKUP_CODES_REGENERATED,
            {"count": len(backup_codes)},
            metadata,
        )
        return Success(value=backup_codes)

    async def get_user_mfa_status(self, user_id: int) -> MfaStatus:
        record = await self._secrets.find_by_user(user_id)
        if record is None:
            return MfaStatus(
                is_enabled=False,
                has_backup_codes=False,
                backup_codes_remaining=0,
                last_used_at=None,
            )
        return MfaStatus(
            is_enabled=record.is_enabled,
            has_backup_codes=bool(record.backup_code_hashes),
            backup_codes_remaining=len(record.backup_code_hashes),
            last_used_at=record.last_used_at,
        )

    async def user_requires_mfa(self, user_id: int) -> bool:
        record = await self._secrets.find_by_user(user_id)
        return record is not None and record.is_enabled

    async def _record(
        self,
        user_id: int,
        action: SecurityAction,
        details: dict[str, object],
        metadata: RequestMetadata | None,
    ) -> None:
        # The MFA change is already committed; a lost audit row is logged.
        result = await self._audit.log_security_event(
            user_id=user_id,
            action=action,
            resource="mfa",
            details=details,
            metadata=metadata,
        )
        if isinstance(result, Failure):
            self._logger.error(
                "mfa_audit_failed",
                user_id=user_id,
                action=action.value,
                reason=result.error.message,
            )
