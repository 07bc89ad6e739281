"""Database-backed browser sessions.

The cookie carries a 64-character hex session id (32 random bytes). Session
rows expire after ``session_ttl`` (30 days by default); expired rows are
ignored by validation and removed by ``cleanup_expired_sessions``.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.result import Failure
from gatekeeper.domain.entities.session import Session, SessionStats
from gatekeeper.domain.entities.user import User
from gatekeeper.domain.enums import SecurityAction
from gatekeeper.domain.protocols import LoggerProtocol
from gatekeeper.domain.value_objects.device import RequestMetadata
from gatekeeper.infrastructure.persistence.repositories import (
    SessionRepository,
    UserRepository,
)
from gatekeeper.services.security_audit_service import SecurityAuditService

SESSION_ID_BYTES = 32
DEFAULT_SESSION_TTL = timedelta(days=30)


def generate_session_id() -> str:
    """64 hex characters of CSPRNG output."""
    return secrets.token_hex(SESSION_ID_BYTES)


class SessionService:
    """Create, validate and invalidate login sessions.

    Args:
        session: Request database session.
        audit: Audit service.
        logger: Structured logger.
        session_ttl: Lifetime of new and extended sessions.
    """

    def __init__(
        self,
        session: AsyncSession,
        audit: SecurityAuditService,
        logger: LoggerProtocol,
        session_ttl: timedelta = DEFAULT_SESSION_TTL,
    ) -> None:
        self._sessions = SessionRepository(session)
        self._users = UserRepository(session)
        self._audit = audit
        self._logger = logger
        self._session_ttl = session_ttl

    async def create_session(
        self, user_id: int, metadata: RequestMetadata | None = None
    ) -> Session:
        """Open a session for a user who just authenticated.

        Also stamps ``last_login_at`` and records ``session_created``.
        """
        now = datetime.now(UTC)
        created = await self._sessions.create(
            session_key=generate_session_id(),
            user_id=user_id,
            expires_at=now + self._session_ttl,
            ip_address=metadata.ip_address if metadata else None,
            user_agent=metadata.user_agent if metadata else None,
        )
        await self._users.record_login(user_id, now)

        self._logger.info("session_created", user_id=user_id)
        await self._record(
            user_id,
            SecurityAction.SESSION_CREATED,
            {"expiresAt": created.expires_at.isoformat()},
            metadata,
        )
        return created

    async def validate_session(self, session_id: str) -> tuple[Session, User] | None:
        """Resolve a cookie value to its live session and user.

        Unknown and expired ids both return None.
        """
        if not session_id:
            return None
        return await self._sessions.find_valid(session_id, datetime.now(UTC))

    async def invalidate_session(
        self, session_id: str, metadata: RequestMetadata | None = None
    ) -> bool:
        """Log out one session. Returns False if it did not exist."""
        deleted = await self._sessions.delete(session_id)
        if deleted is None:
            return False

        self._logger.info("session_invalidated", user_id=deleted.user_id)
        await self._record(
            deleted.user_id,
            SecurityAction.SESSION_INVALIDATED,
            {"reason": "logout"},
            metadata,
        )
        return True

    async def invalidate_all_user_sessions(
        self, user_id: int, metadata: RequestMetadata | None = None
    ) -> int:
        """Log the user out everywhere.

        Returns:
            Number of sessions removed.
        """
        keys = await self._sessions.delete_all_for_user(user_id)
        self._logger.info("global_logout", user_id=user_id, session_count=len(keys))
        await self._record(
            user_id,
            SecurityAction.GLOBAL_LOGOUT,
            {
                "sessionCount": len(keys),
                # Only prefixes; full ids are bearer secrets.
                "sessionIds": [key[:8] for key in keys],
            },
            metadata,
        )
        return len(keys)

    async def cleanup_expired_sessions(self) -> int:
        deleted = await self._sessions.delete_expired(datetime.now(UTC))
        if deleted:
            self._logger.info("expired_sessions_removed", count=deleted)
        return deleted

    async def get_user_active_sessions(self, user_id: int) -> list[Session]:
        """Unexpired sessions of a user, newest first."""
        return await self._sessions.list_active_for_user(user_id, datetime.now(UTC))

    async def get_user_session_stats(self, user_id: int) -> SessionStats:
        """Total and active session counts plus the creation time range."""
        return await self._sessions.stats_for_user(user_id, datetime.now(UTC))

    async def extend_session(self, session_id: str) -> datetime | None:
        """Push expiry to ``now + session_ttl``.

        Returns:
            The new expiry, or None for unknown or already expired sessions.
        """
        now = datetime.now(UTC)
        if await self._sessions.find_valid(session_id, now) is None:
            return None
        expires_at = now + self._session_ttl
        if not await self._sessions.update_expiry(session_id, expires_at):
            return None
        return expires_at

    async def _record(
        self,
        user_id: int,
        action: SecurityAction,
        details: dict[str, Any],
        metadata: RequestMetadata | None,
    ) -> None:
        result = await self._audit.log_security_event(
            user_id=user_id,
            action=action,
            resource="session",
            details=details,
            metadata=metadata,
        )
        if isinstance(result, Failure):
            self._logger.error(
                "session_audit_failed",
                user_id=user_id,
                action=action.value,
                reason=result.error.message,
            )
