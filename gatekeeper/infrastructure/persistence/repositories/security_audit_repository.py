"""SecurityAuditRepository - append-only access to security_audit_logs.

Exposes no update or delete operations.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.domain.entities.security_event import SecurityEvent
from gatekeeper.infrastructure.persistence.models.security_audit_log import (
    SecurityAuditLogModel,
)
from gatekeeper.infrastructure.persistence.serialization import (
    dump_details,
    load_details,
)


class SecurityAuditRepository:
    """Append and read security audit events.

    Attributes:
        session: SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def append(
        self,
        *,
        user_id: int | None,
        action: str,
        resource: str | None,
        ip_address: str | None,
        user_agent: str | None,
        device_fingerprint: str | None,
        details: dict[str, Any] | None,
        success: bool,
    ) -> SecurityEvent:
        """Append one audit event and commit it.

        Raises:
            pydantic.ValidationError: If details hold non-JSON values.
            SQLAlchemyError: If the write fails.
        """
        model = SecurityAuditLogModel(
            user_id=user_id,
            action=action,
            resource=resource,
            ip_address=ip_address,
            user_agent=user_agent,
            device_fingerprint=device_fingerprint,
            details=dump_details(details),
            success=success,
        )
        self.session.add(model)
        await self.session.commit()
        return self._to_domain(model)

    async def list_for_user(self, user_id: int, limit: int) -> list[SecurityEvent]:
        """A user's most recent events, newest first.

        Ties on ``created_at`` are broken by id so the order is total.
        """
        stmt = (
            select(SecurityAuditLogModel)
            .where(SecurityAuditLogModel.user_id == user_id)
            .order_by(
                SecurityAuditLogModel.created_at.desc(),
                SecurityAuditLogModel.id.desc(),
            )
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    async def list_by_action(
        self, action: str, *, user_id: int | None = None, limit: int = 50
    ) -> list[SecurityEvent]:
        """Most recent events with ``action``, optionally for one user.

        ``user_id=None`` matches every row, anonymous events included.
        """
        stmt = select(SecurityAuditLogModel).where(
            SecurityAuditLogModel.action == action
        )
        if user_id is not None:
            stmt = stmt.where(SecurityAuditLogModel.user_id == user_id)
        stmt = stmt.order_by(
            SecurityAuditLogModel.created_at.desc(),
            SecurityAuditLogModel.id.desc(),
        ).limit(limit)
        result = await self.session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    def _to_domain(self, model: SecurityAuditLogModel) -> SecurityEvent:
        """Convert database model to domain entity."""
        return SecurityEvent(
            id=model.id,
            user_id=model.user_id,
            action=model.action,
            resource=model.resource,
            ip_address=model.ip_address,
            user_agent=model.user_agent,
            device_fingerprint=model.device_fingerprint,
            details=load_details(model.details),
            success=model.success,
            created_at=model.created_at,
        )
