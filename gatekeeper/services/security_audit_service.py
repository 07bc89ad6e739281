"""Security audit service.

Appends audit events, reads them back and derives suspicious activity
heuristics from them.

Store failures come back as ``Failure(AuditError)``; the caller decides
whether an unrecorded event must stop the request (the security tiers fail
closed) or only be logged (post-commit bookkeeping).

Usage:
    audit = SecurityAuditService(session, logger)
    result = await audit.log_security_event(
        user_id=None,
        action=SecurityAction.AUTH_FAILED,
        resource="route",
        details={"tier": "critical", "reason": "missing_credential"},
        metadata=extract_request_metadata(request),
        success=False,
    )
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities.security_event import SecurityEvent
from gatekeeper.domain.enums import SecurityAction
from gatekeeper.domain.errors import AuditError
from gatekeeper.domain.protocols import LoggerProtocol
from gatekeeper.domain.value_objects.device import RequestMetadata
from gatekeeper.domain.value_objects.suspicious_activity import (
    ALL_CLEAR_MESSAGE,
    MULTIPLE_LOCATIONS_MESSAGE,
    RECENT_FAILURES_MESSAGE,
    UNUSUAL_DEVICES_MESSAGE,
    SuspiciousActivityPolicy,
    SuspiciousActivityReport,
)
from gatekeeper.infrastructure.persistence.repositories import (
    SecurityAuditRepository,
    TrustedDeviceRepository,
)


class SecurityAuditService:
    """Append-only audit trail plus anomaly heuristics.

    Args:
        session: Request database session.
        logger: Structured logger.
        policy: Suspicious activity thresholds.
    """

    def __init__(
        self,
        session: AsyncSession,
        logger: LoggerProtocol,
        policy: SuspiciousActivityPolicy | None = None,
    ) -> None:
        self._session = session
        self._events = SecurityAuditRepository(session)
        self._devices = TrustedDeviceRepository(session)
        self._logger = logger
        self._policy = policy or SuspiciousActivityPolicy()

    async def log_security_event(
        self,
        *,
        user_id: int | None,
        action: SecurityAction | str,
        resource: str | None = None,
        details: dict[str, Any] | None = None,
        metadata: RequestMetadata | None = None,
        success: bool = True,
    ) -> Result[SecurityEvent, AuditError]:
        """Append exactly one audit event.

        Args:
            user_id: Acting user; None for pre-authentication events.
            action: Audited action.
            resource: Affected resource kind.
            details: JSON-serializable context.
            metadata: Client context of the request, if any.
            success: Outcome of the audited action.

        Returns:
            Success(SecurityEvent) or Failure(AuditError) when the event
            could not be written.
        """
        action_value = action.value if isinstance(action, SecurityAction) else action
        try:
            event = await self._events.append(
                user_id=user_id,
                action=action_value,
                resource=resource,
                ip_address=metadata.ip_address if metadata else None,
                user_agent=metadata.user_agent if metadata else None,
                device_fingerprint=metadata.device_fingerprint if metadata else None,
                details=details,
                success=success,
            )
        except PydanticValidationError as e:
            return Failure(
                error=AuditError(
                    code=ErrorCode.AUDIT_RECORD_FAILED,
                    message="Audit details are not JSON-serializable",
                    details={"action": action_value, "error_type": type(e).__name__},
                )
            )
        except SQLAlchemyError as e:
            await self._session.rollback()
            self._logger.error(
                "audit_record_failed",
                error=e,
                action=action_value,
                user_id=user_id,
            )
            return Failure(
                error=AuditError(
                    code=ErrorCode.AUDIT_RECORD_FAILED,
                    message=f"Failed to record audit entry: {e}",
                    details={"action": action_value, "error_type": type(e).__name__},
                )
            )

        return Success(value=event)

    async def get_user_security_logs(
        self, user_id: int, limit: int = 50
    ) -> Result[list[SecurityEvent], AuditError]:
        """A user's most recent audit events, newest first."""
        try:
            events = await self._events.list_for_user(user_id, limit)
        except SQLAlchemyError as e:
            return Failure(error=_query_error(e))
        return Success(value=events)

    async def detect_suspicious_activity(
        self, user_id: int, now: datetime | None = None
    ) -> Result[SuspiciousActivityReport, AuditError]:
        """Evaluate the policy heuristics over the user's recent events.

        Inspects the latest ``policy.event_limit`` events and keeps those
        newer than ``now - policy.window``:

        - more than ``max_locations`` distinct IPs: multiple locations
        - a fingerprint not among the user's trusted devices: unusual devices
        - more than ``max_failed_logins`` failed ``login`` events: recent failures
        """
        moment = now or datetime.now(UTC)
        policy = self._policy
        try:
            events = await self._events.list_for_user(user_id, policy.event_limit)
            trusted = await self._devices.trusted_fingerprints(user_id)
        except SQLAlchemyError as e:
            return Failure(error=_query_error(e))

        cutoff = moment - policy.window
        recent = [event for event in events if event.created_at > cutoff]

        distinct_ips = {event.ip_address for event in recent if event.ip_address}
        fingerprints = {
            event.device_fingerprint for event in recent if event.device_fingerprint
        }
        unusual = sorted(fingerprints - trusted)
        failed_logins = sum(
            1
            for event in recent
            if event.action == SecurityAction.LOGIN.value and not event.success
        )

        has_multiple_locations = len(distinct_ips) > policy.max_locations
        has_unusual_devices = bool(unusual)
        has_recent_failures = failed_logins > policy.max_failed_logins

        recommendations: list[str] = []
        if has_multiple_locations:
            recommendations.append(MULTIPLE_LOCATIONS_MESSAGE)
        if has_unusual_devices:
            recommendations.append(UNUSUAL_DEVICES_MESSAGE)
        if has_recent_failures:
            recommendations.append(RECENT_FAILURES_MESSAGE)
        if not recommendations:
            recommendations.append(ALL_CLEAR_MESSAGE)

        report = SuspiciousActivityReport(
            has_multiple_locations=has_multiple_locations,
            has_unusual_devices=has_unusual_devices,
            has_recent_failures=has_recent_failures,
            distinct_ip_count=len(distinct_ips),
            unusual_fingerprints=unusual,
            failed_login_count=failed_logins,
            recommendations=recommendations,
        )
        if report.is_suspicious:
            self._logger.warning(
                "suspicious_activity_detected",
                user_id=user_id,
                multiple_locations=has_multiple_locations,
                unusual_devices=has_unusual_devices,
                recent_failures=has_recent_failures,
            )
        return Success(value=report)


def _query_error(error: SQLAlchemyError) -> AuditError:
    return AuditError(
        code=ErrorCode.AUDIT_QUERY_FAILED,
        message=f"Failed to query audit trail: {error}",
        details={"error_type": type(error).__name__},
    )
