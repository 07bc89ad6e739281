"""Device tracking service.

Identifies devices by header fingerprint and keeps per-user trust state.
Each mutating operation that changes a device appends exactly one audit
event naming the action and the device fingerprint.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.fingerprinting import generate_device_fingerprint
from gatekeeper.core.result import Failure
from gatekeeper.domain.entities.trusted_device import TrustedDevice
from gatekeeper.domain.enums import SecurityAction
from gatekeeper.domain.protocols import LoggerProtocol
from gatekeeper.domain.value_objects.device import RequestMetadata
from gatekeeper.infrastructure.enrichers import parse_device_info
from gatekeeper.infrastructure.persistence.repositories import (
    TrustedDeviceRepository,
)
from gatekeeper.services.security_audit_service import SecurityAuditService


class DeviceTrackingService:
    """Per-user device registry with trust management.

    Args:
        session: Request database session.
        audit: Audit service.
        logger: Structured logger.
    """

    def __init__(
        self,
        session: AsyncSession,
        audit: SecurityAuditService,
        logger: LoggerProtocol,
    ) -> None:
        self._session = session
        self._devices = TrustedDeviceRepository(session)
        self._audit = audit
        self._logger = logger

    async def track_device(
        self,
        user_id: int,
        metadata: RequestMetadata,
        *,
        trust_device: bool | None = None,
        device_name: str | None = None,
    ) -> TrustedDevice:
        """Record a sighting of the requesting device.

        First sight inserts the device (untrusted unless ``trust_device``) and
        logs ``device_registered``. Later sights update ``last_seen_at`` and
        the IP, and set trust only when ``trust_device`` is given, without
        logging again.
        """
        fingerprint = _fingerprint(metadata)
        now = datetime.now(UTC)

        existing = await self._devices.find_by_fingerprint(user_id, fingerprint)
        if existing is not None:
            return await self._record_sighting(existing, metadata, now, trust_device)

        device_info = parse_device_info(metadata.user_agent)
        name = device_name or device_info.default_name
        try:
            device = await self._devices.create(
                user_id=user_id,
                fingerprint=fingerprint,
                device_name=name,
                device_info=device_info,
                ip_address=metadata.ip_address,
                user_agent=metadata.user_agent,
                is_trusted=bool(trust_device),
                now=now,
            )
        except IntegrityError:
            # A concurrent request registered the same device first.
            await self._session.rollback()
            raced = await self._devices.find_by_fingerprint(user_id, fingerprint)
            if raced is None:
                raise
            return await self._record_sighting(raced, metadata, now, trust_device)

        self._logger.info(
            "device_registered",
            user_id=user_id,
            device_id=device.id,
            device_type=device.device_type,
        )
        await self._record(
            user_id,
            SecurityAction.DEVICE_REGISTERED,
            {
                "deviceId": device.id,
                "deviceFingerprint": fingerprint,
                "deviceName": name,
                "ipAddress": metadata.ip_address,
            },
            metadata,
        )
        return device

    async def is_device_trusted(self, user_id: int, metadata: RequestMetadata) -> bool:
        """Whether the requesting device is a trusted device of the user."""
        device = await self._devices.find_by_fingerprint(user_id, _fingerprint(metadata))
        return device is not None and device.is_trusted

    async def list_user_devices(self, user_id: int) -> list[TrustedDevice]:
        """The user's devices, most recently seen first."""
        return await self._devices.list_for_user(user_id)

    async def trust_device(
        self,
        user_id: int,
        device_id: int,
        metadata: RequestMetadata | None = None,
    ) -> TrustedDevice | None:
        """Mark one of the user's devices trusted. None if not the user's."""
        device = await self._devices.set_trusted(device_id, user_id, True)
        if device is not None:
            await self._record(
                user_id,
                SecurityAction.DEVICE_TRUSTED,
                {"deviceId": device_id, "deviceFingerprint": device.fingerprint},
                metadata,
            )
        return device

    async def revoke_device_trust(
        self,
        user_id: int,
        device_id: int,
        metadata: RequestMetadata | None = None,
    ) -> TrustedDevice | None:
        """Clear trust on one of the user's devices. None if not the user's."""
        device = await self._devices.set_trusted(device_id, user_id, False)
        if device is not None:
            await self._record(
                user_id,
                SecurityAction.DEVICE_TRUST_REVOKED,
                {"deviceId": device_id, "deviceFingerprint": device.fingerprint},
                metadata,
            )
        return device

    async def remove_device(
        self,
        user_id: int,
        device_id: int,
        metadata: RequestMetadata | None = None,
    ) -> TrustedDevice | None:
        """Delete one of the user's devices. None if not the user's."""
        device = await self._devices.delete(device_id, user_id)
        if device is not None:
            await self._record(
                user_id,
                SecurityAction.DEVICE_REMOVED,
                {"deviceId": device_id, "deviceFingerprint": device.fingerprint},
                metadata,
            )
        return device

    async def _record_sighting(
        self,
        device: TrustedDevice,
        metadata: RequestMetadata,
        now: datetime,
        trust_device: bool | None,
    ) -> TrustedDevice:
        updated = await self._devices.record_sighting(
            device.id,
            ip_address=metadata.ip_address,
            now=now,
            trust=trust_device,
        )
        return updated or device

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
            resource="device",
            details=details,
            metadata=metadata,
        )
        if isinstance(result, Failure):
            self._logger.error(
                "device_audit_failed",
                user_id=user_id,
                action=action.value,
                reason=result.error.message,
            )


def _fingerprint(metadata: RequestMetadata) -> str:
    if metadata.device_fingerprint:
        return metadata.device_fingerprint
    return generate_device_fingerprint(
        metadata.user_agent, metadata.accept_language, metadata.accept_encoding
    )
