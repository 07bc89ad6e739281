"""TrustedDeviceRepository - per-user device records keyed by fingerprint."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.domain.entities.trusted_device import TrustedDevice
from gatekeeper.domain.value_objects.device import DeviceInfo
from gatekeeper.infrastructure.persistence.models.trusted_device import (
    TrustedDeviceModel,
)


class TrustedDeviceRepository:
    """SQLAlchemy access to the trusted_devices table.

    Every lookup that takes a device id also takes the owning user id; a
    device belonging to someone else is reported as missing.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_fingerprint(
        self, user_id: int, fingerprint: str
    ) -> TrustedDevice | None:
        """Find the user's device with this fingerprint."""
        model = await self._find_model_by_fingerprint(user_id, fingerprint)
        if model is None:
            return None
        return self._to_domain(model)

    async def create(
        self,
        *,
        user_id: int,
        fingerprint: str,
        device_name: str,
        device_info: DeviceInfo,
        ip_address: str | None,
        user_agent: str | None,
        is_trusted: bool,
        now: datetime,
    ) -> TrustedDevice:
        """Insert a device seen for the first time."""
        model = TrustedDeviceModel(
            user_id=user_id,
            fingerprint=fingerprint,
            device_name=device_name,
            device_type=device_info.device_type,
            browser=device_info.browser,
            os=device_info.os,
            ip_address=ip_address,
            user_agent=user_agent,
            is_trusted=is_trusted,
            last_seen_at=now,
        )
        self.session.add(model)
        await self.session.commit()
        return self._to_domain(model)

    async def record_sighting(
        self,
        device_id: int,
        *,
        ip_address: str | None,
        now: datetime,
        trust: bool | None = None,
    ) -> TrustedDevice | None:
        """Update last sight and, when ``trust`` is given, the trust flag."""
        model = await self.session.get(TrustedDeviceModel, device_id)
        if model is None:
            return None
        model.last_seen_at = now
        model.ip_address = ip_address
        if trust is not None:
            model.is_trusted = trust
        await self.session.commit()
        return self._to_domain(model)

    async def set_trusted(
        self, device_id: int, user_id: int, trusted: bool
    ) -> TrustedDevice | None:
        """Set the trust flag on one of the user's devices."""
        model = await self._find_model(device_id, user_id)
        if model is None:
            return None
        model.is_trusted = trusted
        await self.session.commit()
        return self._to_domain(model)

    async def delete(self, device_id: int, user_id: int) -> TrustedDevice | None:
        """Delete one of the user's devices.

        Returns:
            The deleted device, or None if the user owns no such device.
        """
        model = await self._find_model(device_id, user_id)
        if model is None:
            return None
        deleted = self._to_domain(model)
        await self.session.delete(model)
        await self.session.commit()
        return deleted

    async def list_for_user(self, user_id: int) -> list[TrustedDevice]:
        """The user's devices, most recently seen first."""
        stmt = (
            select(TrustedDeviceModel)
            .where(TrustedDeviceModel.user_id == user_id)
            .order_by(
                TrustedDeviceModel.last_seen_at.desc(), TrustedDeviceModel.id.desc()
            )
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    async def trusted_fingerprints(self, user_id: int) -> set[str]:
        """Fingerprints of the user's trusted devices."""
        stmt = (
            select(TrustedDeviceModel.fingerprint)
            .where(TrustedDeviceModel.user_id == user_id)
            .where(TrustedDeviceModel.is_trusted.is_(True))
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def _find_model(
        self, device_id: int, user_id: int
    ) -> TrustedDeviceModel | None:
        stmt = select(TrustedDeviceModel).where(
            TrustedDeviceModel.id == device_id,
            TrustedDeviceModel.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _find_model_by_fingerprint(
        self, user_id: int, fingerprint: str
    ) -> TrustedDeviceModel | None:
        stmt = select(TrustedDeviceModel).where(
            TrustedDeviceModel.user_id == user_id,
            TrustedDeviceModel.fingerprint == fingerprint,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_domain(self, model: TrustedDeviceModel) -> TrustedDevice:
        """Convert database model to domain entity."""
        return TrustedDevice(
            id=model.id,
            user_id=model.user_id,
            fingerprint=model.fingerprint,
            device_name=model.device_name,
            device_type=model.device_type,
            browser=model.browser,
            os=model.os,
            ip_address=model.ip_address,
            user_agent=model.user_agent,
            is_trusted=model.is_trusted,
            last_seen_at=model.last_seen_at,
            created_at=model.created_at,
        )
