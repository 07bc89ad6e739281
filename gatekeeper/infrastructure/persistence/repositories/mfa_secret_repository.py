"""MfaSecretRepository - TOTP enrollments and hashed backup codes.

Backup codes go through ``serialization.dump_backup_codes`` /
``load_backup_codes``. Consuming a code is a compare-and-swap on the stored
list, so one code can only be spent once even under concurrent requests.
"""

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.domain.entities.mfa import MfaSecret
from gatekeeper.infrastructure.persistence.models.mfa_secret import MfaSecretModel
from gatekeeper.infrastructure.persistence.serialization import (
    dump_backup_codes,
    load_backup_codes,
)


class MfaSecretRepository:
    """SQLAlchemy access to the mfa_secrets table.

    Attributes:
        session: SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_user(self, user_id: int) -> MfaSecret | None:
        model = await self._get_model(user_id)
        if model is None:
            return None
        return self._to_domain(model)

    async def save_pending(
        self, *, user_id: int, secret: str, backup_code_hashes: list[str]
    ) -> MfaSecret:
        """Store a fresh, not yet enabled enrollment.

        An existing record for the user is overwritten and disabled.
        """
        model = await self._get_model(user_id)
        if model is None:
            model = MfaSecretModel(user_id=user_id)
            self.session.add(model)
        model.secret = secret
        model.backup_codes = dump_backup_codes(backup_code_hashes)
        model.is_enabled = False
        model.last_used_at = None
        await self.session.commit()
        return self._to_domain(model)

    async def enable(self, user_id: int, at: datetime) -> bool:
        """Mark a pending enrollment enabled. Returns False if none was pending."""
        stmt = (
            update(MfaSecretModel)
            .where(MfaSecretModel.user_id == user_id)
            .where(MfaSecretModel.is_enabled.is_(False))
            .values(is_enabled=True, last_used_at=at)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return (result.rowcount or 0) > 0

    async def mark_used(self, user_id: int, at: datetime) -> None:
        """Stamp ``last_used_at``."""
        stmt = (
            update(MfaSecretModel)
            .where(MfaSecretModel.user_id == user_id)
            .values(last_used_at=at)
        )
        await self.session.execute(stmt)
        await self.session.commit()

    async def replace_backup_codes(
        self, user_id: int, backup_code_hashes: list[str]
    ) -> bool:
        stmt = (
            update(MfaSecretModel)
            .where(MfaSecretModel.user_id == user_id)
            .values(backup_codes=dump_backup_codes(backup_code_hashes))
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return (result.rowcount or 0) > 0

    async def consume_backup_code(
        self, user_id: int, code_hash: str, at: datetime
    ) -> int | None:
        """Remove one backup code hash if it is still unused.

        The update only applies while the stored list is the one that was
        read, so a concurrent use of the same code loses.

        Returns:
            The number of codes left, or None if the code was not available.
        """
        model = await self._get_model(user_id)
        if model is None:
            return None
        stored = model.backup_codes
        hashes = load_backup_codes(stored)
        if code_hash not in hashes:
            return None
        hashes.remove(code_hash)

        stmt = (
            update(MfaSecretModel)
            .where(MfaSecretModel.user_id == user_id)
            .where(MfaSecretModel.backup_codes == stored)
            .values(backup_codes=dump_backup_codes(hashes), last_used_at=at)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        if (result.rowcount or 0) == 0:
            return None
        return len(hashes)

    async def delete_for_user(self, user_id: int) -> bool:
        """Delete the user's enrollment. Returns True if a row was deleted."""
        stmt = delete(MfaSecretModel).where(MfaSecretModel.user_id == user_id)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return (result.rowcount or 0) > 0

    async def _get_model(self, user_id: int) -> MfaSecretModel | None:
        stmt = (
            select(MfaSecretModel)
            .where(MfaSecretModel.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_domain(self, model: MfaSecretModel) -> MfaSecret:
        """Convert database model to domain entity."""
        return MfaSecret(
            id=model.id,
            user_id=model.user_id,
            secret=model.secret,
            backup_code_hashes=load_backup_codes(model.backup_codes),
            is_enabled=model.is_enabled,
            last_used_at=model.last_used_at,
            created_at=model.created_at,
        )
