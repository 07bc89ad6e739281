"""SessionRepository - database-backed browser sessions."""

from datetime import datetime

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.domain.entities.session import Session, SessionStats
from gatekeeper.domain.entities.user import User
from gatekeeper.infrastructure.persistence.models.session import SessionModel
from gatekeeper.infrastructure.persistence.models.user import UserModel
from gatekeeper.infrastructure.persistence.repositories.user_repository import (
    user_to_domain,
)


class SessionRepository:
    """SQLAlchemy access to the sessions table.

    Attributes:
        session: SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        *,
        session_key: str,
        user_id: int,
        expires_at: datetime,
        ip_address: str | None,
        user_agent: str | None,
    ) -> Session:
        """Persist a new session row."""
        model = SessionModel(
            session_key=session_key,
            user_id=user_id,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(model)
        await self.session.commit()
        return self._to_domain(model)

    async def find_valid(
        self, session_key: str, now: datetime
    ) -> tuple[Session, User] | None:
        """Find an unexpired session together with its user.

        Args:
            session_key: Cookie value.
            now: Reference time for the expiry check.

        Returns:
            (Session, User) if the session exists and ``expires_at > now``.
        """
        stmt = (
            select(SessionModel, UserModel)
            .join(UserModel, UserModel.id == SessionModel.user_id)
            .where(SessionModel.session_key == session_key)
            .where(SessionModel.expires_at > now)
        )
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return None
        session_model, user_model = row
        return self._to_domain(session_model), user_to_domain(user_model)

    async def list_active_for_user(self, user_id: int, now: datetime) -> list[Session]:
        """Unexpired sessions of a user, newest first."""
        stmt = (
            select(SessionModel)
            .where(SessionModel.user_id == user_id)
            .where(SessionModel.expires_at > now)
            .order_by(SessionModel.created_at.desc(), SessionModel.id.desc())
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    async def stats_for_user(self, user_id: int, now: datetime) -> SessionStats:
        """Aggregate a user's sessions in one query."""
        stmt = select(
            func.count(SessionModel.id),
            func.sum(case((SessionModel.expires_at > now, 1), else_=0)),
            func.min(SessionModel.created_at),
            func.max(SessionModel.created_at),
        ).where(SessionModel.user_id == user_id)
        total, active, oldest, newest = (await self.session.execute(stmt)).one()
        return SessionStats(
            total_sessions=total,
            active_sessions=active or 0,
            oldest_session=oldest,
            newest_session=newest,
        )

    async def delete(self, session_key: str) -> Session | None:
        """Delete one session.

        Returns:
            The deleted session, or None if it did not exist.
        """
        stmt = select(SessionModel).where(SessionModel.session_key == session_key)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        deleted = self._to_domain(model)
        await self.session.delete(model)
        await self.session.commit()
        return deleted

    async def delete_all_for_user(self, user_id: int) -> list[str]:
        """Delete every session of a user.

        Returns:
            Keys of the deleted sessions.
        """
        stmt = (
            delete(SessionModel)
            .where(SessionModel.user_id == user_id)
            .returning(SessionModel.session_key)
        )
        result = await self.session.execute(stmt)
        keys = list(result.scalars().all())
        await self.session.commit()
        return keys

    async def delete_expired(self, now: datetime) -> int:
        """Delete sessions with ``expires_at <= now``.

        Returns:
            Number of deleted rows.
        """
        stmt = delete(SessionModel).where(SessionModel.expires_at <= now)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

    async def update_expiry(self, session_key: str, expires_at: datetime) -> bool:
        """Move a session's expiry. Returns False if the session is unknown."""
        stmt = (
            update(SessionModel)
            .where(SessionModel.session_key == session_key)
            .values(expires_at=expires_at)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return (result.rowcount or 0) > 0

    def _to_domain(self, model: SessionModel) -> Session:
        """Convert database model to domain entity."""
        return Session(
            id=model.session_key,
            user_id=model.user_id,
            expires_at=model.expires_at,
            ip_address=model.ip_address,
            user_agent=model.user_agent,
            created_at=model.created_at,
        )
