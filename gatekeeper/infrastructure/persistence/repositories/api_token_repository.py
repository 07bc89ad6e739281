"""ApiTokenRepository - hashed API token rows.

The repository only ever sees the SHA-256 hash of a token. Scopes go through
``serialization.dump_scopes`` / ``load_scopes``.
"""

from datetime import datetime

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.domain.entities.api_token import ApiToken
from gatekeeper.domain.entities.user import User
from gatekeeper.infrastructure.persistence.models.api_token import ApiTokenModel
from gatekeeper.infrastructure.persistence.models.user import UserModel
from gatekeeper.infrastructure.persistence.repositories.user_repository import (
    user_to_domain,
)
from gatekeeper.infrastructure.persistence.serialization import (
    dump_scopes,
    load_scopes,
)


class ApiTokenRepository:
    """SQLAlchemy access to the api_tokens table.

    Attributes:
        session: SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(
        self,
        *,
        user_id: int,
        name: str,
        token_hash: str,
        scopes: list[str],
        expires_at: datetime | None,
    ) -> ApiToken:
        """Persist a token hash with its metadata.

        Raises:
            pydantic.ValidationError: If a scope is malformed.
        """
        model = ApiTokenModel(
            user_id=user_id,
            name=name,
            token_hash=token_hash,
            scopes=dump_scopes(scopes),
            expires_at=expires_at,
        )
        self.session.add(model)
        await self.session.commit()
        return self._to_domain(model)

    async def find_active_by_hash(
        self, token_hash: str, now: datetime
    ) -> tuple[ApiToken, User] | None:
        """Find an unexpired token and its owner in one query.

        Missing and expired tokens take the same path and both return None.

        Args:
            token_hash: SHA-256 hex of the presented token.
            now: Reference time for the expiry check.
        """
        stmt = (
            select(ApiTokenModel, UserModel)
            .join(UserModel, UserModel.id == ApiTokenModel.user_id)
            .where(ApiTokenModel.token_hash == token_hash)
            .where(
                or_(
                    ApiTokenModel.expires_at.is_(None),
                    ApiTokenModel.expires_at > now,
                )
            )
        )
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return None
        token_model, user_model = row
        return self._to_domain(token_model), user_to_domain(user_model)

    async def mark_used(self, token_id: int, at: datetime) -> None:
        """Stamp ``last_used_at``."""
        stmt = (
            update(ApiTokenModel)
            .where(ApiTokenModel.id == token_id)
            .values(last_used_at=at)
        )
        await self.session.execute(stmt)
        await self.session.commit()

    async def find_by_id(self, token_id: int) -> ApiToken | None:
        """Find token metadata by id."""
        model = await self.session.get(ApiTokenModel, token_id)
        if model is None:
            return None
        return self._to_domain(model)

    async def list_for_user(self, user_id: int) -> list[ApiToken]:
        """A user's tokens, newest first."""
        stmt = (
            select(ApiTokenModel)
            .where(ApiTokenModel.user_id == user_id)
            .order_by(ApiTokenModel.created_at.desc(), ApiTokenModel.id.desc())
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    async def delete_for_user(self, token_id: int, user_id: int) -> bool:
        """Delete a token only if ``user_id`` owns it.

        Returns:
            True if a row was deleted.
        """
        stmt = (
            delete(ApiTokenModel)
            .where(ApiTokenModel.id == token_id)
            .where(ApiTokenModel.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return (result.rowcount or 0) > 0

    async def delete_expired(self, now: datetime) -> int:
        """Delete tokens with ``expires_at <= now``. Returns the row count."""
        stmt = delete(ApiTokenModel).where(
            ApiTokenModel.expires_at.is_not(None),
            ApiTokenModel.expires_at <= now,
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0

    def _to_domain(self, model: ApiTokenModel) -> ApiToken:
        """Convert database model to domain entity."""
        return ApiToken(
            id=model.id,
            user_id=model.user_id,
            name=model.name,
            scopes=load_scopes(model.scopes),
            expires_at=model.expires_at,
            last_used_at=model.last_used_at,
            created_at=model.created_at,
        )
