"""UserRepository - credential store access for users and OAuth links.

Maps between domain User entities and UserModel rows.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.domain.entities.user import User
from gatekeeper.domain.enums import UserRole
from gatekeeper.infrastructure.persistence.models.user import (
    OAuthAccountModel,
    UserModel,
)


class UserRepository:
    """SQLAlchemy access to users and their OAuth account links.

    Attributes:
        session: SQLAlchemy async session for database operations.

    Example:
        >>> async with db.get_session() as session:
        ...     repo = UserRepository(session)
        ...     user = await repo.find_by_email("user@example.com")
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_id(self, user_id: int) -> User | None:
        """Find user by ID.

        Args:
            user_id: User's numeric identifier.

        Returns:
            Domain User entity if found, None otherwise.
        """
        user_model = await self.session.get(UserModel, user_id)
        if user_model is None:
            return None
        return self._to_domain(user_model)

    async def find_by_email(self, email: str) -> User | None:
        """Find user by email address (case-insensitive).

        Args:
            email: Email address.

        Returns:
            Domain User entity if found, None otherwise.
        """
        stmt = select(UserModel).where(UserModel.email == email.strip().lower())
        result = await self.session.execute(stmt)
        user_model = result.scalar_one_or_none()
        if user_model is None:
            return None
        return self._to_domain(user_model)

    async def create(
        self,
        *,
        email: str,
        name: str,
        password_hash: str | None = None,
        role: UserRole = UserRole.USER,
        created_by: int | None = None,
        oauth_provider: str | None = None,
        oauth_account_id: str | None = None,
        email_verified: bool = False,
    ) -> User:
        """Create a user, optionally linked to an OAuth account.

        Args:
            email: Email address (stored lowercase).
            name: Display name.
            password_hash: Bcrypt hash, None for OAuth-only accounts.
            role: RBAC role.
            created_by: Provisioning admin, if any.
            oauth_provider: Provider name for the initial OAuth link.
            oauth_account_id: Provider account id for the initial OAuth link.
            email_verified: Initial verification state.

        Returns:
            The created User.

        Raises:
            ValueError: If neither a password hash nor an OAuth link is given.
        """
        has_oauth = oauth_provider is not None and oauth_account_id is not None
        if password_hash is None and not has_oauth:
            raise ValueError("A user without a password must be linked to an OAuth account")

        user_model = UserModel(
            email=email.strip().lower(),
            name=name,
            role=role.value,
            password_hash=password_hash,
            created_by=created_by,
            email_verified=email_verified,
        )
        self.session.add(user_model)
        await self.session.flush()

        if has_oauth:
            self.session.add(
                OAuthAccountModel(
                    user_id=user_model.id,
                    provider=oauth_provider,
                    provider_account_id=oauth_account_id,
                )
            )

        await self.session.commit()
        return self._to_domain(user_model)

    async def link_oauth_account(
        self, user_id: int, *, provider: str, provider_account_id: str
    ) -> None:
        """Link an additional OAuth account to a user."""
        self.session.add(
            OAuthAccountModel(
                user_id=user_id,
                provider=provider,
                provider_account_id=provider_account_id,
            )
        )
        await self.session.commit()

    async def count_oauth_accounts(self, user_id: int) -> int:
        """Number of OAuth accounts linked to the user."""
        stmt = (
            select(func.count())
            .select_from(OAuthAccountModel)
            .where(OAuthAccountModel.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def record_login(self, user_id: int, at: datetime) -> None:
        """Stamp the last successful login."""
        user_model = await self.session.get(UserModel, user_id)
        if user_model is None:
            return
        user_model.last_login_at = at
        await self.session.commit()

    def _to_domain(self, user_model: UserModel) -> User:
        """Convert database model to domain entity."""
        return user_to_domain(user_model)


def user_to_domain(user_model: UserModel) -> User:
    """Map a UserModel row to the domain entity.

    Shared with repositories that join users into their own queries.
    """
    return User(
        id=user_model.id,
        email=user_model.email,
        name=user_model.name,
        role=UserRole(user_model.role),
        password_hash=user_model.password_hash,
        email_verified=user_model.email_verified,
        email_verification_token=user_model.email_verification_token,
        email_verification_expires=user_model.email_verification_expires,
        password_reset_token=user_model.password_reset_token,
        password_reset_expires=user_model.password_reset_expires,
        last_login_at=user_model.last_login_at,
        created_by=user_model.created_by,
        created_at=user_model.created_at,
        updated_at=user_model.updated_at,
    )
