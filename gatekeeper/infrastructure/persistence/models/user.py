"""User and OAuth account database models.

Security:
    - password_hash: NEVER stores plaintext passwords (bcrypt hashed)
    - password_hash is NULL for OAuth-only accounts, which must own at least
      one oauth_accounts row (checked by UserRepository.create)
"""

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import (
    BaseModel,
    BaseMutableModel,
    UTCDateTime,
)


class UserModel(BaseMutableModel):
    """User account row.

    Fields:
        id: Integer primary key (from BaseMutableModel)
        email: Unique email address (indexed for login and Basic auth lookups)
        name: Display name
        role: RBAC role value ("admin" | "user")
        password_hash: Bcrypt hash, NULL for OAuth-only accounts
        email_verified / email_verification_token / email_verification_expires
        password_reset_token / password_reset_expires
        last_login_at: Last successful login
        created_by: Admin who provisioned the account (self reference)
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="User email address (unique, lowercase)",
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name",
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="user",
        index=True,
        comment="RBAC role (admin, user)",
    )

    password_hash: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Bcrypt hashed password (NULL for OAuth-only accounts)",
    )

    email_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    email_verification_token: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    email_verification_expires: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
    )

    password_reset_token: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    password_reset_expires: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
    )

    last_login_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
    )

    created_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Admin who provisioned this account",
    )


class OAuthAccountModel(BaseModel):
    """Link between a user and an external identity provider account.

    Unique on (provider, provider_account_id); deleted with the user.
    """

    __tablename__ = "oauth_accounts"
    __table_args__ = (
        UniqueConstraint(
            "provider", "provider_account_id", name="uq_oauth_provider_account"
        ),
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    provider: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    provider_account_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
