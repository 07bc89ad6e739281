"""User domain entity.

Pure data, no framework dependencies. A user without a password hash is an
OAuth-only account and must be linked to at least one OAuth provider
(enforced by ``UserRepository.create``).
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from gatekeeper.domain.enums import UserRole


@dataclass
class User:
    """User account.

    Attributes:
        id: Numeric user identifier.
        email: Unique email address (also the HTTP Basic username).
        name: Display name.
        role: RBAC role.
        password_hash: Bcrypt hash, None for OAuth-only accounts.
        email_verified: Whether the email address has been confirmed.
        email_verification_token: Outstanding verification token, if any.
        email_verification_expires: Expiry of the verification token.
        password_reset_token: Outstanding reset token, if any.
        password_reset_expires: Expiry of the reset token.
        last_login_at: Last successful login.
        created_by: Admin who provisioned the account (None for self sign-up).
        created_at: Creation timestamp.
        updated_at: Last update timestamp.

    Example:
        >>> user = User(id=1, email="ada@example.com", name="Ada", role=UserRole.USER)
        >>> user.is_admin
        False
    """

    id: int
    email: str
    name: str
    role: UserRole = UserRole.USER
    password_hash: str | None = None
    email_verified: bool = False
    email_verification_token: str | None = None
    email_verification_expires: datetime | None = None
    password_reset_token: str | None = None
    password_reset_expires: datetime | None = None
    last_login_at: datetime | None = None
    created_by: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_admin(self) -> bool:
        """Whether the user holds the admin role."""
        return self.role is UserRole.ADMIN

    @property
    def has_password(self) -> bool:
        """Whether password (and therefore HTTP Basic) login is possible."""
        return self.password_hash is not None
