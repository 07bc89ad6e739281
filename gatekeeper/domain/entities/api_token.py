"""API token entities.

The token value itself only exists in ``IssuedApiToken``, the one-time
result of issuance. Stored tokens (``ApiToken``) carry metadata only.
"""

from dataclasses import dataclass
from datetime import datetime

from gatekeeper.domain.entities.user import User


@dataclass
class ApiToken:
    """Stored API token metadata (never the raw value, never the hash).

    Attributes:
        id: Token row id.
        user_id: Owning user.
        name: Human label chosen at creation.
        scopes: Granted scopes.
        expires_at: Expiry, None for non-expiring tokens.
        last_used_at: Last successful verification.
        created_at: Issuance time.
    """

    id: int
    user_id: int
    name: str
    scopes: list[str]
    expires_at: datetime | None
    last_used_at: datetime | None
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Whether the token is past its expiry at ``now``."""
        return self.expires_at is not None and self.expires_at <= now


@dataclass(frozen=True, slots=True, kw_only=True)
class IssuedApiToken:
    """Result of issuing a token. ``token`` is shown once and never again."""

    token: str
    token_id: int
    name: str
    scopes: list[str]
    expires_at: datetime | None


@dataclass(frozen=True, slots=True, kw_only=True)
class VerifiedApiToken:
    """Identity resolved from a presented API token."""

    user: User
    token_id: int
    scopes: list[str]
