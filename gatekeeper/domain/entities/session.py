"""Login session entity."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Session:
    """Database-backed browser session referenced by the session cookie.

    Attributes:
        id: 64-character hex session id (cookie value).
        user_id: Owning user.
        expires_at: Session expiry.
        ip_address: Address at creation.
        user_agent: User agent at creation.
        created_at: Creation time.
    """

    id: str
    user_id: int
    expires_at: datetime
    ip_address: str | None
    user_agent: str | None
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Whether the session is past its expiry at ``now``."""
        return self.expires_at <= now


@dataclass(frozen=True, slots=True, kw_only=True)
class SessionStats:
    """Session counts for one user.

    Attributes:
        total_sessions: Stored sessions, expired ones included.
        active_sessions: Sessions with ``expires_at`` after now.
        oldest_session: Earliest ``created_at``, None without sessions.
        newest_session: Latest ``created_at``, None without sessions.
    """

    total_sessions: int
    active_sessions: int
    oldest_session: datetime | None
    newest_session: datetime | None
