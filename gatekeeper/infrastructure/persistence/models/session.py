"""Login session database model."""

from datetime import datetime

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import BaseModel, UTCDateTime


class SessionModel(BaseModel):
    """Browser session referenced by the session cookie.

    Fields:
        session_key: 64-character hex id carried in the cookie (unique)
        user_id: Owning user (cascade delete)
        expires_at: Expiry (indexed for cleanup)
        ip_address / user_agent: Client at creation time
    """

    __tablename__ = "sessions"

    session_key: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    expires_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        index=True,
    )

    ip_address: Mapped[str | None] = mapped_column(
        String(45),  # IPv6 max length
        nullable=True,
    )

    user_agent: Mapped[str | None] = mapped_column(
        String(512),
        nullable=True,
    )
