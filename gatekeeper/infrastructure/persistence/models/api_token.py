"""API token database model.

CRITICAL: token_hash holds the SHA-256 of the raw token. The raw value is
returned once at creation and never stored.
"""

from datetime import datetime

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import BaseModel, UTCDateTime


class ApiTokenModel(BaseModel):
    """Long-lived API token bound to a user and a scope set.

    Fields:
        user_id: Owning user (cascade delete)
        name: Human label
        token_hash: SHA-256 hex of the raw token (unique lookup key)
        scopes: JSON text list, written and read through
            ``serialization.dump_scopes`` / ``load_scopes`` only
        expires_at: Expiry, NULL for non-expiring tokens
        last_used_at: Last successful verification
    """

    __tablename__ = "api_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    token_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )

    scopes: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="[]",
    )

    expires_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
    )

    last_used_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
    )
