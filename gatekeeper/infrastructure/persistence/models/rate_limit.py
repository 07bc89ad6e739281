"""Rate limit counter database model.

One row per (identifier, endpoint). A row whose window has elapsed is
logically reset: the next attempt rewrites it in place (see
DatabaseRateLimitStore.increment).
"""

from datetime import datetime

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import BaseModel, UTCDateTime


class RateLimitRecordModel(BaseModel):
    """Fixed-window attempt counter.

    Fields:
        identifier: "ip:<addr>" or "user:<id>"
        endpoint: Logical endpoint name ("login", "api_general", ...)
        attempts: Attempts in the current window
        window_start: When the current window opened
        last_attempt_at: Most recent attempt (drives cleanup and block checks)
        blocked_until: Explicit administrative block expiry
    """

    __tablename__ = "rate_limit_records"
    __table_args__ = (
        UniqueConstraint("identifier", "endpoint", name="uq_rate_limit_key"),
    )

    identifier: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    endpoint: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    window_start: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
    )

    last_attempt_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        index=True,
    )

    blocked_until: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
    )
