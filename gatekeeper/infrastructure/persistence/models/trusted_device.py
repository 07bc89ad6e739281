"""Trusted device database model."""

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import BaseMutableModel, UTCDateTime


class TrustedDeviceModel(BaseMutableModel):
    """Device seen for a user, keyed by (user_id, fingerprint).

    Fields:
        user_id: Owning user (cascade delete)
        fingerprint: SHA-256 hex header fingerprint
        device_name / device_type / browser / os: Parsed description
        ip_address / user_agent: Most recent sight
        is_trusted: Owner-granted trust
        last_seen_at: Most recent sight
    """

    __tablename__ = "trusted_devices"
    __table_args__ = (
        UniqueConstraint("user_id", "fingerprint", name="uq_device_user_fingerprint"),
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    fingerprint: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )

    device_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    device_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="other",
    )

    browser: Mapped[str | None] = mapped_column(String(100), nullable=True)

    os: Mapped[str | None] = mapped_column(String(100), nullable=True)

    ip_address: Mapped[str | None] = mapped_column(
        String(45),  # IPv6 max length
        nullable=True,
    )

    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    is_trusted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    last_seen_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
    )
