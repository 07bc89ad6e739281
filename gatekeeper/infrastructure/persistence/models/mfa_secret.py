"""MFA secret database model.

CRITICAL: backup_codes holds SHA-256 hashes of the codes. The plain codes are
returned once, at setup or regeneration, and never stored.
"""

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import BaseMutableModel, UTCDateTime


class MfaSecretModel(BaseMutableModel):
    """TOTP enrollment, at most one per user.

    Fields:
        user_id: Enrolled user (cascade delete, unique)
        secret: Base32 TOTP secret
        backup_codes: JSON text list of code hashes, written and read through
            ``serialization.dump_backup_codes`` / ``load_backup_codes`` only
        is_enabled: Set once a TOTP code confirms the enrollment
        last_used_at: Last successful verification
    """

    __tablename__ = "mfa_secrets"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    secret: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    backup_codes: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="[]",
    )

    is_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    last_used_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
    )
