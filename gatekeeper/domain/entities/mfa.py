"""Multi-factor authentication entities.

Backup codes exist in plain text only inside ``MfaSetup`` (and the list
returned by regeneration). Stored records hold their SHA-256 hashes.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class MfaSecret:
    """A user's TOTP enrollment.

    Attributes:
        id: Row id.
        user_id: Enrolled user (one record per user).
        secret: Base32 TOTP secret shared with the authenticator app.
        backup_code_hashes: SHA-256 hex of each unused backup code.
        is_enabled: False until the first TOTP code is confirmed.
        last_used_at: Last successful TOTP or backup code verification.
        created_at: When the current secret was generated.
    """

    id: int
    user_id: int
    secret: str
    backup_code_hashes: list[str]
    is_enabled: bool
    last_used_at: datetime | None
    created_at: datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class MfaSetup:
    """Result of starting enrollment. Shown to the user once."""

    secret: str
    provisioning_uri: str
    backup_codes: list[str]


@dataclass(frozen=True, slots=True, kw_only=True)
class MfaStatus:
    """Enrollment summary safe to show in account settings."""

    is_enabled: bool
    has_backup_codes: bool
    backup_codes_remaining: int
    last_used_at: datetime | None
