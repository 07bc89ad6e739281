"""Token generation, hashing and expiry helpers.

Pure functions. Raw tokens are never persisted; stores keep ``hash_token``
output only.
"""

import hashlib
import secrets
import string
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

MIN_PASSWORD_LENGTH = 8
_SPECIAL_CHARACTERS = frozenset(string.punctuation)
_BASE36_DIGITS = string.digits + string.ascii_lowercase


def generate_secure_token(nbytes: int = 32) -> str:
    """URL-safe random token with ``nbytes`` of entropy."""
    return secrets.token_urlsafe(nbytes)


def generate_verification_token(now: datetime | None = None) -> str:
    """Email verification token: ``<uuid4>-<base36 millisecond timestamp>``."""
    moment = now or datetime.now(UTC)
    return f"{uuid.uuid4()}-{_to_base36(int(moment.timestamp() * 1000))}"


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def email_verification_expiry(
    now: datetime | None = None, hours: int = 24
) -> datetime:
    """When an email verification token issued at ``now`` expires."""
    return (now or datetime.now(UTC)) + timedelta(hours=hours)


def password_reset_expiry(now: datetime | None = None, hours: int = 1) -> datetime:
    """When a password reset token issued at ``now`` expires."""
    return (now or datetime.now(UTC)) + timedelta(hours=hours)


def is_token_expired(expires_at: datetime | None, now: datetime | None = None) -> bool:
    """Whether a token with this expiry is no longer usable.

    A missing expiry counts as expired.
    """
    if expires_at is None:
        return True
    return expires_at <= (now or datetime.now(UTC))


@dataclass(frozen=True, slots=True, kw_only=True)
class PasswordStrength:
    """Individual password requirements and whether each is met."""

    min_length: bool
    has_uppercase: bool
    has_lowercase: bool
    has_digit: bool
    has_special: bool

    @property
    def is_strong(self) -> bool:
        """All requirements met."""
        return (
            self.min_length
            and self.has_uppercase
            and self.has_lowercase
            and self.has_digit
            and self.has_special
        )


def check_password_strength(password: str) -> PasswordStrength:
    """Evaluate a password against the strength requirements.

    Example:
        >>> check_password_strength("SecurePass123!").is_strong
        True
        >>> check_password_strength("short").min_length
        False
    """
    return PasswordStrength(
        min_length=len(password) >= MIN_PASSWORD_LENGTH,
        has_uppercase=any(c.isupper() for c in password),
        has_lowercase=any(c.islower() for c in password),
        has_digit=any(c.isdigit() for c in password),
        has_special=any(c in _SPECIAL_CHARACTERS for c in password),
    )


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))
