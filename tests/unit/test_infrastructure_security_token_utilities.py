"""Unit tests for token helpers and password strength."""

import re
from datetime import UTC, datetime, timedelta

import pytest

from gatekeeper.infrastructure.security import (
    check_password_strength,
    email_verification_expiry,
    generate_secure_token,
    generate_verification_token,
    hash_token,
    is_token_expired,
    password_reset_expiry,
)


@pytest.mark.unit
class TestTokenGeneration:
    """Test random token helpers."""

    def test_secure_tokens_are_unique_and_url_safe(self):
        """Test two tokens differ and use only URL-safe characters."""
        first, second = generate_secure_token(), generate_secure_token()

        assert first != second
        assert re.fullmatch(r"[A-Za-z0-9_\-]+", first)

    def test_verification_token_shape(self):
        """Test verification tokens are uuid4 followed by a base36 timestamp."""
        token = generate_verification_token(datetime(2024, 1, 1, tzinfo=UTC))

        assert re.fullmatch(r"[0-9a-f\-]{36}-[0-9a-z]+", token)

    def test_hash_token_is_sha256_hex(self):
        """Test hashing is deterministic 64 hex characters."""
        assert hash_token("abc") == hash_token("abc")
        assert len(hash_token("abc")) == 64
        assert hash_token("abc") != hash_token("abd")


@pytest.mark.unit
class TestTokenExpiry:
    """Test expiry helpers."""

    def test_default_lifetimes(self):
        """Test email verification lasts 24h and password reset 1h."""
        now = datetime(2024, 1, 1, tzinfo=UTC)

        assert email_verification_expiry(now) == now + timedelta(hours=24)
        assert password_reset_expiry(now) == now + timedelta(hours=1)

    def test_is_token_expired(self):
        """Test boundary and missing expiry handling."""
        now = datetime(2024, 1, 1, tzinfo=UTC)

        assert is_token_expired(None, now)
        assert is_token_expired(now, now)
        assert not is_token_expired(now + timedelta(seconds=1), now)


@pytest.mark.unit
class TestPasswordStrength:
    """Test password requirement evaluation."""

    def test_strong_password(self):
        """Test a password meeting every requirement."""
        assert check_password_strength("SecurePass123!").is_strong

    @pytest.mark.parametrize(
        ("password", "failed"),
        [
            ("Sh0rt!", "min_length"),
            ("securepass123!", "has_uppercase"),
            ("SECUREPASS123!", "has_lowercase"),
            ("SecurePassword!", "has_digit"),
            ("SecurePass123", "has_special"),
        ],
    )
    def test_each_requirement(self, password, failed):
        """Test each missing requirement is reported individually."""
        strength = check_password_strength(password)

        assert getattr(strength, failed) is False
        assert not strength.is_strong
