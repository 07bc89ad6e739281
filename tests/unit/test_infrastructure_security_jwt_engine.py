"""Unit tests for JWTEngine.

Tests cover:
- Sign/verify round trip preserves the payload
- Required claims enforced on creation
- Expired, tampered, foreign and malformed tokens verify to None
- issue() builds sub/iat/scopes/tokenId and an optional exp
"""

from datetime import UTC, datetime, timedelta

import pytest

from gatekeeper.infrastructure.security import JWTEngine

SECRET = "unit-test-secret-key-of-sufficient-length!!"


def _payload(**overrides):
    payload = {
        "sub": "42",
        "iat": int(datetime.now(UTC).timestamp()),
        "scopes": ["profile:read"],
        "tokenId": "tok-1",
    }
    payload.update(overrides)
    return payload


@pytest.mark.unit
class TestJWTEngineConstruction:
    """Test engine configuration checks."""

    def test_short_secret_rejected(self):
        """Test secrets under 32 characters are refused."""
        with pytest.raises(ValueError, match="at least 32"):
            JWTEngine(secret_key="too-short")


@pytest.mark.unit
class TestJWTEngineRoundTrip:
    """Test creation and verification."""

    def test_verify_returns_payload_unchanged(self):
        """Test a freshly signed token verifies to the same claims."""
        engine = JWTEngine(secret_key=SECRET)
        payload = _payload()

        token = engine.create_jwt(payload)

        assert token.count(".") == 2
        assert engine.verify_jwt(token) == payload

    @pytest.mark.parametrize(
        "extra",
        [
            {"iat": int(datetime.now(UTC).timestamp()) + 120},
            {"aud": "api"},
            {"nbf": int(datetime.now(UTC).timestamp()) + 600},
            {"iss": "elsewhere", "jti": 7},
        ],
    )
    def test_other_claims_returned_unchecked(self, extra):
        """Test only signature and exp decide; other claims pass through."""
        engine = JWTEngine(secret_key=SECRET)
        payload = _payload(**extra)

        assert engine.verify_jwt(engine.create_jwt(payload)) == payload

    def test_missing_required_claim_raises(self):
        """Test create_jwt refuses payloads without tokenId."""
        engine = JWTEngine(secret_key=SECRET)
        payload = _payload()
        del payload["tokenId"]

        with pytest.raises(ValueError, match="tokenId"):
            engine.create_jwt(payload)

    def test_expired_token_is_none(self):
        """Test exp in the past fails verification."""
        engine = JWTEngine(secret_key=SECRET)
        expired = int((datetime.now(UTC) - timedelta(seconds=5)).timestamp())

        token = engine.create_jwt(_payload(exp=expired))

        assert engine.verify_jwt(token) is None

    def test_future_exp_verifies(self):
        """Test exp in the future is accepted."""
        engine = JWTEngine(secret_key=SECRET)
        future = int((datetime.now(UTC) + timedelta(minutes=5)).timestamp())

        token = engine.create_jwt(_payload(exp=future))

        assert engine.verify_jwt(token)["exp"] == future

    def test_tampered_signature_is_none(self):
        """Test a modified signature segment fails verification."""
        engine = JWTEngine(secret_key=SECRET)
        header, body, signature = engine.create_jwt(_payload()).split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]

        assert engine.verify_jwt(f"{header}.{body}.{flipped}") is None

    def test_other_secret_is_none(self):
        """Test tokens signed with another secret are rejected."""
        token = JWTEngine(secret_key=SECRET).create_jwt(_payload())
        other = JWTEngine(secret_key="another-secret-key-of-sufficient-length!")

        assert other.verify_jwt(token) is None

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c", "a.b.c.d"])
    def test_malformed_token_is_none(self, token):
        """Test malformed input never raises."""
        engine = JWTEngine(secret_key=SECRET)

        assert engine.verify_jwt(token) is None


@pytest.mark.unit
class TestJWTEngineIssue:
    """Test issue() payload construction."""

    def test_issue_builds_claims(self):
        """Test issued tokens carry subject, scopes and a unique tokenId."""
        engine = JWTEngine(secret_key=SECRET)

        first = engine.verify_jwt(engine.issue(subject="7", scopes=["users:read"]))
        second = engine.verify_jwt(engine.issue(subject="7", scopes=["users:read"]))

        assert first["sub"] == "7"
        assert first["scopes"] == ["users:read"]
        assert "exp" not in first
        assert first["tokenId"] != second["tokenId"]

    def test_issue_applies_default_ttl(self):
        """Test the engine default lifetime becomes the exp claim."""
        engine = JWTEngine(secret_key=SECRET, default_ttl=timedelta(minutes=10))

        payload = engine.verify_jwt(engine.issue(subject="7", scopes=[]))

        assert payload["exp"] - payload["iat"] == 600
