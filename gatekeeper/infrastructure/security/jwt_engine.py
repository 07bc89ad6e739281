"""JWT engine (adapter).

Signs and verifies compact tokens with PyJWT using HMAC-SHA256.

Payload claims:
    sub: Subject (user id as a string)
    iat: Issued at (Unix seconds)
    scopes: Granted scopes
    tokenId: Unique token reference (uuid7)
    exp: Optional expiry (Unix seconds)

Security:
    - 256-bit secret key minimum
    - ``exp <= now`` is rejected
    - Verification never raises: any malformed, tampered or expired token
      verifies to ``None``
"""

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt.exceptions import PyJWTError
from uuid_extensions import uuid7

REQUIRED_CLAIMS: tuple[str, ...] = ("sub", "iat", "scopes", "tokenId")

# Only the signature is checked by PyJWT; expiry is checked here (exp <= now)
# and every other claim is returned untouched.
_CLAIM_CHECKS_OFF: dict[str, bool] = {
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


class JWTEngine:
    """JWT creation and verification.

    Usage:
        from gatekeeper.core.container import get_jwt_engine

        engine = get_jwt_engine()
        token = engine.issue(subject="42", scopes=["profile:read"])
        payload = engine.verify_jwt(token)  # dict or None
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        default_ttl: timedelta | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            secret_key: Symmetric signing secret (at least 32 characters).
            algorithm: HMAC algorithm understood by PyJWT.
            default_ttl: Lifetime applied by ``issue`` when none is given.

        Raises:
            ValueError: If secret_key is too short.
        """
        if len(secret_key) < 32:
            msg = "JWT secret key must be at least 32 bytes (256 bits)"
            raise ValueError(msg)

        self._secret_key = secret_key
        self._algorithm = algorithm
        self._default_ttl = default_ttl

    def create_jwt(self, payload: Mapping[str, Any]) -> str:
        """Sign a payload into a three-segment token.

        Args:
            payload: Claims; must contain ``sub``, ``iat``, ``scopes`` and
                ``tokenId``. ``exp`` is optional.

        Returns:
            ``header.payload.signature`` token string.

        Raises:
            ValueError: If a required claim is missing.
        """
        missing = [claim for claim in REQUIRED_CLAIMS if claim not in payload]
        if missing:
            raise ValueError(f"JWT payload missing required claims: {', '.join(missing)}")

        token: str = jwt.encode(
            dict(payload), self._secret_key, algorithm=self._algorithm
        )
        return token

    def verify_jwt(self, token: str) -> dict[str, Any] | None:
        """Verify a token and return its payload unchanged.

        Returns:
            The decoded payload, or None when the token is malformed, carries
            a bad signature, or has ``exp <= now``.
        """
        if not isinstance(token, str) or token.count(".") != 2:
            return None

        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options=_CLAIM_CHECKS_OFF,
            )
        except PyJWTError:
            return None

        exp = payload.get("exp")
        if exp is not None and exp <= datetime.now(UTC).timestamp():
            return None
        return payload

    def issue(
        self,
        *,
        subject: str,
        scopes: list[str],
        ttl: timedelta | None = None,
    ) -> str:
        """Build a fresh payload (new tokenId, current iat) and sign it.

        Args:
            subject: User id.
            scopes: Scopes to embed.
            ttl: Lifetime; falls back to the engine default, and no ``exp``
                claim is written when neither is set.
        """
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": subject,
            "iat": int(now.timestamp()),
            "scopes": list(scopes),
            "tokenId": str(uuid7()),
        }
        lifetime = ttl or self._default_ttl
        if lifetime is not None:
            payload["exp"] = int((now + lifetime).timestamp())
        return self.create_jwt(payload)
