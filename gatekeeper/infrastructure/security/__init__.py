"""Security infrastructure adapters.

- Password hashing (bcrypt)
- JWT creation/verification (PyJWT)
- Token generation, hashing and expiry helpers
"""

from gatekeeper.infrastructure.security.bcrypt_password_service import (
    BcryptPasswordService,
)
from gatekeeper.infrastructure.security.jwt_engine import JWTEngine
from gatekeeper.infrastructure.security.token_utilities import (
    PasswordStrength,
    check_password_strength,
    email_verification_expiry,
    generate_secure_token,
    generate_verification_token,
    hash_token,
    is_token_expired,
    password_reset_expiry,
)

__all__ = [
    "BcryptPasswordService",
    "JWTEngine",
    "PasswordStrength",
    "check_password_strength",
    "email_verification_expiry",
    "generate_secure_token",
    "generate_verification_token",
    "hash_token",
    "is_token_expired",
    "password_reset_expiry",
]
