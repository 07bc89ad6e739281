"""Repository implementations (SQLAlchemy)."""

from gatekeeper.infrastructure.persistence.repositories.api_token_repository import (
    ApiTokenRepository,
)
from gatekeeper.infrastructure.persistence.repositories.mfa_secret_repository import (
    MfaSecretRepository,
)
from gatekeeper.infrastructure.persistence.repositories.permission_repository import (
    PermissionRepository,
)
from gatekeeper.infrastructure.persistence.repositories.security_audit_repository import (
    SecurityAuditRepository,
)
from gatekeeper.infrastructure.persistence.repositories.session_repository import (
    SessionRepository,
)
from gatekeeper.infrastructure.persistence.repositories.trusted_device_repository import (
    TrustedDeviceRepository,
)
from gatekeeper.infrastructure.persistence.repositories.user_repository import (
    UserRepository,
)

__all__ = [
    "ApiTokenRepository",
    "MfaSecretRepository",
    "PermissionRepository",
    "SecurityAuditRepository",
    "SessionRepository",
    "TrustedDeviceRepository",
    "UserRepository",
]
