"""Database models.

Importing this package registers every table on ``BaseModel.metadata``.
"""

from gatekeeper.infrastructure.persistence.models.api_token import ApiTokenModel
from gatekeeper.infrastructure.persistence.models.mfa_secret import MfaSecretModel
from gatekeeper.infrastructure.persistence.models.permission import (
    PermissionModel,
    RolePermissionModel,
    UserPermissionModel,
)
from gatekeeper.infrastructure.persistence.models.rate_limit import (
    RateLimitRecordModel,
)
from gatekeeper.infrastructure.persistence.models.security_audit_log import (
    SecurityAuditLogModel,
)
from gatekeeper.infrastructure.persistence.models.session import SessionModel
from gatekeeper.infrastructure.persistence.models.trusted_device import (
    TrustedDeviceModel,
)
from gatekeeper.infrastructure.persistence.models.user import (
    OAuthAccountModel,
    UserModel,
)

__all__ = [
    "ApiTokenModel",
    "MfaSecretModel",
    "OAuthAccountModel",
    "PermissionModel",
    "RateLimitRecordModel",
    "RolePermissionModel",
    "SecurityAuditLogModel",
    "SessionModel",
    "TrustedDeviceModel",
    "UserModel",
    "UserPermissionModel",
]
