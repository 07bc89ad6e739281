"""Domain enums package."""

from gatekeeper.domain.enums.api_scope import WILDCARD_SCOPES, ApiScope
from gatekeeper.domain.enums.auth_flow import (
    AuthFailureReason,
    AuthFlow,
    CredentialKind,
)
from gatekeeper.domain.enums.security_action import SecurityAction
from gatekeeper.domain.enums.security_level import SecurityLevel
from gatekeeper.domain.enums.user_role import UserRole

__all__ = [
    "ApiScope",
    "AuthFailureReason",
    "AuthFlow",
    "CredentialKind",
    "SecurityAction",
    "SecurityLevel",
    "UserRole",
    "WILDCARD_SCOPES",
]
