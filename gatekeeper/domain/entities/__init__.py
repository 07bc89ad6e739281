"""Domain entities package."""

from gatekeeper.domain.entities.api_token import (
    ApiToken,
    IssuedApiToken,
    VerifiedApiToken,
)
from gatekeeper.domain.entities.mfa import MfaSecret, MfaSetup, MfaStatus
from gatekeeper.domain.entities.permission import Permission
from gatekeeper.domain.entities.security_event import SecurityEvent
from gatekeeper.domain.entities.session import Session, SessionStats
from gatekeeper.domain.entities.trusted_device import TrustedDevice
from gatekeeper.domain.entities.user import User

__all__ = [
    "ApiToken",
    "IssuedApiToken",
    "MfaSecret",
    "MfaSetup",
    "MfaStatus",
    "Permission",
    "SecurityEvent",
    "Session",
    "SessionStats",
    "TrustedDevice",
    "User",
    "VerifiedApiToken",
]
