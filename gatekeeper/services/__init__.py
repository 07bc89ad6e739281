"""Security services composed over the repositories.

Each service takes the request ``AsyncSession`` plus its collaborators
explicitly; the container and the FastAPI dependencies wire them.
"""

from gatekeeper.services.api_token_service import ApiTokenService, has_scope
from gatekeeper.services.basic_auth import (
    BasicAuthVerifier,
    BasicCredentials,
    parse_basic_authorization,
)
from gatekeeper.services.device_tracking_service import DeviceTrackingService
from gatekeeper.services.mfa_service import MfaService, verify_totp
from gatekeeper.services.permission_resolver import PermissionResolver
from gatekeeper.services.rate_limiter import RateLimiter, get_client_identifier
from gatekeeper.services.security_audit_service import SecurityAuditService
from gatekeeper.services.session_service import SessionService, generate_session_id

__all__ = [
    "ApiTokenService",
    "BasicAuthVerifier",
    "BasicCredentials",
    "DeviceTrackingService",
    "MfaService",
    "PermissionResolver",
    "RateLimiter",
    "SecurityAuditService",
    "SessionService",
    "generate_session_id",
    "get_client_identifier",
    "has_scope",
    "parse_basic_authorization",
    "verify_totp",
]
