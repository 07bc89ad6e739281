"""FastAPI dependencies and middleware for authentication and access control."""

from gatekeeper.presentation.middleware.auth_dependencies import (
    CurrentUser,
    IdentityResolver,
    OptionalUser,
    PrimaryCredential,
    extract_primary_credential,
    get_current_user_optional,
    get_identity_resolver,
)
from gatekeeper.presentation.middleware.authorization_dependencies import (
    require_permission,
    require_scope,
)
from gatekeeper.presentation.middleware.rate_limit import (
    DEFAULT_RULES,
    RateLimitMiddleware,
    RateLimitRule,
    rate_limit,
)
from gatekeeper.presentation.middleware.request_context import detect_auth_flow
from gatekeeper.presentation.middleware.security_tiers import (
    AuthenticatedUser,
    SecurityPresets,
    get_current_user,
    require_security,
)

__all__ = [
    "AuthenticatedUser",
    "CurrentUser",
    "DEFAULT_RULES",
    "IdentityResolver",
    "OptionalUser",
    "PrimaryCredential",
    "RateLimitMiddleware",
    "RateLimitRule",
    "SecurityPresets",
    "detect_auth_flow",
    "extract_primary_credential",
    "get_current_user",
    "get_current_user_optional",
    "get_identity_resolver",
    "rate_limit",
    "require_permission",
    "require_scope",
    "require_security",
]
