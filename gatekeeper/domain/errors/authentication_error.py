"""Authentication outcome constants.

These are NOT exceptions. They are the human-readable reasons attached to
denied requests and recorded in audit details.

Usage:
    from gatekeeper.domain.errors import AuthenticationError

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=AuthenticationError.INVALID_TOKEN,
    )
"""


class AuthenticationError:
    """Authentication error constants.

    Error Categories:
        - Credential presence: CREDENTIAL_REQUIRED, BASIC_AUTH_REQUIRED
        - Credential validity: INVALID_TOKEN, INVALID_SESSION, INVALID_CREDENTIALS
        - Authorization: INSUFFICIENT_PERMISSIONS
        - Throttling: TOO_MANY_REQUESTS
        - Infrastructure: RATE_LIMIT_UNAVAILABLE, AUDIT_UNAVAILABLE
    """

    # Credential presence
    CREDENTIAL_REQUIRED = "Authentication required"
    BEARER_REQUIRED = "Bearer token required"
    BASIC_AUTH_REQUIRED = "Basic authentication required"

    # Credential validity
    INVALID_TOKEN = "Invalid or expired token"
    INVALID_SESSION = "Invalid or expired session"
    INVALID_CREDENTIALS = "Invalid email or password"
    IDENTITY_MISMATCH = "Secondary credential does not match the authenticated user"

    # Authorization
    INSUFFICIENT_PERMISSIONS = "Insufficient permissions"

    # Throttling
    TOO_MANY_REQUESTS = "Too many requests"
    RATE_LIMIT_UNAVAILABLE = "Rate limiting temporarily unavailable"

    # Audit trail
    AUDIT_UNAVAILABLE = "Security audit unavailable"
