"""Machine-readable error codes.

Error codes follow ENTITY_ACTION_REASON naming convention and travel inside
``DomainError`` values.

Categories:
- Validation errors (INVALID_*, VALIDATION_*)
- Resource errors (*_NOT_FOUND)
- Authentication errors (TOKEN_*, INVALID_CREDENTIALS)
- Authorization errors (PERMISSION_*)
- MFA state errors (MFA_*)
- Infrastructure errors (AUDIT_*, RATE_LIMIT_*)
"""

from enum import Enum


class ErrorCode(Enum):
    """Machine-readable error codes."""

    # Validation errors
    INVALID_SCOPE = "invalid_scope"
    INVALID_PERMISSION_NAME = "invalid_permission_name"
    INVALID_TOKEN_NAME = "invalid_token_name"
    INVALID_MFA_CODE = "invalid_mfa_code"
    VALIDATION_FAILED = "validation_failed"

    # Resource errors
    USER_NOT_FOUND = "user_not_found"
    PERMISSION_NOT_FOUND = "permission_not_found"
    DEVICE_NOT_FOUND = "device_not_found"
    API_TOKEN_NOT_FOUND = "api_token_not_found"

    # MFA state errors
    MFA_NOT_CONFIGURED = "mfa_not_configured"
    MFA_ALREADY_ENABLED = "mfa_already_enabled"

    # Authentication errors
    INVALID_CREDENTIALS = "invalid_credentials"
    TOKEN_EXPIRED = "token_expired"
    TOKEN_INVALID = "token_invalid"
    AUTHENTICATION_FAILED = "authentication_failed"

    # Authorization errors
    PERMISSION_DENIED = "permission_denied"
    AUTHORIZATION_FAILED = "authorization_failed"

    # Audit trail errors
    AUDIT_RECORD_FAILED = "audit_record_failed"
    AUDIT_QUERY_FAILED = "audit_query_failed"

    # Rate limit errors
    RATE_LIMIT_CHECK_FAILED = "rate_limit_check_failed"
    RATE_LIMIT_RESET_FAILED = "rate_limit_reset_failed"
    RATE_LIMIT_BLOCK_FAILED = "rate_limit_block_failed"
