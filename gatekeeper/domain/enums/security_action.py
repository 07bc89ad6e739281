"""Security audit action types.

Every sensitive operation appends one ``security_audit_logs`` row whose
``action`` column holds one of these values. The suspicious activity
detector reads them back (``LOGIN`` with ``success=False`` counts as a failed
login).

Usage:
    from gatekeeper.domain.enums import SecurityAction

    await audit.log_security_event(
        user_id=user.id,
        action=SecurityAction.DEVICE_TRUSTED,
        resource="device",
        details={"deviceId": device.id, "fingerprint": device.fingerprint},
    )
"""

from enum import Enum


class SecurityAction(str, Enum):
    """Security audit action types.

    String Enum:
        Inherits from str for direct storage in the audit table.
        Values are snake_case strings.
    """

    # Authentication
    LOGIN = "login"
    LOGOUT = "logout"
    SESSION_CREATED = "session_created"
    SESSION_INVALIDATED = "session_invalidated"
    GLOBAL_LOGOUT = "global_logout"
    AUTH_FAILED = "auth_failed"
    ROUTE_ACCESS = "route_access"

    # API tokens
    API_TOKEN_CREATED = "api_token_created"
    API_TOKEN_REVOKED = "api_token_revoked"

    # Devices
    DEVICE_REGISTERED = "device_registered"
    DEVICE_TRUSTED = "device_trusted"
    DEVICE_TRUST_REVOKED = "device_trust_revoked"
    DEVICE_REMOVED = "device_removed"

    # Multi-factor authentication
    MFA_ENABLED = "mfa_enabled"
    MFA_DISABLED = "mfa_disabled"
    MFA_BACKUP_CODE_USED = "mfa_backup_code_used"
    MFA_BACKUP_CODES_REGENERATED = "mfa_backup_codes_regenerated"

    # Authorization
    PERMISSION_GRANTED = "permission_granted"
    PERMISSION_REVOKED = "permission_revoked"
    PERMISSION_DENIED = "permission_denied"

    # Rate limiting
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
