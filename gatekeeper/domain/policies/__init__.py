"""Domain policy rules."""

from gatekeeper.domain.policies.admin_bypass import AdminBypassRule
from gatekeeper.domain.policies.permission_catalog import (
    ADMIN_MANAGE,
    DEFAULT_PERMISSIONS,
    DEFAULT_ROLE_PERMISSIONS,
    PermissionDefinition,
    validate_permission_name,
)

__all__ = [
    "ADMIN_MANAGE",
    "AdminBypassRule",
    "DEFAULT_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "PermissionDefinition",
    "validate_permission_name",
]
