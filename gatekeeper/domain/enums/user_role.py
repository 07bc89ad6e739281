"""User roles for RBAC authorization.

Roles map to permission sets through the role_permissions table. Per-user
overrides in user_permissions take precedence over the role mapping.

Usage:
    from gatekeeper.domain.enums import UserRole

    if user.role is UserRole.ADMIN:
        ...
"""

from enum import Enum


class UserRole(str, Enum):
    """User roles for RBAC authorization.

    String Enum:
        Inherits from str so values store directly in the users.role column.

    Default permissions by role:
        USER: profile.read, profile.update
        ADMIN: every permission in the default catalog, including admin.manage
    """

    ADMIN = "admin"
    USER = "user"
