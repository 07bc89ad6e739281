"""Default permission catalog and role mapping.

Seeded by ``PermissionResolver.initialize_permissions``. Names follow the
``resource.action`` convention checked by ``validate_permission_name``.
"""

import re
from dataclasses import dataclass

from gatekeeper.domain.enums import UserRole

ADMIN_MANAGE = "admin.manage"

_PERMISSION_NAME_PATTERN = re.compile(r"^[a-z]+\.[a-z]+$")


@dataclass(frozen=True, slots=True, kw_only=True)
class PermissionDefinition:
    """Catalog entry (not yet persisted)."""

    name: str
    resource: str
    action: str
    description: str


DEFAULT_PERMISSIONS: tuple[PermissionDefinition, ...] = (
    PermissionDefinition(
        name=ADMIN_MANAGE,
        resource="admin",
        action="manage",
        description="Full administrative access",
    ),
    PermissionDefinition(
        name="user.create",
        resource="user",
        action="create",
        description="Create user accounts",
    ),
    PermissionDefinition(
        name="user.read",
        resource="user",
        action="read",
        description="View user accounts",
    ),
    PermissionDefinition(
        name="user.update",
        resource="user",
        action="update",
        description="Update user accounts",
    ),
    PermissionDefinition(
        name="user.delete",
        resource="user",
        action="delete",
        description="Delete user accounts",
    ),
    PermissionDefinition(
        name="profile.read",
        resource="profile",
        action="read",
        description="View own profile",
    ),
    PermissionDefinition(
        name="profile.update",
        resource="profile",
        action="update",
        description="Update own profile",
    ),
)

DEFAULT_ROLE_PERMISSIONS: dict[UserRole, tuple[str, ...]] = {
    UserRole.ADMIN: tuple(p.name for p in DEFAULT_PERMISSIONS),
    UserRole.USER: ("profile.read", "profile.update"),
}


def validate_permission_name(name: str) -> bool:
    """Check a permission name has the ``resource.action`` shape.

    Example:
        >>> validate_permission_name("profile.read")
        True
        >>> validate_permission_name("Profile:Read")
        False
    """
    return bool(_PERMISSION_NAME_PATTERN.match(name))
