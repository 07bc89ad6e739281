"""Admin bypass policy rule.

Holding ``admin.manage`` authorizes every resource/action pair. The rule is
evaluated by ``PermissionResolver.can_user_perform`` before the general
resolution, and the resolver logs when it fires so bypassed checks remain
visible.

The rule looks at *effective* permissions (role grants with per-user
overrides applied), so an override revoking ``admin.manage`` from an admin
disables the bypass, and an override granting it to a regular user enables
it.
"""

from collections.abc import Collection
from dataclasses import dataclass

from gatekeeper.domain.policies.permission_catalog import ADMIN_MANAGE


@dataclass(frozen=True, slots=True, kw_only=True)
class AdminBypassRule:
    """Named policy rule granting all resources to holders of one permission.

    Attributes:
        name: Rule name used in logs.
        permission: Permission whose holders bypass resource checks.

    Example:
        >>> rule = AdminBypassRule()
        >>> rule.evaluate({"admin.manage", "profile.read"})
        True
        >>> rule.evaluate({"profile.read"})
        False
    """

    name: str = "admin_bypass"
    permission: str = ADMIN_MANAGE

    def evaluate(self, effective_permissions: Collection[str]) -> bool:
        """Whether the bypass applies to a holder of ``effective_permissions``."""
        return self.permission in effective_permissions
