"""Permission resolver (RBAC).

Resolution for ``has_permission(user, P)``:
    1. A user override row for P decides (granted or revoked).
    2. Otherwise the user's role mapping decides.
    3. Otherwise denied.

``can_user_perform(user, resource, action)`` first evaluates the
``AdminBypassRule`` against the user's effective permissions, then resolves
the conventional ``resource.action`` permission.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.errors import NotFoundError, ValidationError
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.entities.permission import Permission
from gatekeeper.domain.enums import SecurityAction
from gatekeeper.domain.policies import (
    DEFAULT_PERMISSIONS,
    DEFAULT_ROLE_PERMISSIONS,
    AdminBypassRule,
    validate_permission_name,
)
from gatekeeper.domain.protocols import LoggerProtocol
from gatekeeper.domain.value_objects.device import RequestMetadata
from gatekeeper.infrastructure.persistence.repositories import (
    PermissionRepository,
    UserRepository,
)
from gatekeeper.services.security_audit_service import SecurityAuditService

type OverrideError = ValidationError | NotFoundError


class PermissionResolver:
    """Role and override based permission checks.

    Args:
        session: Request database session.
        audit: Audit service for override changes.
        logger: Structured logger.
        bypass_rule: Policy granting every resource to its holders.
    """

    def __init__(
        self,
        session: AsyncSession,
        audit: SecurityAuditService,
        logger: LoggerProtocol,
        bypass_rule: AdminBypassRule | None = None,
    ) -> None:
        self._permissions = PermissionRepository(session)
        self._users = UserRepository(session)
        self._audit = audit
        self._logger = logger
        self._bypass_rule = bypass_rule or AdminBypassRule()

    async def initialize_permissions(self) -> tuple[int, int]:
        """Seed the default catalog and role mappings.

        Idempotent: existing permissions and mappings are left alone.

        Returns:
            (permissions inserted, role mappings inserted).
        """
        inserted_permissions = 0
        inserted_mappings = 0
        ids: dict[str, int] = {}

        for definition in DEFAULT_PERMISSIONS:
            permission, created = await self._permissions.ensure_permission(
                name=definition.name,
                resource=definition.resource,
                action=definition.action,
                description=definition.description,
            )
            ids[permission.name] = permission.id
            inserted_permissions += int(created)

        for role, names in DEFAULT_ROLE_PERMISSIONS.items():
            for name in names:
                if await self._permissions.ensure_role_permission(role.value, ids[name]):
                    inserted_mappings += 1

        self._logger.info(
            "permissions_initialized",
            permissions_inserted=inserted_permissions,
            mappings_inserted=inserted_mappings,
        )
        return inserted_permissions, inserted_mappings

    async def list_permissions(self) -> list[Permission]:
        """Every known permission, by name."""
        return await self._permissions.list_all()

    async def get_user_permissions(self, user_id: int) -> set[str]:
        """Effective permission names: role grants with overrides applied."""
        user = await self._users.find_by_id(user_id)
        if user is None:
            return set()

        effective = await self._permissions.role_permission_names(user.role.value)
        for name, granted in (await self._permissions.overrides_for_user(user_id)).items():
            if granted:
                effective.add(name)
            else:
                effective.discard(name)
        return effective

    async def has_permission(self, user_id: int, permission_name: str) -> bool:
        """Whether the user holds ``permission_name`` (override first, then role)."""
        override = await self._permissions.get_override(user_id, permission_name)
        if override is not None:
            return override

        user = await self._users.find_by_id(user_id)
        if user is None:
            return False
        return await self._permissions.role_has_permission(
            user.role.value, permission_name
        )

    async def can_user_perform(self, user_id: int, resource: str, action: str) -> bool:
        """Whether the user may perform ``action`` on ``resource``."""
        effective = await self.get_user_permissions(user_id)
        if self._bypass_rule.evaluate(effective):
            self._logger.info(
                "permission_bypass_applied",
                rule=self._bypass_rule.name,
                user_id=user_id,
                resource=resource,
                action=action,
            )
            return True
        return await self.has_permission(user_id, Permission.name_for(resource, action))

    async def missing_permissions(
        self, user_id: int, required: list[str] | tuple[str, ...]
    ) -> list[str]:
        """Required permissions the user lacks, in the order given.

        Holders of the bypass permission lack nothing.
        """
        effective = await self.get_user_permissions(user_id)
        if self._bypass_rule.evaluate(effective):
            return []
        return [name for name in required if name not in effective]

    async def grant_permission_to_user(
        self,
        user_id: int,
        permission_name: str,
        *,
        granted_by: int | None = None,
        metadata: RequestMetadata | None = None,
    ) -> Result[Permission, OverrideError]:
        """Grant a permission to one user regardless of role."""
        return await self._set_override(
            user_id, permission_name, True, granted_by, metadata
        )

    async def revoke_permission_from_user(
        self,
        user_id: int,
        permission_name: str,
        *,
        revoked_by: int | None = None,
        metadata: RequestMetadata | None = None,
    ) -> Result[Permission, OverrideError]:
        """Deny a permission to one user regardless of role."""
        return await self._set_override(
            user_id, permission_name, False, revoked_by, metadata
        )

    async def _set_override(
        self,
        user_id: int,
        permission_name: str,
        granted: bool,
        actor_id: int | None,
        metadata: RequestMetadata | None,
    ) -> Result[Permission, OverrideError]:
        if not validate_permission_name(permission_name):
            return Failure(
                error=ValidationError(
                    code=ErrorCode.INVALID_PERMISSION_NAME,
                    message=f"Invalid permission name: {permission_name}",
                    field="permission_name",
                )
            )

        permission = await self._permissions.find_by_name(permission_name)
        if permission is None:
            return Failure(
                error=NotFoundError(
                    code=ErrorCode.PERMISSION_NOT_FOUND,
                    message=f"Permission {permission_name} not found",
                    resource_type="permission",
                    resource_id=permission_name,
                )
            )
        if await self._users.find_by_id(user_id) is None:
            return Failure(
                error=NotFoundError(
                    code=ErrorCode.USER_NOT_FOUND,
                    message=f"User {user_id} not found",
                    resource_type="user",
                    resource_id=str(user_id),
                )
            )

        await self._permissions.set_override(user_id, permission.id, granted)

        action = (
            SecurityAction.PERMISSION_GRANTED if granted else SecurityAction.PERMISSION_REVOKED
        )
        self._logger.info(
            action.value,
            user_id=user_id,
            permission=permission_name,
            actor_id=actor_id,
        )
        audit = await self._audit.log_security_event(
            user_id=actor_id if actor_id is not None else user_id,
            action=action,
            resource="permission",
            details={"targetUserId": user_id, "permission": permission_name},
            metadata=metadata,
        )
        if isinstance(audit, Failure):
            self._logger.error(
                "permission_audit_failed",
                user_id=user_id,
                permission=permission_name,
                reason=audit.error.message,
            )
        return Success(value=permission)
