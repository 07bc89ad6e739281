"""PermissionRepository - permissions, role mappings and user overrides."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.domain.entities.permission import Permission
from gatekeeper.infrastructure.persistence.models.permission import (
    PermissionModel,
    RolePermissionModel,
    UserPermissionModel,
)


class PermissionRepository:
    """SQLAlchemy access to the RBAC tables.

    Attributes:
        session: SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_name(self, name: str) -> Permission | None:
        """Find a permission by its unique name."""
        stmt = select(PermissionModel).where(PermissionModel.name == name)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return self._to_domain(model)

    async def list_all(self) -> list[Permission]:
        """Every permission, by name."""
        stmt = select(PermissionModel).order_by(PermissionModel.name)
        result = await self.session.execute(stmt)
        return [self._to_domain(m) for m in result.scalars().all()]

    async def get_override(self, user_id: int, permission_name: str) -> bool | None:
        """The user's override flag for a permission, None when absent."""
        stmt = (
            select(UserPermissionModel.granted)
            .join(PermissionModel, PermissionModel.id == UserPermissionModel.permission_id)
            .where(UserPermissionModel.user_id == user_id)
            .where(PermissionModel.name == permission_name)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def role_has_permission(self, role: str, permission_name: str) -> bool:
        """Whether the role maps to the permission."""
        stmt = (
            select(RolePermissionModel.id)
            .join(PermissionModel, PermissionModel.id == RolePermissionModel.permission_id)
            .where(RolePermissionModel.role == role)
            .where(PermissionModel.name == permission_name)
        )
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def role_permission_names(self, role: str) -> set[str]:
        """Names of every permission mapped to the role."""
        stmt = (
            select(PermissionModel.name)
            .join(
                RolePermissionModel,
                RolePermissionModel.permission_id == PermissionModel.id,
            )
            .where(RolePermissionModel.role == role)
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def overrides_for_user(self, user_id: int) -> dict[str, bool]:
        """The user's overrides as ``{permission_name: granted}``."""
        stmt = (
            select(PermissionModel.name, UserPermissionModel.granted)
            .join(
                UserPermissionModel,
                UserPermissionModel.permission_id == PermissionModel.id,
            )
            .where(UserPermissionModel.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        return {name: granted for name, granted in result.all()}

    async def set_override(
        self, user_id: int, permission_id: int, granted: bool
    ) -> None:
        """Insert or update the user's override row."""
        stmt = select(UserPermissionModel).where(
            UserPermissionModel.user_id == user_id,
            UserPermissionModel.permission_id == permission_id,
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            self.session.add(
                UserPermissionModel(
                    user_id=user_id,
                    permission_id=permission_id,
                    granted=granted,
                )
            )
        else:
            model.granted = granted
        await self.session.commit()

    async def ensure_permission(
        self, *, name: str, resource: str, action: str, description: str | None
    ) -> tuple[Permission, bool]:
        """Insert a permission unless one with this name exists.

        Returns:
            (permission, created) where ``created`` is False for existing rows.
        """
        stmt = select(PermissionModel).where(PermissionModel.name == name)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is not None:
            return self._to_domain(model), False

        model = PermissionModel(
            name=name,
            resource=resource,
            action=action,
            description=description,
        )
        self.session.add(model)
        await self.session.commit()
        return self._to_domain(model), True

    async def ensure_role_permission(self, role: str, permission_id: int) -> bool:
        """Map a role to a permission unless already mapped.

        Returns:
            True if a mapping was inserted.
        """
        stmt = select(RolePermissionModel.id).where(
            RolePermissionModel.role == role,
            RolePermissionModel.permission_id == permission_id,
        )
        result = await self.session.execute(stmt)
        if result.first() is not None:
            return False
        self.session.add(RolePermissionModel(role=role, permission_id=permission_id))
        await self.session.commit()
        return True

    def _to_domain(self, model: PermissionModel) -> Permission:
        """Convert database model to domain entity."""
        return Permission(
            id=model.id,
            name=model.name,
            resource=model.resource,
            action=model.action,
            description=model.description,
        )
