"""Unit tests for domain rules: tiers, bypass rule, permission names, scopes."""

import pytest

from gatekeeper.domain.enums import SecurityLevel, UserRole
from gatekeeper.domain.policies import (
    ADMIN_MANAGE,
    DEFAULT_PERMISSIONS,
    DEFAULT_ROLE_PERMISSIONS,
    AdminBypassRule,
    validate_permission_name,
)
from gatekeeper.services import has_scope


@pytest.mark.unit
class TestSecurityLevel:
    """Test tier ordering."""

    def test_ranks_are_ordered(self):
        """Test STANDARD < HIGH < CRITICAL."""
        assert (
            SecurityLevel.STANDARD.rank
            < SecurityLevel.HIGH.rank
            < SecurityLevel.CRITICAL.rank
        )

    def test_secondary_factor_from_high(self):
        """Test HIGH and CRITICAL demand the Basic factor."""
        assert not SecurityLevel.STANDARD.requires_secondary_factor()
        assert SecurityLevel.HIGH.requires_secondary_factor()
        assert SecurityLevel.CRITICAL.requires_secondary_factor()

    def test_permissions_only_at_critical(self):
        """Test only CRITICAL enforces permission lists."""
        assert not SecurityLevel.HIGH.requires_permissions()
        assert SecurityLevel.CRITICAL.requires_permissions()


@pytest.mark.unit
class TestAdminBypassRule:
    """Test the bypass policy."""

    def test_holder_bypasses(self):
        assert AdminBypassRule().evaluate({ADMIN_MANAGE})

    def test_non_holder_does_not(self):
        assert not AdminBypassRule().evaluate({"profile.read", "user.read"})

    def test_custom_permission(self):
        """Test the rule can be pointed at another permission."""
        rule = AdminBypassRule(name="ops", permission="user.delete")

        assert rule.evaluate(["user.delete"])
        assert not rule.evaluate([ADMIN_MANAGE])


@pytest.mark.unit
class TestPermissionCatalog:
    """Test the seeded catalog."""

    @pytest.mark.parametrize(
        ("name", "valid"),
        [
            ("profile.read", True),
            ("admin.manage", True),
            ("Profile.read", False),
            ("profile:read", False),
            ("profile", False),
            ("profile.read.all", False),
            ("", False),
        ],
    )
    def test_validate_permission_name(self, name, valid):
        assert validate_permission_name(name) is valid

    def test_catalog_names_are_valid(self):
        """Test every default permission follows resource.action."""
        for definition in DEFAULT_PERMISSIONS:
            assert validate_permission_name(definition.name)
            assert definition.name == f"{definition.resource}.{definition.action}"

    def test_role_mapping(self):
        """Test admins get everything and users only their profile."""
        all_names = {p.name for p in DEFAULT_PERMISSIONS}

        assert set(DEFAULT_ROLE_PERMISSIONS[UserRole.ADMIN]) == all_names
        assert set(DEFAULT_ROLE_PERMISSIONS[UserRole.USER]) == {
            "profile.read",
            "profile.update",
        }


@pytest.mark.unit
class TestHasScope:
    """Test scope matching."""

    def test_exact_match(self):
        assert has_scope(["profile:read"], "profile:read")

    def test_no_implied_scopes(self):
        """Test read does not imply write."""
        assert not has_scope(["profile:read"], "profile:write")

    @pytest.mark.parametrize("wildcard", ["*", "admin:*"])
    def test_wildcards_match_anything(self, wildcard):
        assert has_scope([wildcard], "users:write")

    def test_empty_grants_nothing(self):
        assert not has_scope([], "profile:read")
