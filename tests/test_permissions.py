"""
Permission tests.

Verifies:
- Role table lookups, including unknown roles
- require() raises the builtin PermissionError
- can_access() ordering: login, permissions, role
- Runtime role edits, with admin protected from removal
"""

import pytest

from config import Permission, Role
from exceptions import ValidationError
from tools.permissions import PERMISSION_CATALOG, PermissionResolver


# =============================================================================
# LOOKUPS
# =============================================================================


class TestRoleLookups:

    def test_admin_has_every_permission(self, admin_ws):
        assert admin_ws.permissions.current_permissions() == frozenset(PERMISSION_CATALOG)

    def test_manager_permissions(self, manager_ws):
        p = manager_ws.permissions
        assert p.has_permission(Permission.WRITE)
        assert p.has_permission("export_data")
        assert not p.has_permission(Permission.DELETE)
        assert not p.has_permission(Permission.MANAGE_ROLES)

    def test_unknown_role_has_nothing(self, make_workspace):
        ws = make_workspace("ghost@center.com")
        assert ws.permissions.current_permissions() == frozenset()
        assert not ws.permissions.has_permission(Permission.READ)

    def test_logged_out_has_nothing(self, make_workspace):
        ws = make_workspace()
        assert not ws.permissions.has_permission(Permission.READ)

    def test_has_all_permissions_empty_is_true(self, make_workspace):
        ws = make_workspace("ghost@center.com")
        assert ws.permissions.has_all_permissions([])

    def test_has_all_permissions_needs_every_one(self, user_ws):
        assert user_ws.permissions.has_all_permissions([Permission.READ])
        assert not user_ws.permissions.has_all_permissions([Permission.READ, Permission.WRITE])

    def test_require_raises_permission_error(self, user_ws):
        with pytest.raises(PermissionError):
            user_ws.permissions.require(Permission.WRITE)

    def test_catalog_listing(self):
        ids = [p["id"] for p in PermissionResolver.all_permissions()]
        assert ids == [p.value for p in Permission]
        assert PermissionResolver.is_valid_permission("view_reports")
        assert not PermissionResolver.is_valid_permission("fly")


# =============================================================================
# ROUTE GATE
# =============================================================================


class TestCanAccess:

    def test_anonymous_is_sent_to_login(self, make_workspace):
        ws = make_workspace()
        assert ws.permissions.can_access(required_permissions=[Permission.READ]) == "login"

    def test_public_route_allows_anonymous(self, make_workspace):
        ws = make_workspace()
        assert ws.permissions.can_access(requires_auth=False) == "allowed"

    def test_missing_permission_is_unauthorized(self, user_ws):
        assert user_ws.permissions.can_access(required_permissions=[Permission.VIEW_REPORTS]) == "unauthorized"

    def test_wrong_role_is_unauthorized(self, manager_ws):
        assert manager_ws.permissions.can_access(required_role=Role.ADMIN) == "unauthorized"

    def test_allowed(self, admin_ws):
        result = admin_ws.permissions.can_access(
            required_permissions=[Permission.MANAGE_SETTINGS],
            required_role="admin",
        )
        assert result == "allowed"


# =============================================================================
# ROLE TABLE EDITS
# =============================================================================


class TestRoleTable:

    def test_add_role_applies_to_session(self, make_workspace):
        ws = make_workspace("ghost@center.com")
        ws.permissions.add_role("auditor", [Permission.READ, "view_reports"], "Reads reports")
        assert ws.permissions.has_permission(Permission.VIEW_REPORTS)
        assert ws.permissions.roles["auditor"].description == "Reads reports"

    def test_add_role_rejects_unknown_permission(self, admin_ws):
        with pytest.raises(ValidationError):
            admin_ws.permissions.add_role("auditor", ["read", "fly"])
        assert "auditor" not in admin_ws.permissions.roles

    def test_add_role_requires_name(self, admin_ws):
        with pytest.raises(ValidationError):
            admin_ws.permissions.add_role("", ["read"])

    def test_update_keeps_description(self, admin_ws):
        admin_ws.permissions.update_role_permissions(Role.USER, ["read", "write"])
        role = admin_ws.permissions.roles["user"]
        assert role.permissions == frozenset({"read", "write"})
        assert role.description == "Read-only staff"

    def test_remove_role(self, admin_ws):
        assert admin_ws.permissions.remove_role(Role.GENERAL_STAFF)
        assert admin_ws.permissions.role_permissions("general_staff") == frozenset()
        assert not admin_ws.permissions.remove_role("general_staff")

    def test_admin_cannot_be_removed(self, admin_ws):
        before = admin_ws.permissions.role_permissions(Role.ADMIN)
        assert admin_ws.permissions.remove_role(Role.ADMIN) is False
        assert admin_ws.permissions.role_permissions(Role.ADMIN) == before

    def test_role_tables_are_per_workspace(self, make_workspace):
        a = make_workspace("admin@center.com")
        b = make_workspace("admin@center.com")
        a.permissions.remove_role("manager")
        assert "manager" in b.permissions.roles
