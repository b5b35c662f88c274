"""
src/tools/permissions.py — role-based access control (RBAC)

RBAC = Role-Based Access Control. Permissions are granted to roles (e.g.
"manager"), and whoever holds the role in the current session can perform the
action. The role table is a plain lookup from role name to a frozen set of
permission ids; a role that is not in the table resolves to no permissions.

Usage:
    resolver = PermissionResolver(session)
    if not resolver.has_permission(Permission.WRITE):
        ...
    resolver.require(Permission.DELETE)      # raises PermissionError
"""


from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

from loguru import logger

from config import Permission, Role
from exceptions import ValidationError


PermissionLike = Union[Permission, str]


@dataclass(frozen=True)
class PermissionInfo:

    name: str
    description: str


@dataclass(frozen=True)
class RoleDefinition:

    permissions: FrozenSet[str]
    description: str = ""


PERMISSION_CATALOG: Dict[str, PermissionInfo] = {
    Permission.READ.value: PermissionInfo("Read Access", "Can view resources"),
    Permission.WRITE.value: PermissionInfo("Write Access", "Can create and edit resources"),
    Permission.DELETE.value: PermissionInfo("Delete Access", "Can delete resources"),
    Permission.MANAGE_USERS.value: PermissionInfo("Manage Users", "Can manage user accounts"),
    Permission.MANAGE_ROLES.value: PermissionInfo("Manage Roles", "Can manage roles and permissions"),
    Permission.VIEW_REPORTS.value: PermissionInfo("View Reports", "Can view reports and analytics"),
    Permission.EXPORT_DATA.value: PermissionInfo("Export Data", "Can export data from the system"),
    Permission.MANAGE_SETTINGS.value: PermissionInfo("Manage Settings", "Can modify system settings"),
}

# Minimal default
DEFAULT_ROLES: Dict[str, RoleDefinition] = {
    Role.ADMIN.value: RoleDefinition(frozenset(PERMISSION_CATALOG), "Full access"),
    Role.MANAGER.value: RoleDefinition(
        frozenset({"read", "write", "manage_users", "view_reports", "export_data"}),
        "Runs the sales team",
    ),
    Role.USER.value: RoleDefinition(frozenset({"read"}), "Read-only staff"),
    Role.GENERAL_STAFF.value: RoleDefinition(frozenset({"read"}), "Read-only staff"),
}


def _key(value: Union[Enum, str, None]) -> Optional[str]:

    return getattr(value, "value", value)


class PermissionResolver:
    """Answers permission questions for whoever holds the session."""

    def __init__(self, session, roles: Optional[Dict[str, RoleDefinition]] = None):

        self.session = session
        self.roles: Dict[str, RoleDefinition] = dict(DEFAULT_ROLES if roles is None else roles)

    # --- Lookups ---------------------------------------------------------------
    def role_permissions(self, role: Union[Role, str, None]) -> FrozenSet[str]:
        """Permissions assigned to `role`, or an empty set for unknown roles."""

        definition = self.roles.get(_key(role)) if role else None

        return definition.permissions if definition else frozenset()

    def current_permissions(self) -> FrozenSet[str]:

        return self.role_permissions(self.session.role)

    def has_permission(self, permission: PermissionLike) -> bool:

        return _key(permission) in self.current_permissions()

    def has_all_permissions(self, permissions: Iterable[PermissionLike]) -> bool:
        """True when every permission is granted; vacuously true for none."""

        return all(self.has_permission(p) for p in permissions)

    def require(self, permission: PermissionLike) -> None:

        if not self.has_permission(permission):
            logger.warning("Role {} lacks permission {}", self.session.role, _key(permission))
            raise PermissionError(f"You do not have the '{_key(permission)}' permission.")

    def can_access(
            self,
            *,
            requires_auth: bool = True,
            required_permissions: Iterable[PermissionLike] = (),
            required_role: Union[Role, str, None] = None,
    ) -> str:
        """
        Gate a view. Returns "allowed", "login" or "unauthorized".

        Checks run in order: authentication, permissions, then exact role.
        """

        if requires_auth and not self.session.is_authenticated:
            return "login"
        if not self.has_all_permissions(required_permissions):
            return "unauthorized"
        if required_role is not None and self.session.role != _key(required_role):
            return "unauthorized"

        return "allowed"

    # --- Catalog ---------------------------------------------------------------
    @staticmethod
    def is_valid_permission(permission: PermissionLike) -> bool:

        return _key(permission) in PERMISSION_CATALOG

    @staticmethod
    def all_permissions() -> List[Dict[str, str]]:

        return [
            {"id": pid, "name": info.name, "description": info.description}
            for pid, info in PERMISSION_CATALOG.items()
        ]

    # --- Role table ------------------------------------------------------------
    def add_role(self, role: Union[Role, str], permissions: Iterable[PermissionLike], description: str = "") -> None:

        name = _key(role)

        if not name:
            raise ValidationError("Role name is required.")

        perms = frozenset(_key(p) for p in permissions)
        unknown = sorted(p for p in perms if p not in PERMISSION_CATALOG)

        if unknown:
            raise ValidationError(f"Unknown permissions: {', '.join(unknown)}")

        self.roles[name] = RoleDefinition(perms, description)
        logger.info("Role {} set to {}", name, sorted(perms))

    def update_role_permissions(self, role: Union[Role, str], permissions: Iterable[PermissionLike], description: Optional[str] = None) -> None:

        if description is None:
            current = self.roles.get(_key(role))
            description = current.description if current else ""

        self.add_role(role, permissions, description)

    def remove_role(self, role: Union[Role, str]) -> bool:
        """Delete a role. The admin role can never be removed."""

        name = _key(role)

        if name == Role.ADMIN.value:
            logger.warning("Refusing to remove the admin role")
            return False

        removed = self.roles.pop(name, None) is not None
        if removed:
            logger.info("Role {} removed", name)

        return removed
