"""
Roles, role hierarchy and the default permission matrix.
"""

from enum import Enum
from typing import Dict, List, Optional


class Role(str, Enum):
    """Console user roles."""
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


# Higher number means more privileges
ROLE_HIERARCHY: Dict[Role, int] = {
    Role.ADMIN: 3,
    Role.MANAGER: 2,
    Role.USER: 1,
}

ROLE_LABELS: Dict[Role, str] = {
    Role.ADMIN: "System administrator",
    Role.MANAGER: "Manager",
    Role.USER: "User",
}

ROLE_DESCRIPTIONS: Dict[Role, str] = {
    Role.ADMIN: "Full access to every feature including user management",
    Role.MANAGER: "Manages assets and assignments",
    Role.USER: "Read-only access to their own assigned assets",
}

PERMISSIONS = (
    "can_create_users",
    "can_edit_users",
    "can_delete_users",
    "can_view_users",
    "can_manage_roles",
    "can_reset_passwords",
    "can_activate_users",
    "can_deactivate_users",
    "can_view_audit_logs",
    "can_manage_assets",
    "can_assign_assets",
    "can_export_data",
)

_MANAGER_PERMISSIONS = {"can_view_users", "can_manage_assets", "can_assign_assets", "can_export_data"}

DEFAULT_PERMISSIONS: Dict[Role, Dict[str, bool]] = {
    Role.ADMIN: {name: True for name in PERMISSIONS},
    Role.MANAGER: {name: name in _MANAGER_PERMISSIONS for name in PERMISSIONS},
    Role.USER: {name: False for name in PERMISSIONS},
}


def parse_role(value) -> Optional[Role]:
    """Return the Role for ``value`` or None if it is not a known role."""
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Role(value.strip().lower())
    except ValueError:
        return None


def has_role_privilege(user_role, required_role) -> bool:
    """Check whether ``user_role`` ranks at or above ``required_role``."""
    user = parse_role(user_role)
    required = parse_role(required_role)
    if user is None or required is None:
        return False
    return ROLE_HIERARCHY[user] >= ROLE_HIERARCHY[required]


def get_manageable_roles(user_role) -> List[Role]:
    """Roles with equal or lower privileges than ``user_role``."""
    user = parse_role(user_role)
    if user is None:
        return []
    level = ROLE_HIERARCHY[user]
    return [role for role, rank in ROLE_HIERARCHY.items() if rank <= level]


def get_role_permissions(role) -> Dict[str, bool]:
    """Copy of the default permissions for ``role``; unknown roles get none."""
    parsed = parse_role(role)
    if parsed is None:
        return {name: False for name in PERMISSIONS}
    return dict(DEFAULT_PERMISSIONS[parsed])


def has_permission(role, permission: str) -> bool:
    return get_role_permissions(role).get(permission, False)
