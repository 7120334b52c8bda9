"""RBAC core domain."""

from fleetgate.core.rbac.policy import (
    can_manage_user,
    get_all_roles,
    get_assignable_roles,
    get_default_route_for_role,
    get_permissions_for_role,
    get_role_display_name,
    get_role_level,
    has_permission,
    is_admin_role,
    is_role_higher_than,
    is_super_admin,
)
from fleetgate.core.rbac.types import Action, Permission, Resource, Role, coerce_role

__all__ = [
    "Action",
    "Permission",
    "Resource",
    "Role",
    "can_manage_user",
    "coerce_role",
    "get_all_roles",
    "get_assignable_roles",
    "get_default_route_for_role",
    "get_permissions_for_role",
    "get_role_display_name",
    "get_role_level",
    "has_permission",
    "is_admin_role",
    "is_role_higher_than",
    "is_super_admin",
]
