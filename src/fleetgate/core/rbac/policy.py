"""Role policy table.

Pure functions over Role values. Every table below is keyed by every
Role member; tests enforce that, so a new role cannot ship without an
entry in each table. A role of None (absent or unrecognised) is always
treated as the least-privileged case.
"""

from __future__ import annotations

from fleetgate.core.rbac.types import (
    WILDCARD,
    Action,
    Permission,
    Resource,
    Role,
    coerce_role,
)

ADMIN_ROLES: frozenset[Role] = frozenset({Role.SUPER_ADMIN, Role.COMPANY_ADMIN})

SIGN_IN_ROUTE = "/signin"
SIGN_UP_ROUTE = "/signup"
LEAST_PRIVILEGED_ROUTE = "/documents"

ROLE_HIERARCHY: dict[Role, int] = {
    Role.SUPER_ADMIN: 100,
    Role.COMPANY_ADMIN: 80,
    Role.SUPERVISOR: 50,
    Role.DRIVER: 10,
}

ROLE_DISPLAY_NAMES: dict[Role, str] = {
    Role.SUPER_ADMIN: "Super Admin",
    Role.COMPANY_ADMIN: "Company Admin",
    Role.SUPERVISOR: "Supervisor",
    Role.DRIVER: "Driver",
}

DEFAULT_ROUTES: dict[Role, str] = {
    Role.SUPER_ADMIN: "/companies",
    Role.COMPANY_ADMIN: "/fleet",
    Role.SUPERVISOR: "/fleet",
    Role.DRIVER: LEAST_PRIVILEGED_ROUTE,
}

ASSIGNABLE_ROLES: dict[Role, tuple[Role, ...]] = {
    Role.SUPER_ADMIN: (Role.SUPER_ADMIN, Role.COMPANY_ADMIN, Role.SUPERVISOR, Role.DRIVER),
    Role.COMPANY_ADMIN: (Role.COMPANY_ADMIN, Role.SUPERVISOR, Role.DRIVER),
    Role.SUPERVISOR: (),
    Role.DRIVER: (),
}


def _grant(resource: Resource, *actions: Action) -> list[Permission]:
    return [Permission.of(resource, action) for action in actions]


BASE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.SUPER_ADMIN: frozenset({Permission(WILDCARD, WILDCARD)}),
    Role.COMPANY_ADMIN: frozenset({Permission(WILDCARD, WILDCARD)}),
    Role.SUPERVISOR: frozenset(
        [
            *_grant(Resource.DASHBOARD, Action.VIEW),
            *_grant(Resource.VEHICLES, Action.VIEW, Action.UPDATE),
            *_grant(Resource.DRIVERS, Action.VIEW, Action.CREATE, Action.UPDATE),
            *_grant(Resource.TRIPS, Action.VIEW, Action.CREATE, Action.UPDATE, Action.APPROVE),
            *_grant(Resource.MAINTENANCE, Action.VIEW, Action.CREATE),
            *_grant(Resource.DOCUMENTS, Action.VIEW, Action.CREATE, Action.UPDATE),
            *_grant(Resource.REPORTS, Action.VIEW, Action.EXPORT),
            *_grant(Resource.ANALYTICS, Action.VIEW),
            *_grant(Resource.NOTIFICATIONS, Action.VIEW, Action.MANAGE),
        ]
    ),
    Role.DRIVER: frozenset(
        [
            *_grant(Resource.DASHBOARD, Action.VIEW),
            *_grant(Resource.VEHICLES, Action.VIEW),
            *_grant(Resource.TRIPS, Action.VIEW, Action.CREATE),
            *_grant(Resource.DOCUMENTS, Action.VIEW, Action.CREATE),
            *_grant(Resource.NOTIFICATIONS, Action.VIEW),
        ]
    ),
}


def is_admin_role(role: Role | str | None) -> bool:
    """Check if a role is admin tier (super_admin or company_admin)."""
    return coerce_role(role) in ADMIN_ROLES


def is_super_admin(role: Role | str | None) -> bool:
    """Check if a role is super_admin."""
    return coerce_role(role) is Role.SUPER_ADMIN


def can_manage_user(actor_role: Role | str | None, target_role: Role | str | None) -> bool:
    """Check whether an actor may manage a user holding target_role.

    The target role must be the target's live role, read at the time of
    the action. Super admins manage everyone, company admins manage
    everyone except super admins, nobody else manages anyone.
    """
    actor = coerce_role(actor_role)
    if actor is Role.SUPER_ADMIN:
        return True
    if actor is Role.COMPANY_ADMIN:
        return coerce_role(target_role) is not Role.SUPER_ADMIN
    return False


def get_assignable_roles(actor_role: Role | str | None) -> list[Role]:
    """Get the roles an actor may assign to others."""
    actor = coerce_role(actor_role)
    if actor is None:
        return []
    return list(ASSIGNABLE_ROLES[actor])


def get_default_route_for_role(role: Role | str | None) -> str:
    """Get the landing route for a role."""
    resolved = coerce_role(role)
    if resolved is None:
        return LEAST_PRIVILEGED_ROUTE
    return DEFAULT_ROUTES[resolved]


def get_role_display_name(role: Role | str | None) -> str:
    """Get a presentation label for a role."""
    resolved = coerce_role(role)
    if resolved is None:
        return str(role or "")
    return ROLE_DISPLAY_NAMES[resolved]


def get_all_roles() -> list[Role]:
    """Get all roles, most privileged first."""
    return sorted(Role, key=lambda r: ROLE_HIERARCHY[r], reverse=True)


def get_role_level(role: Role | str | None) -> int:
    """Get the hierarchy level of a role (0 when unknown)."""
    resolved = coerce_role(role)
    return ROLE_HIERARCHY[resolved] if resolved is not None else 0


def is_role_higher_than(role: Role | str | None, other: Role | str | None) -> bool:
    """Check if one role sits above another in the hierarchy."""
    return get_role_level(role) > get_role_level(other)


def get_permissions_for_role(role: Role | str | None) -> frozenset[Permission]:
    """Get the permission grants held by a role."""
    resolved = coerce_role(role)
    if resolved is None:
        return frozenset()
    return BASE_PERMISSIONS[resolved]


def has_permission(
    role: Role | str | None,
    resource: Resource | str,
    action: Action | str,
) -> bool:
    """Check if a role holds a resource:action permission.

    Wildcard grants (``*:*`` and ``resource:*``) are honoured.
    """
    wanted = Permission.of(resource, action)
    return any(
        grant.grants(wanted.resource, wanted.action) for grant in get_permissions_for_role(role)
    )
