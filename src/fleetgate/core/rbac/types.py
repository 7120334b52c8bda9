"""RBAC domain types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """User roles.

    The privilege order is not linear: the two admin tiers bypass
    fine-grained checks, the other two are checked against allow-lists.
    """

    SUPER_ADMIN = "super_admin"
    COMPANY_ADMIN = "company_admin"
    SUPERVISOR = "supervisor"
    DRIVER = "driver"


class Resource(str, Enum):
    """Resources a permission can target."""

    DASHBOARD = "dashboard"
    VEHICLES = "vehicles"
    DRIVERS = "drivers"
    TRIPS = "trips"
    MAINTENANCE = "maintenance"
    DOCUMENTS = "documents"
    COMPANIES = "companies"
    USERS = "users"
    SETTINGS = "settings"
    REPORTS = "reports"
    ANALYTICS = "analytics"
    SECURITY = "security"
    ADVERTISEMENTS = "advertisements"
    INTEGRATIONS = "integrations"
    NOTIFICATIONS = "notifications"


class Action(str, Enum):
    """Actions a permission can grant."""

    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"
    APPROVE = "approve"
    EXPORT = "export"


WILDCARD = "*"


@dataclass(frozen=True)
class Permission:
    """A resource:action pair.

    Either side may be the wildcard ``*``.
    """

    resource: str
    action: str

    def __str__(self) -> str:
        return f"{self.resource}:{self.action}"

    @classmethod
    def of(cls, resource: Resource | str, action: Action | str) -> Permission:
        """Build a permission from enum members or raw strings."""
        return cls(
            resource=resource.value if isinstance(resource, Resource) else resource,
            action=action.value if isinstance(action, Action) else action,
        )

    @classmethod
    def parse(cls, value: str) -> Permission:
        """Parse the ``resource:action`` string form.

        Raises:
            ValueError: If the string is not of the form resource:action.
        """
        resource, sep, action = value.partition(":")
        if not sep or not resource or not action:
            raise ValueError(f"Invalid permission: {value!r}")
        return cls(resource=resource, action=action)

    def grants(self, resource: str, action: str) -> bool:
        """Check whether this grant covers the requested resource and action."""
        if self.resource not in (WILDCARD, resource):
            return False
        return self.action in (WILDCARD, action)


def coerce_role(value: Role | str | None) -> Role | None:
    """Turn a loosely typed role value into a Role.

    Unknown or empty values map to None, which every policy function
    treats as the least-privileged case.
    """
    if value is None or isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None
