"""Role queries and role assignment for the signed-in user."""

from __future__ import annotations

from collections.abc import Callable, Iterable

import structlog

from fleetgate.core.exceptions import FleetgateError
from fleetgate.core.interfaces import MembershipRepository, Notice, NoticeLevel, Notifier
from fleetgate.core.rbac.policy import (
    can_manage_user,
    get_all_roles,
    has_permission,
    is_admin_role,
    is_super_admin,
)
from fleetgate.core.rbac.policy import get_assignable_roles as assignable_roles_for
from fleetgate.core.rbac.types import Action, Resource, Role, coerce_role
from fleetgate.core.session import SessionStore

logger = structlog.get_logger()


class RoleManager:
    """Permission queries and role mutation on behalf of the session user."""

    def __init__(
        self,
        store: SessionStore,
        memberships: MembershipRepository,
        notifier: Notifier,
        active_company_id: Callable[[], str | None] | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            store: Session store to read the acting user from.
            memberships: Membership records holding per-company roles.
            notifier: User-visible notice channel.
            active_company_id: Returns the tenant role changes apply to;
                defaults to the acting profile's company.
        """
        self._store = store
        self._memberships = memberships
        self._notifier = notifier
        self._active_company_id = active_company_id

    @property
    def role(self) -> Role | None:
        profile = self._store.read().profile
        return profile.role if profile else None

    def has_role(self, role: Role | str | Iterable[Role | str]) -> bool:
        """Check the session user's role against one role or a set."""
        current = self.role
        if current is None:
            return False
        if isinstance(role, str):
            return coerce_role(role) is current
        return current in {coerce_role(r) for r in role}

    def is_admin_or_above(self) -> bool:
        return is_admin_role(self.role)

    def is_super_admin_user(self) -> bool:
        return is_super_admin(self.role)

    def can(self, resource: Resource | str, action: Action | str) -> bool:
        return has_permission(self.role, resource, action)

    def get_assignable_roles(self) -> list[Role]:
        return assignable_roles_for(self.role)

    def get_all_roles(self) -> list[Role]:
        return get_all_roles()

    async def update_user_role(
        self,
        user_id: str,
        role: Role | str,
        company_id: str | None = None,
    ) -> bool:
        """Replace another user's role.

        The target's current role in the affected company is read fresh
        from the platform before deciding whether the acting user may
        manage them. Company admins may only change roles in their active
        company, and only while they hold an admin role there.

        Returns:
            True if the role was replaced.
        """
        actor_role = self.role
        new_role = coerce_role(role)

        if not is_admin_role(actor_role):
            self._deny("You don't have permission to update user roles")
            return False
        if new_role is None:
            self._deny(f"Unknown role: {role}")
            return False
        if new_role not in assignable_roles_for(actor_role):
            self._deny(f"You cannot assign the {new_role.value} role")
            return False

        active_company = self._resolve_company_id()
        target_company = company_id or active_company
        super_admin = is_super_admin(actor_role)

        # Company admins only act inside the company they are active in.
        if not super_admin and target_company is None:
            self._deny("No active company to manage users in")
            return False
        if not super_admin and target_company != active_company:
            self._deny("You can only manage users in your active company")
            return False

        try:
            if not super_admin:
                company_role = await self._memberships.get_role_for_company(
                    self._actor_id(), target_company
                )
                if not is_admin_role(company_role):
                    self._deny("You are not an administrator of this company")
                    return False
            target_role = await self._target_role(user_id, target_company)
            if not can_manage_user(actor_role, target_role):
                self._deny("You cannot manage this user")
                return False
            await self._memberships.replace_user_role(user_id, new_role, target_company)
        except FleetgateError as e:
            logger.error("role_update_failed", user_id=user_id, error=str(e))
            self._notifier.notify(
                Notice("Update Failed", str(e) or "Failed to update user role", NoticeLevel.ERROR)
            )
            return False

        logger.info(
            "user_role_updated",
            user_id=user_id,
            role=new_role.value,
            company_id=target_company,
            actor_role=actor_role.value if actor_role else None,
        )
        self._notifier.notify(Notice("Role Updated", "User role has been updated successfully"))
        return True

    def _actor_id(self) -> str:
        state = self._store.read()
        if state.identity is not None:
            return state.identity.id
        return state.profile.id if state.profile else ""

    async def _target_role(self, user_id: str, company_id: str | None) -> Role | None:
        """Role of the target in the company being changed."""
        if company_id is None:
            return await self._memberships.get_user_role(user_id)
        return await self._memberships.get_role_for_company(user_id, company_id)

    def _resolve_company_id(self) -> str | None:
        if self._active_company_id is not None:
            company_id = self._active_company_id()
            if company_id:
                return company_id
        profile = self._store.read().profile
        return profile.company_id if profile else None

    def _deny(self, description: str) -> None:
        logger.warning("role_update_denied", reason=description)
        self._notifier.notify(Notice("Permission Denied", description, NoticeLevel.ERROR))
