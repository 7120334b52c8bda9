"""Access guard - decides what a protected view renders.

Each guarded boundary owns one AccessGuard and asks it for a decision on
every render. Authorization failures are outcomes, never exceptions.

Two variants share the same bounded verifying policy:

- role mode gates on an allowed-role set and sends unauthorized users
  to their role's default route;
- capability mode lets admin tiers through unconditionally and renders
  a forbidden notice in place for everyone else who fails a check.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from enum import Enum

import structlog

from fleetgate.core.rbac.policy import (
    SIGN_IN_ROUTE,
    SIGN_UP_ROUTE,
    get_default_route_for_role,
    has_permission,
    is_admin_role,
)
from fleetgate.core.rbac.types import Permission, Role, coerce_role
from fleetgate.core.session import SessionState

logger = structlog.get_logger()

DEFAULT_MAX_VERIFY_ATTEMPTS = 3
AUTH_ROUTES = frozenset({SIGN_IN_ROUTE, SIGN_UP_ROUTE})


class GuardDecision(str, Enum):
    """What a guarded view should render."""

    ALLOW = "allow"
    REDIRECT_SIGN_IN = "redirect_sign_in"
    REDIRECT_DEFAULT = "redirect_default"
    FORBIDDEN = "forbidden"
    VERIFYING = "verifying"


class GuardMode(str, Enum):
    """Which guard variant to apply."""

    ROLE = "role"
    CAPABILITY = "capability"


@dataclass(frozen=True)
class GuardOutcome:
    """Result of one guard evaluation."""

    decision: GuardDecision
    redirect_to: str | None = None
    return_to: str | None = None
    message: str | None = None

    @property
    def allowed(self) -> bool:
        return self.decision is GuardDecision.ALLOW


ALLOW = GuardOutcome(GuardDecision.ALLOW)
VERIFYING = GuardOutcome(GuardDecision.VERIFYING, message="Verifying authentication...")


class AccessGuard:
    """Per-boundary guard with a bounded number of verifying renders.

    While the session is loading the guard renders VERIFYING for at most
    ``max_verify_attempts`` consecutive renders, then decides from
    whatever the session holds. This is a render-count heuristic, not a
    network retry. The counter resets on the first render that is not
    loading.
    """

    def __init__(self, max_verify_attempts: int = DEFAULT_MAX_VERIFY_ATTEMPTS) -> None:
        self.max_verify_attempts = max_verify_attempts
        self.attempts = 0

    def evaluate(
        self,
        state: SessionState,
        path: str,
        allowed_roles: Collection[Role | str] | None = None,
        required_permission: Permission | str | None = None,
        mode: GuardMode | None = None,
    ) -> GuardOutcome:
        """Decide what the boundary at ``path`` renders for ``state``.

        Args:
            state: Current session snapshot.
            path: Path being rendered.
            allowed_roles: Roles permitted to see the view, if restricted.
            required_permission: Permission needed, if permission gated.
            mode: Guard variant; defaults to capability when a permission
                is required and role otherwise.

        Returns:
            The outcome to render.
        """
        if state.loading and self.attempts < self.max_verify_attempts:
            self.attempts += 1
            return VERIFYING
        if state.loading:
            logger.warning("guard_verify_attempts_exhausted", path=path, attempts=self.attempts)
        else:
            self.attempts = 0

        permission = (
            Permission.parse(required_permission)
            if isinstance(required_permission, str)
            else required_permission
        )
        if mode is None:
            mode = GuardMode.CAPABILITY if permission is not None else GuardMode.ROLE

        if state.identity is None:
            if path in AUTH_ROUTES:
                return ALLOW
            return GuardOutcome(
                GuardDecision.REDIRECT_SIGN_IN,
                redirect_to=SIGN_IN_ROUTE,
                return_to=path,
            )

        if state.profile is None:
            if path == SIGN_IN_ROUTE:
                return ALLOW
            logger.error("guard_profile_missing", user_id=state.identity.id, path=path)
            return GuardOutcome(
                GuardDecision.REDIRECT_SIGN_IN,
                redirect_to=SIGN_IN_ROUTE,
                return_to=path,
                message="Profile not found",
            )

        role = state.profile.role
        # Unknown role names grant nothing, and an unknown role matches nothing.
        roles = (
            {r for r in map(coerce_role, allowed_roles) if r is not None}
            if allowed_roles
            else None
        )

        if mode is GuardMode.ROLE:
            if roles is not None and (role is None or role not in roles):
                return GuardOutcome(
                    GuardDecision.REDIRECT_DEFAULT,
                    redirect_to=get_default_route_for_role(role),
                )
            return ALLOW

        if is_admin_role(role):
            return ALLOW

        if roles is not None and (role is None or role not in roles):
            required = ", ".join(sorted(r.value for r in roles))
            return GuardOutcome(
                GuardDecision.FORBIDDEN,
                message=(
                    "You don't have permission to access this page. "
                    f"Required role: {required}"
                ),
            )

        if permission is not None and not has_permission(
            role, permission.resource, permission.action
        ):
            return GuardOutcome(
                GuardDecision.FORBIDDEN,
                message=(
                    "You don't have permission to perform this action. "
                    f"Required: {permission}"
                ),
            )

        return ALLOW
