"""Access session - the per-client bundle of session, guard and tenant state.

An AccessSession is created when a client starts (or, over HTTP, per
request), handed to everything that needs access decisions, and closed
on teardown. Nothing in fleetgate keeps session state at module level.
"""

from __future__ import annotations

from collections.abc import Callable, Collection
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from fleetgate.core.auth.service import AuthService
from fleetgate.core.guard import DEFAULT_MAX_VERIFY_ATTEMPTS, AccessGuard, GuardMode, GuardOutcome
from fleetgate.core.interfaces import (
    AuthProvider,
    CompanyRepository,
    LocalStateStore,
    MembershipRepository,
    Navigator,
    Notifier,
    ProfileRepository,
    Reloader,
)
from fleetgate.core.rbac.manager import RoleManager
from fleetgate.core.rbac.types import Permission, Role
from fleetgate.core.session import SessionState, SessionStore
from fleetgate.core.tenancy.onboarding import OnboardingFlags
from fleetgate.core.tenancy.switcher import CompanySwitcher

logger = structlog.get_logger()


@dataclass
class Platform:
    """The remote data platform's APIs."""

    auth: AuthProvider
    profiles: ProfileRepository
    companies: CompanyRepository
    memberships: MembershipRepository


class AccessSession:
    """Everything one client needs to make access decisions."""

    def __init__(
        self,
        platform: Platform,
        state: LocalStateStore,
        notifier: Notifier,
        navigator: Navigator,
        reloader: Reloader,
        max_verify_attempts: int = DEFAULT_MAX_VERIFY_ATTEMPTS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = SessionStore()
        self.max_verify_attempts = max_verify_attempts
        self.auth = AuthService(
            provider=platform.auth,
            profiles=platform.profiles,
            companies=platform.companies,
            store=self.store,
            notifier=notifier,
            navigator=navigator,
            clock=clock or (lambda: datetime.now(UTC)),
        )
        self.companies = CompanySwitcher(
            user_id=None,
            memberships=platform.memberships,
            state=state,
            notifier=notifier,
            reloader=reloader,
        )
        self.roles = RoleManager(
            store=self.store,
            memberships=platform.memberships,
            notifier=notifier,
            active_company_id=lambda: self.companies.current_company_id,
        )
        self.onboarding = OnboardingFlags(state)
        self._guards: dict[str, AccessGuard] = {}
        self._unsubscribe = self.store.subscribe(self._on_session_change)

    def snapshot(self) -> SessionState:
        """Read-only view of the current session."""
        return self.store.read()

    def guard(self, boundary: str) -> AccessGuard:
        """The guard owned by one guarded boundary."""
        if boundary not in self._guards:
            self._guards[boundary] = AccessGuard(self.max_verify_attempts)
        return self._guards[boundary]

    def check(
        self,
        path: str,
        allowed_roles: Collection[Role | str] | None = None,
        required_permission: Permission | str | None = None,
        mode: GuardMode | None = None,
        boundary: str | None = None,
    ) -> GuardOutcome:
        """Evaluate the guard for ``path`` against the current session."""
        return self.guard(boundary or path).evaluate(
            self.snapshot(),
            path,
            allowed_roles=allowed_roles,
            required_permission=required_permission,
            mode=mode,
        )

    async def start(self) -> None:
        """Hydrate from any existing session and load memberships."""
        await self.auth.initialize()
        identity = self.snapshot().identity
        if identity is not None:
            await self.companies.load_companies(identity.id)

    def close(self) -> None:
        """Tear down to unauthenticated defaults."""
        self._unsubscribe()
        self.store.reset()
        self._guards.clear()
        logger.debug("access_session_closed")

    def _on_session_change(self, state: SessionState) -> None:
        user_id = state.identity.id if state.identity else None
        if user_id != self.companies.user_id:
            self.companies.user_id = user_id
            self.companies.companies = []
            self.companies.current_company_id = None
