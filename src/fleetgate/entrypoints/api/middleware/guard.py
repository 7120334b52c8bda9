"""Per-request access session and the route guard dependency.

Every request gets its own AccessSession, hydrated from the bearer token
(if any) and closed when the response is sent. Guard outcomes are mapped
to HTTP responses here; the core never raises for a failed check.
"""

from collections.abc import AsyncIterator, Callable, Collection
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any

import structlog
from fastapi import Depends, HTTPException, Request

from fleetgate.adapters.db.app_db import AppDatabase
from fleetgate.adapters.platform.console import ConsoleConfirmationSender
from fleetgate.adapters.platform.postgres import (
    PasswordAuthProvider,
    PostgresCompanyRepository,
    PostgresMembershipRepository,
    PostgresProfileRepository,
)
from fleetgate.adapters.state import InMemoryStateStore, JsonFileStateStore
from fleetgate.core.auth.types import Identity
from fleetgate.core.context import AccessSession, Platform
from fleetgate.core.guard import GuardDecision, GuardMode, GuardOutcome
from fleetgate.core.interfaces import LocalStateStore, Notice, NoticeLevel
from fleetgate.core.rbac.policy import ADMIN_ROLES
from fleetgate.core.rbac.types import Permission, Role
from fleetgate.entrypoints.api.deps import Settings, get_app_db, get_settings
from fleetgate.entrypoints.api.middleware.jwt_auth import JwtContext, optional_jwt

logger = structlog.get_logger()

RETRY_AFTER_SECONDS = "1"


@dataclass
class ClientEffects:
    """What the client should do once the response arrives.

    Collects notices, the navigation target and the full-reload request
    raised while handling one request.
    """

    notices: list[Notice] = field(default_factory=list)
    navigate_to: str | None = None
    reload_requested: bool = False

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)

    def navigate(self, path: str) -> None:
        self.navigate_to = path

    def reload(self) -> None:
        self.reload_requested = True

    def last_error(self) -> Notice | None:
        """Most recent error notice, if any."""
        errors = [n for n in self.notices if n.level is NoticeLevel.ERROR]
        return errors[-1] if errors else None


def build_platform(db: AppDatabase, identity: Identity | None, settings: Settings) -> Platform:
    """Wire the Postgres adapters for one client session."""
    return Platform(
        auth=PasswordAuthProvider(
            db,
            identity,
            confirmations=ConsoleConfirmationSender(),
            frontend_url=settings.frontend_url,
        ),
        profiles=PostgresProfileRepository(db),
        companies=PostgresCompanyRepository(db),
        memberships=PostgresMembershipRepository(db),
    )


def state_store_for(settings: Settings, user_id: str | None) -> LocalStateStore:
    """Local state for a user; anonymous sessions keep nothing."""
    if user_id is None:
        return InMemoryStateStore()
    return JsonFileStateStore(Path(settings.state_path) / f"{user_id}.json")


def get_client_effects(request: Request) -> ClientEffects:
    """Get the effects collector for this request."""
    effects = getattr(request.state, "effects", None)
    if effects is None:
        effects = ClientEffects()
        request.state.effects = effects
    return effects


async def get_access_session(
    jwt: Annotated[JwtContext | None, Depends(optional_jwt)],
    effects: Annotated[ClientEffects, Depends(get_client_effects)],
    db: Annotated[AppDatabase, Depends(get_app_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AsyncIterator[AccessSession]:
    """Create, hydrate and finally close the request's access session."""
    identity = jwt.identity if jwt else None
    session = AccessSession(
        platform=build_platform(db, identity, settings),
        state=state_store_for(settings, identity.id if identity else None),
        notifier=effects,
        navigator=effects,
        reloader=effects,
        max_verify_attempts=settings.max_verify_attempts,
    )
    await session.start()
    try:
        yield session
    finally:
        session.close()


def outcome_to_http(outcome: GuardOutcome) -> HTTPException:
    """Translate a denying guard outcome into an HTTP error."""
    if outcome.decision is GuardDecision.VERIFYING:
        return HTTPException(
            status_code=503,
            detail={"message": outcome.message},
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )
    if outcome.decision is GuardDecision.REDIRECT_SIGN_IN:
        return HTTPException(
            status_code=401,
            detail={
                "message": outcome.message or "Authentication required",
                "redirect_to": outcome.redirect_to,
                "return_to": outcome.return_to,
            },
            headers={"WWW-Authenticate": "Bearer"},
        )
    if outcome.decision is GuardDecision.REDIRECT_DEFAULT:
        return HTTPException(
            status_code=403,
            detail={
                "message": "You don't have access to this page",
                "redirect_to": outcome.redirect_to,
            },
        )
    return HTTPException(status_code=403, detail={"message": outcome.message})


def require_access(
    allowed_roles: Collection[Role | str] | None = None,
    permission: Permission | str | None = None,
    mode: GuardMode | None = None,
) -> Callable[..., Any]:
    """Dependency guarding a route with the access guard.

    Usage:
        @router.get("/fleet")
        async def fleet(
            session: Annotated[AccessSession, Depends(require_access(permission="vehicles:view"))],
        ):
            ...

    Args:
        allowed_roles: Roles permitted, if the route is role restricted.
        permission: Permission required, as ``Permission`` or "resource:action".
        mode: Guard variant; see AccessGuard.evaluate.

    Returns:
        Dependency function returning the allowed session.
    """

    async def access_checker(
        request: Request,
        session: Annotated[AccessSession, Depends(get_access_session)],
    ) -> AccessSession:
        path = request.url.path
        outcome = session.check(
            path,
            allowed_roles=allowed_roles,
            required_permission=permission,
            mode=mode,
        )
        if outcome.allowed:
            return session
        logger.info("access_denied", path=path, decision=outcome.decision.value)
        raise outcome_to_http(outcome)

    return access_checker


# Common guards for convenience
RequireSignedIn = Annotated[AccessSession, Depends(require_access())]
RequireAdmin = Annotated[
    AccessSession,
    Depends(require_access(allowed_roles=ADMIN_ROLES, mode=GuardMode.CAPABILITY)),
]
