"""Response models shared by the API routes."""

from __future__ import annotations

from pydantic import BaseModel

from fleetgate.core.context import AccessSession
from fleetgate.core.interfaces import Notice
from fleetgate.core.rbac.policy import get_default_route_for_role, get_role_display_name
from fleetgate.core.rbac.types import Role
from fleetgate.entrypoints.api.middleware.guard import ClientEffects


class NoticeResponse(BaseModel):
    """A user-visible notice."""

    title: str
    description: str
    level: str

    @classmethod
    def from_notice(cls, notice: Notice) -> NoticeResponse:
        return cls(title=notice.title, description=notice.description, level=notice.level.value)


class ClientEffectsResponse(BaseModel):
    """What the client should show and do after the request."""

    notices: list[NoticeResponse] = []
    redirect_to: str | None = None
    reload: bool = False

    @classmethod
    def from_effects(cls, effects: ClientEffects) -> ClientEffectsResponse:
        return cls(
            notices=[NoticeResponse.from_notice(n) for n in effects.notices],
            redirect_to=effects.navigate_to,
            reload=effects.reload_requested,
        )


class RoleResponse(BaseModel):
    """A role with its display name."""

    value: str
    display_name: str

    @classmethod
    def from_role(cls, role: Role) -> RoleResponse:
        return cls(value=role.value, display_name=get_role_display_name(role))


class UserResponse(BaseModel):
    """The signed-in identity."""

    id: str
    email: str
    email_verified: bool


class ProfileResponse(BaseModel):
    """The signed-in user's profile."""

    id: str
    email: str
    full_name: str | None = None
    role: RoleResponse | None = None
    company_id: str | None = None


class OnboardingResponse(BaseModel):
    """Onboarding flag state."""

    tour_completed: bool
    welcome_dismissed: bool


class SessionResponse(BaseModel):
    """Snapshot of the access session."""

    is_authenticated: bool
    initialized: bool
    loading: bool
    profile_missing: bool
    user: UserResponse | None = None
    profile: ProfileResponse | None = None
    default_route: str | None = None
    onboarding: OnboardingResponse | None = None

    @classmethod
    def from_session(cls, session: AccessSession) -> SessionResponse:
        state = session.snapshot()
        user = None
        if state.identity is not None:
            user = UserResponse(
                id=state.identity.id,
                email=state.identity.email,
                email_verified=state.identity.is_email_verified,
            )
        profile = None
        if state.profile is not None:
            role = state.profile.role
            profile = ProfileResponse(
                id=state.profile.id,
                email=state.profile.email,
                full_name=state.profile.full_name,
                role=RoleResponse.from_role(role) if role else None,
                company_id=state.profile.company_id,
            )
        return cls(
            is_authenticated=state.is_authenticated,
            initialized=state.initialized,
            loading=state.loading,
            profile_missing=state.profile_missing,
            user=user,
            profile=profile,
            default_route=(
                get_default_route_for_role(state.profile.role) if state.profile else None
            ),
            onboarding=(
                OnboardingResponse(
                    tour_completed=session.onboarding.tour_completed,
                    welcome_dismissed=session.onboarding.welcome_dismissed,
                )
                if state.is_authenticated
                else None
            ),
        )
