"""User role management and onboarding routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from fleetgate.entrypoints.api.middleware.guard import (
    ClientEffects,
    RequireAdmin,
    RequireSignedIn,
    get_client_effects,
)
from fleetgate.entrypoints.api.schemas import (
    ClientEffectsResponse,
    OnboardingResponse,
    RoleResponse,
)

router = APIRouter(prefix="/users", tags=["users"])

EffectsDep = Annotated[ClientEffects, Depends(get_client_effects)]


class UpdateRoleRequest(BaseModel):
    """Request to replace a user's role."""

    role: str
    company_id: str | None = None


class OnboardingUpdate(BaseModel):
    """Onboarding flag changes; unset fields are left alone."""

    complete_tour: bool | None = None
    dismiss_welcome: bool | None = None


@router.get("/assignable-roles", response_model=list[RoleResponse])
async def list_assignable_roles(session: RequireAdmin) -> list[RoleResponse]:
    """Roles the caller may assign to others."""
    return [RoleResponse.from_role(role) for role in session.roles.get_assignable_roles()]


@router.put("/{user_id}/role", response_model=ClientEffectsResponse)
async def update_user_role(
    user_id: str,
    body: UpdateRoleRequest,
    session: RequireAdmin,
    effects: EffectsDep,
) -> ClientEffectsResponse:
    """Replace a user's role in the active company; super admins may name any company."""
    ok = await session.roles.update_user_role(user_id, body.role, company_id=body.company_id)
    if not ok:
        notice = effects.last_error()
        denied = notice is not None and notice.title == "Permission Denied"
        raise HTTPException(
            status_code=403 if denied else 502,
            detail=notice.description if notice else "Failed to update user role",
        )
    return ClientEffectsResponse.from_effects(effects)


@router.get("/me/onboarding", response_model=OnboardingResponse)
async def get_onboarding(session: RequireSignedIn) -> OnboardingResponse:
    """Onboarding flags for the caller."""
    return OnboardingResponse(
        tour_completed=session.onboarding.tour_completed,
        welcome_dismissed=session.onboarding.welcome_dismissed,
    )


@router.patch("/me/onboarding", response_model=OnboardingResponse)
async def update_onboarding(
    body: OnboardingUpdate,
    session: RequireSignedIn,
) -> OnboardingResponse:
    """Complete or restart the tour, or dismiss the welcome banner."""
    flags = session.onboarding
    if body.complete_tour is True:
        flags.complete_tour()
    elif body.complete_tour is False:
        flags.reset_tour()
    if body.dismiss_welcome:
        flags.dismiss_welcome()
    return OnboardingResponse(
        tour_completed=flags.tour_completed,
        welcome_dismissed=flags.welcome_dismissed,
    )
