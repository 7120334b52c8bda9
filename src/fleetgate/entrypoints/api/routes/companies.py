"""Company membership and switching routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from fleetgate.core.tenancy.types import CompanyMembership
from fleetgate.entrypoints.api.middleware.guard import (
    ClientEffects,
    RequireSignedIn,
    get_client_effects,
)
from fleetgate.entrypoints.api.schemas import ClientEffectsResponse, RoleResponse

router = APIRouter(prefix="/companies", tags=["companies"])

EffectsDep = Annotated[ClientEffects, Depends(get_client_effects)]


class MembershipResponse(BaseModel):
    """One company the caller belongs to."""

    company_id: str
    company_name: str
    role: RoleResponse | None = None
    subscription_type: str | None = None

    @classmethod
    def from_membership(cls, membership: CompanyMembership) -> MembershipResponse:
        return cls(
            company_id=membership.company_id,
            company_name=membership.company_name,
            role=RoleResponse.from_role(membership.role) if membership.role else None,
            subscription_type=(
                membership.subscription_type.value if membership.subscription_type else None
            ),
        )


class MembershipListResponse(BaseModel):
    """The caller's memberships and which one is active."""

    companies: list[MembershipResponse]
    current_company_id: str | None = None


class SwitchCompanyRequest(BaseModel):
    """Request to change the active company."""

    company_id: str


@router.get("", response_model=MembershipListResponse)
async def list_companies(session: RequireSignedIn) -> MembershipListResponse:
    """Companies the caller belongs to, in data-source order."""
    switcher = session.companies
    return MembershipListResponse(
        companies=[MembershipResponse.from_membership(m) for m in switcher.companies],
        current_company_id=switcher.current_company_id,
    )


@router.post("/switch", response_model=ClientEffectsResponse)
async def switch_company(
    body: SwitchCompanyRequest,
    session: RequireSignedIn,
    effects: EffectsDep,
) -> ClientEffectsResponse:
    """Make a company active. The client performs a full reload afterwards."""
    ok = await session.companies.switch_company(body.company_id)
    if not ok:
        notice = effects.last_error()
        not_found = notice is not None and notice.description == "Company not found"
        raise HTTPException(
            status_code=404 if not_found else 502,
            detail=notice.description if notice else "Failed to switch company",
        )
    return ClientEffectsResponse.from_effects(effects)
