"""Auth API routes for sign-up, sign-in, sign-out and the session snapshot."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr

from fleetgate.core.auth.jwt import create_access_token
from fleetgate.core.context import AccessSession
from fleetgate.core.rbac.types import Role
from fleetgate.core.tenancy.types import SubscriptionType
from fleetgate.entrypoints.api.middleware.guard import (
    ClientEffects,
    get_access_session,
    get_client_effects,
)
from fleetgate.entrypoints.api.middleware.jwt_auth import JwtContext, verify_jwt
from fleetgate.entrypoints.api.schemas import (
    ClientEffectsResponse,
    NoticeResponse,
    SessionResponse,
)

router = APIRouter(prefix="/auth", tags=["auth"])

SessionDep = Annotated[AccessSession, Depends(get_access_session)]
EffectsDep = Annotated[ClientEffects, Depends(get_client_effects)]


# Request/Response models
class SignUpRequest(BaseModel):
    """Sign-up request body."""

    email: EmailStr
    password: str
    full_name: str
    role: Role
    company_name: str | None = None
    subscription_type: SubscriptionType = SubscriptionType.TRIAL


class SignInRequest(BaseModel):
    """Sign-in request body."""

    email: EmailStr
    password: str
    return_to: str | None = None


class ConfirmEmailRequest(BaseModel):
    """Email confirmation request body."""

    token: str


class TokenResponse(BaseModel):
    """Token response."""

    access_token: str
    token_type: str = "bearer"
    session: SessionResponse
    redirect_to: str | None = None
    notices: list[NoticeResponse] = []


def _failure_detail(effects: ClientEffects, fallback: str) -> str:
    notice = effects.last_error()
    return notice.description if notice else fallback


@router.post("/signup", response_model=ClientEffectsResponse, status_code=201)
async def sign_up(
    body: SignUpRequest,
    session: SessionDep,
    effects: EffectsDep,
) -> ClientEffectsResponse:
    """Create an account, and a company for company administrators.

    The client is sent to sign-in afterwards; no token is issued until the
    user signs in.
    """
    ok = await session.auth.sign_up(
        email=body.email,
        password=body.password,
        role=body.role,
        full_name=body.full_name,
        company_name=body.company_name,
        subscription_type=body.subscription_type.value,
    )
    if not ok:
        raise HTTPException(
            status_code=400,
            detail=_failure_detail(effects, "Failed to create account"),
        )
    return ClientEffectsResponse.from_effects(effects)


@router.post("/confirm", response_model=ClientEffectsResponse)
async def confirm_email(
    body: ConfirmEmailRequest,
    session: SessionDep,
    effects: EffectsDep,
) -> ClientEffectsResponse:
    """Confirm the email address a sign-up link was sent to."""
    if not await session.auth.confirm_email(body.token):
        raise HTTPException(
            status_code=400,
            detail=_failure_detail(effects, "Invalid or expired confirmation link"),
        )
    return ClientEffectsResponse.from_effects(effects)


@router.post("/signin", response_model=TokenResponse)
async def sign_in(
    body: SignInRequest,
    session: SessionDep,
    effects: EffectsDep,
) -> TokenResponse:
    """Authenticate and return an access token with the session snapshot."""
    ok = await session.auth.sign_in(body.email, body.password, return_to=body.return_to)
    identity = session.snapshot().identity
    if not ok or identity is None:
        raise HTTPException(
            status_code=401,
            detail=_failure_detail(effects, "Invalid email or password"),
        )

    await session.companies.load_companies(identity.id)
    return TokenResponse(
        access_token=create_access_token(identity),
        session=SessionResponse.from_session(session),
        redirect_to=effects.navigate_to,
        notices=[NoticeResponse.from_notice(n) for n in effects.notices],
    )


@router.post("/signout", response_model=ClientEffectsResponse)
async def sign_out(
    auth: Annotated[JwtContext, Depends(verify_jwt)],
    session: SessionDep,
    effects: EffectsDep,
) -> ClientEffectsResponse:
    """End the session. The client discards its token."""
    await session.auth.sign_out()
    return ClientEffectsResponse.from_effects(effects)


@router.get("/session", response_model=SessionResponse)
async def get_session(session: SessionDep) -> SessionResponse:
    """Current session snapshot; anonymous callers get an empty session."""
    return SessionResponse.from_session(session)
