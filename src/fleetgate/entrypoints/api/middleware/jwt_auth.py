"""JWT authentication middleware."""

from dataclasses import dataclass
from datetime import datetime

import structlog
from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fleetgate.core.auth.jwt import TokenError, decode_token
from fleetgate.core.auth.types import Identity

logger = structlog.get_logger()

# Use Bearer token authentication
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class JwtContext:
    """Context from a verified JWT token.

    Only the identity travels in the token; role and company are looked
    up per request.
    """

    user_id: str
    email: str
    email_confirmed_at: str | None = None

    @property
    def identity(self) -> Identity:
        """The identity the token was issued for."""
        confirmed = (
            datetime.fromisoformat(self.email_confirmed_at) if self.email_confirmed_at else None
        )
        return Identity(id=self.user_id, email=self.email, email_confirmed_at=confirmed)


async def verify_jwt(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),  # noqa: B008
) -> JwtContext:
    """Verify JWT token and return context.

    Args:
        request: The current request.
        credentials: Bearer token credentials.

    Returns:
        JwtContext with the token's identity.

    Raises:
        HTTPException: 401 if token is missing or invalid.
    """
    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_token(credentials.credentials)
    except TokenError as e:
        logger.warning("jwt_validation_failed", error=str(e))
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    context = JwtContext(
        user_id=payload.sub,
        email=payload.email,
        email_confirmed_at=payload.email_confirmed_at,
    )

    # Store in request state for downstream use
    request.state.user = context

    logger.debug("jwt_verified", user_id=context.user_id)
    return context


async def optional_jwt(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),  # noqa: B008
) -> JwtContext | None:
    """Optionally verify JWT, returning None if not provided or invalid."""
    if not credentials:
        return None

    try:
        return await verify_jwt(request, credentials)
    except HTTPException:
        return None
