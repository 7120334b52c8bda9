"""JWT access token creation and validation.

Tokens carry the identity only. Profile, role and company are always
resolved fresh from the platform so that a role change takes effect on
the next request.
"""

import os
from datetime import datetime, timedelta, timezone

import jwt

from fleetgate.core.auth.types import Identity, TokenPayload


class TokenError(Exception):
    """Raised when token validation fails."""

    pass


# Configuration
SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "fleetgate-dev-secret-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "60"))


def create_access_token(identity: Identity) -> str:
    """Create an access token for an identity.

    Args:
        identity: The authenticated identity.

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        "sub": identity.id,
        "email": identity.email,
        "email_confirmed_at": (
            identity.email_confirmed_at.isoformat() if identity.email_confirmed_at else None
        ),
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp()),
    }

    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> TokenPayload:
    """Decode and validate a JWT token.

    Args:
        token: Encoded JWT string

    Returns:
        Decoded token payload

    Raises:
        TokenError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return TokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            exp=payload["exp"],
            iat=payload["iat"],
            email_confirmed_at=payload.get("email_confirmed_at"),
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired") from None
    except (jwt.InvalidTokenError, KeyError) as e:
        raise TokenError(f"Invalid token: {e}") from None
