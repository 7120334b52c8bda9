"""API middleware."""

from fleetgate.entrypoints.api.middleware.guard import (
    ClientEffects,
    RequireAdmin,
    RequireSignedIn,
    get_access_session,
    get_client_effects,
    require_access,
)
from fleetgate.entrypoints.api.middleware.jwt_auth import (
    JwtContext,
    optional_jwt,
    verify_jwt,
)

__all__ = [
    # JWT auth
    "JwtContext",
    "verify_jwt",
    "optional_jwt",
    # Access guard
    "ClientEffects",
    "get_access_session",
    "get_client_effects",
    "require_access",
    "RequireSignedIn",
    "RequireAdmin",
]
