"""Auth domain types and utilities."""

from fleetgate.core.auth.jwt import TokenError, create_access_token, decode_token
from fleetgate.core.auth.password import hash_password, verify_password
from fleetgate.core.auth.types import Identity, Profile, SignUpMetadata, TokenPayload

__all__ = [
    "Identity",
    "Profile",
    "SignUpMetadata",
    "TokenError",
    "TokenPayload",
    "create_access_token",
    "decode_token",
    "hash_password",
    "verify_password",
]
