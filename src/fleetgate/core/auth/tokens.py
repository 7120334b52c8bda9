"""Email confirmation tokens.

Only the SHA-256 hash of a token is stored; the plaintext travels in the
confirmation link.
"""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta

CONFIRMATION_TOKEN_BYTES = 32
CONFIRMATION_TOKEN_EXPIRY_HOURS = 48


def generate_confirmation_token() -> str:
    """Generate a URL-safe confirmation token."""
    return secrets.token_urlsafe(CONFIRMATION_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Hex SHA-256 of a token, used as its lookup key."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def get_token_expiry(hours: int = CONFIRMATION_TOKEN_EXPIRY_HOURS) -> datetime:
    return datetime.now(UTC) + timedelta(hours=hours)


def is_token_expired(expires_at: datetime) -> bool:
    """Check an expiry timestamp; naive timestamps are taken as UTC."""
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    return datetime.now(UTC) > expires_at
