"""Password hashing for the password auth provider (bcrypt)."""

import bcrypt

BCRYPT_ROUNDS = 12

# bcrypt ignores everything after 72 bytes
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor

    Returns:
        bcrypt hash as text, suitable for a varchar column
    """
    encoded = password.encode("utf-8")[:MAX_PASSWORD_BYTES]
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """Check a plain text password against a stored hash.

    Empty passwords and missing or malformed hashes never verify.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:MAX_PASSWORD_BYTES],
            password_hash.encode("utf-8"),
        )
    except ValueError:
        return False
