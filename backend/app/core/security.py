"""Password hashing utilities."""

import bcrypt as _bcrypt

from app.core.config import settings

# Bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Args:
        plain_password: Plain text password
        hashed_password: Hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    try:
        return _bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str, rounds: int | None = None) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password
        rounds: Cost factor, defaults to BCRYPT_ROUNDS from settings

    Returns:
        Hashed password
    """
    salt = _bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    hashed = _bcrypt.hashpw(_password_bytes(password), salt)
    return hashed.decode("utf-8")
