"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt generates a fresh
random salt on every call, so hashing the same password twice yields two
different digests that both verify. The work factor comes from
settings.bcrypt_rounds (12 ≈ 250ms per hash on modern hardware).

A wrong password is a False result, never an exception. An exception
from here means the hashing backend itself failed.
"""

from typing import Optional

import bcrypt

from quill.config import settings

# bcrypt only looks at the first 72 bytes of input.
_BCRYPT_MAX_BYTES = 72


class PasswordHashingError(Exception):
    """Raised when the hashing backend fails (not for wrong passwords)."""


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Passwords are truncated to 72 bytes
    (bcrypt's limit).
    """
    try:
        pw_bytes = _encode(password)
        salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
        return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")
    except (ValueError, TypeError) as e:
        raise PasswordHashingError(f"Failed to hash password: {e}") from e


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash.

    Returns False for a wrong password and for a malformed or empty
    digest. No side effects.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
