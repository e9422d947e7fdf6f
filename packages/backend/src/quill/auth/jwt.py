"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The token
carries a single claim that matters — the user id in "sub" — plus the
standard iat/exp/iss/aud metadata. Signature, issuer, audience and
expiry are all checked before any claim is trusted.

There is no revocation list: a token stays valid until it expires.
Identity resolution (dependencies.py) additionally requires the subject
to still exist in the database.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from quill.config import settings

# Rejection reasons. Callers branch on these to pick user-facing messages.
EXPIRED = "expired"
MALFORMED = "malformed"
OTHER = "other"


class TokenError(Exception):
    """Raised when token verification fails."""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


def create_access_token(
    user_id: int,
    ttl: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> str:
    """Create a signed access token for a user.

    `now` pins the issued-at time (tokens issued in the past are how the
    tests exercise expiry without sleeping).
    """
    issued_at = now or datetime.now(timezone.utc)
    expires = issued_at + (
        ttl if ttl is not None
        else timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        # PyJWT requires "sub" to be a string.
        "sub": str(user_id),
        "iat": issued_at,
        "exp": expires,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> int:
    """Verify a token and return its subject (the user id).

    Raises TokenError with reason EXPIRED, MALFORMED, or OTHER.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            options={"require": ["sub", "iat", "exp", "iss", "aud"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError(EXPIRED, "Token has expired")
    except jwt.DecodeError as e:
        # Covers bad structure, bad base64, and InvalidSignatureError.
        raise TokenError(MALFORMED, f"Invalid token: {e}")
    except jwt.MissingRequiredClaimError as e:
        raise TokenError(MALFORMED, f"Invalid token: {e}")
    except jwt.InvalidTokenError as e:
        raise TokenError(OTHER, f"Token verification failed: {e}")

    try:
        subject = int(payload["sub"])
    except (TypeError, ValueError):
        raise TokenError(MALFORMED, "Invalid token: subject is not a user id")
    if subject <= 0:
        raise TokenError(MALFORMED, "Invalid token: subject is not a user id")
    return subject
