"""FastAPI auth dependencies — identity resolution.

Learn: These are used as Depends() in route handlers to extract
and validate the current user from the request.

One resolution algorithm, two termination policies:
1. get_current_user (mandatory) → any failure is a 401
2. get_current_user_optional (optional) → any failure is anonymous

Resolution steps, in order:
  no "Bearer <token>" header    → MissingCredentialError
  token expired                 → ExpiredCredentialError
  token malformed/forged/other  → InvalidCredentialError
  subject no longer in users    → IdentityGoneError
  otherwise                     → CurrentIdentity for that user

Both policies also attach the outcome to request.state.identity.
"""

from datetime import datetime
from typing import Optional

import structlog
from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from quill.auth import jwt as tokens
from quill.db.engine import get_db
from quill.errors import (
    AuthenticationError,
    ExpiredCredentialError,
    IdentityGoneError,
    InvalidCredentialError,
    MissingCredentialError,
)
from quill.services.user_service import UserService

logger = structlog.get_logger()


class CurrentIdentity:
    """The identity attached to a request.

    Learn: Either a resolved user (safe view + raw id) or the anonymous
    marker. The password hash never makes it in here.
    """

    def __init__(
        self,
        user_id: Optional[int] = None,
        email: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ):
        self.user_id = user_id
        self.email = email
        self.created_at = created_at

    @classmethod
    def from_user(cls, user) -> "CurrentIdentity":
        return cls(user_id=user.id, email=user.email, created_at=user.created_at)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def safe_view(self) -> dict:
        return {"id": self.user_id, "email": self.email, "created_at": self.created_at}

    def __repr__(self) -> str:
        if not self.is_authenticated:
            return "<CurrentIdentity anonymous>"
        return f"<CurrentIdentity user_id={self.user_id}>"


ANONYMOUS = CurrentIdentity()


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an Authorization header, or None.

    A missing header, a non-Bearer scheme, and an empty token are all
    "no credential".
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


async def resolve_identity(
    authorization: Optional[str], db: AsyncSession
) -> CurrentIdentity:
    """Run the full resolution algorithm. Raises AuthenticationError subclasses."""
    token = extract_bearer(authorization)
    if token is None:
        raise MissingCredentialError()

    try:
        user_id = tokens.verify_token(token)
    except tokens.TokenError as e:
        if e.reason == tokens.EXPIRED:
            raise ExpiredCredentialError()
        raise InvalidCredentialError()

    # Re-check the subject: tokens outlive deleted accounts.
    user = await UserService(db).find_by_id(user_id)
    if not user:
        raise IdentityGoneError()

    return CurrentIdentity.from_user(user)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if resolution fails).

    Learn: This is the "hard" auth dependency. The AuthenticationError
    propagates to the app's exception handler, which renders the 401
    with a WWW-Authenticate header.
    """
    try:
        identity = await resolve_identity(authorization, db)
    except AuthenticationError as e:
        logger.info("auth.rejected", reason=e.reason, path=request.url.path)
        raise
    request.state.identity = identity
    return identity


async def get_current_user_optional(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> CurrentIdentity:
    """Extract current identity (optional — anonymous on any failure).

    Learn: This is the "soft" auth dependency for public endpoints that
    personalise when they can. It never raises: even an unexpected
    failure while resolving degrades to anonymous.
    """
    try:
        identity = await resolve_identity(authorization, db)
    except AuthenticationError as e:
        logger.debug("auth.anonymous", reason=e.reason)
        identity = ANONYMOUS
    except Exception:
        logger.exception("auth.optional_resolution_failed")
        identity = ANONYMOUS
    request.state.identity = identity
    return identity
