"""User service — the credential store.

Learn: Service layer separates business logic from HTTP routing.
This one owns every read and write of the users table:
- register → normalize email, validate, hash, insert
- find_by_email / find_by_id → lookups (None when absent)
- authenticate → email + password → User, or one uniform failure

Plaintext passwords never reach the database. bcrypt is CPU-bound, so
hashing runs in a worker thread instead of blocking the event loop.
"""

import asyncio
import re
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quill.auth.password import hash_password, verify_password
from quill.config import settings
from quill.db.models import User
from quill.errors import DuplicateEmailError, InvalidCredentialsError, ValidationError
from quill.services.validation import is_encodable

logger = structlog.get_logger()

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Verified against when the email is unknown, so both login failure
# paths spend the same bcrypt time. Computed on first use.
_dummy_hash: Optional[str] = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_registration(email: str, password: str) -> None:
    """Raise ValidationError for a malformed email or a short password.

    Only length is enforced for passwords, nothing about complexity.
    """
    if not email or not email.strip():
        raise ValidationError("Email is required", field="email")
    if not is_encodable(email) or not EMAIL_RE.match(email.strip()):
        raise ValidationError("Please provide a valid email address", field="email")
    if not password:
        raise ValidationError("Password is required", field="password")
    if not is_encodable(password):
        raise ValidationError("Password contains invalid characters", field="password")
    if len(password) < settings.password_min_length:
        raise ValidationError(
            f"Password must be at least {settings.password_min_length} characters long",
            field="password",
        )


class UserService:
    """Registration, lookup, and credential checks for users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register(self, email: str, password: str) -> User:
        """Create a user. Raises ValidationError or DuplicateEmailError.

        Learn: the pre-check gives a friendly error in the common case;
        the UNIQUE constraint catches the race where two registrations
        for the same email interleave.
        """
        validate_registration(email, password)
        normalized = normalize_email(email)

        if await self.find_by_email(normalized):
            raise DuplicateEmailError()

        password_hash = await asyncio.to_thread(hash_password, password)
        user = User(email=normalized, password_hash=password_hash)
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            logger.info("auth.register_race", email=normalized)
            raise DuplicateEmailError()

        await self.db.commit()
        logger.info("auth.registered", user_id=user.id)
        return user

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalars().first()

    async def find_by_id(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def authenticate(self, email: str, password: str) -> User:
        """Check email + password. Raises InvalidCredentialsError on any mismatch.

        Learn: The same error (and roughly the same latency) whether the
        email is unknown or the password is wrong — no account enumeration.
        """
        email = email or ""
        password = password or ""
        if not (is_encodable(email) and is_encodable(password)):
            await asyncio.to_thread(_verify_against_dummy, "")
            logger.info("auth.login_failed")
            raise InvalidCredentialsError()

        user = await self.find_by_email(email)
        if not user:
            await asyncio.to_thread(_verify_against_dummy, password)
            logger.info("auth.login_failed")
            raise InvalidCredentialsError()

        ok = await asyncio.to_thread(verify_password, password, user.password_hash)
        if not ok:
            logger.info("auth.login_failed", user_id=user.id)
            raise InvalidCredentialsError()
        return user


def _get_dummy_hash() -> str:
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password("quill-dummy-password")
    return _dummy_hash


def _verify_against_dummy(password: str) -> bool:
    # Runs in a worker thread, including the one-time dummy hash.
    return verify_password(password, _get_dummy_hash())
