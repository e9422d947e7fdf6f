"""Pydantic schemas for registration, login, and tokens.

Learn: Pydantic v2 models validate request/response data. Request
schemas only insist on the right types; the rules (email shape,
password length) live in UserService so every caller gets them.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, field_validator


class RegisterRequest(BaseModel):
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class UserRead(BaseModel):
    """The safe view of a user. No password hash, ever."""

    id: int
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive datetimes; every stored timestamp is UTC.
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


class AuthResponse(BaseModel):
    """Shared by register, login, and refresh."""

    user: UserRead
    token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    user: UserRead


class MessageResponse(BaseModel):
    message: str
