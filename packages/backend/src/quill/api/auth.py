"""Auth API — registration, login, current user, token refresh.

Learn: Routes for user authentication:
- POST /auth/register → create an account, returns {user, token}
- POST /auth/login → email/password → {user, token}
- GET /auth/me → the resolved identity's safe view
- POST /auth/refresh → new token for the same user, fresh expiry
- POST /auth/logout → acknowledgement only; tokens are stateless

Register and login share one success shape. Errors are raised as
domain exceptions and rendered by the handlers in main.py.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quill.auth.dependencies import CurrentIdentity, get_current_user
from quill.auth.jwt import create_access_token
from quill.db.engine import get_db
from quill.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
)
from quill.services.user_service import UserService

router = APIRouter(prefix="/auth")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, svc: UserService = Depends(_svc)):
    """Create a new user account and log it straight in."""
    user = await svc.register(body.email, body.password)
    return {"user": user, "token": create_access_token(user.id)}


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, svc: UserService = Depends(_svc)):
    """Login with email and password → JWT token."""
    user = await svc.authenticate(body.email, body.password)
    return {"user": user, "token": create_access_token(user.id)}


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=MeResponse)
async def get_me(identity: CurrentIdentity = Depends(get_current_user)):
    """Get the current authenticated user's info."""
    return {"user": identity.safe_view()}


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=AuthResponse)
async def refresh(identity: CurrentIdentity = Depends(get_current_user)):
    """Issue a new token for the caller without re-entering credentials."""
    return {
        "user": identity.safe_view(),
        "token": create_access_token(identity.user_id),
    }


# ─── Logout ─────────────────────────────────────────────


@router.post("/logout", response_model=MessageResponse)
async def logout(identity: CurrentIdentity = Depends(get_current_user)):
    """Acknowledge a logout. The client discards its token."""
    return {"message": "Logout successful. Please discard your authentication token."}
