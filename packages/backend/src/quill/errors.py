"""Domain error taxonomy.

Learn: Services raise these instead of HTTPException so business logic
stays free of HTTP concerns. Each class carries a stable machine code
and the status it maps to; main.py registers one handler that renders
every subclass as {"error", "message", "details"}.

Only truly unexpected failures (store I/O, hashing backend) bypass this
hierarchy and end up on the generic "internal" path.
"""

from typing import Any, Optional


class QuillError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = 400
    code: str = "error"

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# ─── Validation ─────────────────────────────────────────


class ValidationError(QuillError):
    """Malformed or missing input. User-correctable, never retried."""

    status_code = 422
    code = "validation_failed"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


# ─── Conflict ───────────────────────────────────────────


class ConflictError(QuillError):
    status_code = 409
    code = "conflict"


class DuplicateEmailError(ConflictError):
    """Registration with an email that already has an account."""

    def __init__(self):
        super().__init__(
            "An account with this email already exists. Try logging in instead."
        )


# ─── Authentication ─────────────────────────────────────


class AuthenticationError(QuillError):
    """No trustworthy identity could be established for the request."""

    status_code = 401
    code = "unauthenticated"
    reason = "unauthenticated"

    def __init__(self, message: str):
        super().__init__(message, details={"reason": self.reason})


class InvalidCredentialsError(AuthenticationError):
    """Login failure. Identical for unknown email and wrong password."""

    reason = "invalid_credentials"

    def __init__(self):
        super().__init__("Email or password is incorrect")


class MissingCredentialError(AuthenticationError):
    reason = "missing_credential"

    def __init__(self):
        super().__init__("Authentication required")


class ExpiredCredentialError(AuthenticationError):
    reason = "expired"

    def __init__(self):
        super().__init__("Token has expired. Please log in again.")


class InvalidCredentialError(AuthenticationError):
    """Malformed, forged, or otherwise unverifiable token.

    Malformed and "other" verification failures share one message so
    callers can't tell which check rejected a crafted token.
    """

    reason = "invalid_token"

    def __init__(self):
        super().__init__("Invalid authentication token")


class IdentityGoneError(AuthenticationError):
    """Token verified but its subject no longer exists."""

    reason = "identity_gone"

    def __init__(self):
        super().__init__("The account associated with this token no longer exists")


# ─── Authorization ──────────────────────────────────────


class ForbiddenError(QuillError):
    status_code = 403
    code = "forbidden"


class NotOwnerError(ForbiddenError):
    """Authenticated, but not the owner of the resource being mutated."""

    def __init__(self, action: str = "modify"):
        super().__init__(f"You can only {action} your own posts")


# ─── Not found ──────────────────────────────────────────


class NotFoundError(QuillError):
    status_code = 404
    code = "not_found"


class PostNotFoundError(NotFoundError):
    def __init__(self, post_id: int):
        super().__init__(
            f"No post found with ID {post_id}", details={"post_id": post_id}
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int):
        super().__init__(
            f"No user found with ID {user_id}", details={"user_id": user_id}
        )
