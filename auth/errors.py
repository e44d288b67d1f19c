"""
auth/errors.py -- Failure taxonomy for the authentication service.

Exception hierarchy:
    AuthError (base)
    ├── UserAlreadyExists      -- registration with a taken username
    ├── InvalidCredentials     -- unknown user, wrong password, or banned account
    ├── InvalidRefreshToken    -- unknown, rotated, expired, or foreign refresh token
    └── UserNotFound           -- principal no longer maps to a stored user

These exceptions carry no HTTP knowledge. api/main.py owns the mapping from
exception type to status code; the route layer lets them propagate unchanged.

Layer rule: stdlib only.
"""

from __future__ import annotations

from typing import Optional


class AuthError(Exception):
    """Base exception for all authentication failures.

    Attributes:
        code:    Stable machine-readable error code for API clients.
        message: Human-readable error description.
        details: Additional context for the response body. Never contains
                 secrets (passwords, tokens, hashes).
    """

    code = "auth_error"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "detail": self.details or None,
        }


class UserAlreadyExists(AuthError):
    code = "user_exists"

    def __init__(self, username: str):
        super().__init__(
            "A user with that username already exists.",
            details={"username": username},
        )


class InvalidCredentials(AuthError):
    """Raised for every login failure.

    The message is the same whether the username is unknown or the password
    is wrong, so the response does not reveal which usernames exist.
    """

    code = "bad_credentials"

    def __init__(self):
        super().__init__("Invalid username or password.")


class InvalidRefreshToken(AuthError):
    code = "invalid_refresh_token"

    def __init__(self):
        super().__init__("Refresh token is invalid or expired.")


class UserNotFound(AuthError):
    code = "not_found"

    def __init__(self, username: str):
        super().__init__("User not found.", details={"username": username})
