"""
API request and response models for the account service REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal representation. UserTransfer.from_user() is the only path from an
internal User to a response body.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
JSON field names are camelCase (accessToken, refreshToken, lastVisit, ...);
Python attribute names stay snake_case.
"""

from typing import Annotated, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from auth.models import User

_TRANSFER_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

USERNAME_PATTERN = r"^[A-Za-z0-9_.\-]+$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"

# Identifiers are whitespace-stripped; passwords never are.
_Username = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=3, max_length=64, pattern=USERNAME_PATTERN)
]
_LoginName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]
_Email = Annotated[str, StringConstraints(strip_whitespace=True, max_length=255, pattern=EMAIL_PATTERN)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register. The password is hashed exactly as sent."""

    username: _Username
    password: str = Field(min_length=6, max_length=255)
    email: Optional[_Email] = None


class LoginRequest(BaseModel):
    """Request body for POST /login."""

    username: _LoginName
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AuthTransfer(BaseModel):
    """Token pair returned by register, login, and refresh."""

    model_config = _TRANSFER_CONFIG

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class UserTransfer(BaseModel):
    """Public projection of a User.

    There is deliberately no password field on this model: whatever the
    internal record holds, the response schema cannot carry a credential.
    """

    model_config = _TRANSFER_CONFIG

    id: int
    username: str
    email: Optional[str] = None
    roles: list[str]
    status: str
    created_at: Optional[str] = None
    last_visit: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserTransfer":
        """Build a UserTransfer from an internal User, copying only public fields."""
        if user.id is None:
            raise ValueError("Cannot project a user that has not been persisted.")
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            roles=sorted(user.roles),
            status=user.status,
            created_at=user.created_at,
            last_visit=user.last_visit,
        )


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[Union[str, dict]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
