"""
api/routes/auth.py -- Registration, login, current-user and token refresh endpoints.

Routes:
  POST /register                           -- create account; 201 + token pair
  POST /login                              -- password login; 202 + token pair
  GET  /current_user                       -- caller's public profile; 202
  GET  /refresh_token?refresh_token=<tok>  -- rotate token pair; 201

Every handler is a single call into AuthService. No failure is caught here:
auth.errors exceptions propagate to the handlers registered in api/main.py.
Handlers are plain `def` so FastAPI runs them in its thread pool, one request
per worker, with no shared mutable state in this module.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request

from api.models import AuthTransfer, LoginRequest, RegisterRequest, UserTransfer
from api.services.auth_service import AuthService
from auth.dependencies import require_roles
from auth.models import ROLE_ADMIN, ROLE_USER, Principal

# Auth policy, enforced by the role guard middleware in api/main.py before
# dispatch and again by require_roles() on each protected route. Paths absent
# from this mapping are public.
# - POST /register:       public
# - POST /login:          public
# - GET  /current_user:   ADMIN or USER
# - GET  /refresh_token:  ADMIN or USER
ROUTE_ROLES: dict[str, frozenset[str]] = {
    "/current_user": frozenset({ROLE_ADMIN, ROLE_USER}),
    "/refresh_token": frozenset({ROLE_ADMIN, ROLE_USER}),
}

router = APIRouter()


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AuthTransfer, status_code=201)
def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)) -> AuthTransfer:
    """Register a new user and return its first token pair."""
    return service.register(body)


@router.post("/login", response_model=AuthTransfer, status_code=202)
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)) -> AuthTransfer:
    """Log in with username and password and return a fresh token pair."""
    return service.login(body)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/current_user", response_model=UserTransfer, status_code=202)
def current_user(
    principal: Principal = Depends(require_roles(ROUTE_ROLES["/current_user"])),
    service: AuthService = Depends(get_auth_service),
) -> UserTransfer:
    """Return the public profile of the authenticated caller."""
    return UserTransfer.from_user(service.get_current_user(principal))


@router.get("/refresh_token", response_model=AuthTransfer, status_code=201)
def refresh(
    refresh_token: str = Query(min_length=1),
    principal: Principal = Depends(require_roles(ROUTE_ROLES["/refresh_token"])),
    service: AuthService = Depends(get_auth_service),
) -> AuthTransfer:
    """Exchange the caller's refresh token for a new token pair."""
    return service.refresh(principal.username, refresh_token)
