"""
auth/dependencies.py -- Principal resolution and role checks.

The role guard middleware in api/main.py calls try_resolve_principal() on
every request, stores the result on request.state.principal, and uses
authorize() to compare it against the route's required roles before the
route handler runs.

try_resolve_principal() is the soft variant (returns None on failure).
require_roles() builds the FastAPI dependency handlers use to receive the
principal the guard resolved. It raises HTTP 401 or 403 on its own, so a
route keeps its role policy wherever its router is mounted.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import Principal
from auth.store import UserStore
from auth.tokens import decode_access_token

UNAUTHORIZED = {"code": "unauthorized", "message": "Authentication required."}
FORBIDDEN = {"code": "forbidden", "message": "Insufficient role for this resource."}


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    # The auth scheme name is case-insensitive.
    if auth_header[:7].lower() == "bearer ":
        return auth_header[7:].strip() or None
    return None


def try_resolve_principal(request: Request) -> Principal | None:
    """Authenticate the request from its Authorization: Bearer header.

    The JWT must verify, and the user it names must still exist and be
    active. Roles come from the stored record, so a role change applies to
    tokens that were issued before it.

    Returns None on any failure. Never raises.
    """
    token = _bearer_token(request)
    if not token:
        return None
    payload = decode_access_token(token)
    if payload is None:
        return None
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(payload["user_id"])
    if user is None or not user.is_active or user.username != payload["sub"]:
        return None
    return Principal(user_id=user.id, username=user.username, roles=user.roles)


def authorize(principal: Principal | None, required_roles: frozenset[str]) -> dict | None:
    """Check a principal against a route's required roles.

    Returns None when access is allowed, otherwise the error payload to send:
    UNAUTHORIZED when there is no principal, FORBIDDEN when it holds none of
    the required roles.
    """
    if principal is None:
        return UNAUTHORIZED
    if not principal.has_any_role(required_roles):
        return FORBIDDEN
    return None


def require_roles(required_roles: frozenset[str]):
    """Build a dependency that returns the guard's principal if it holds a required role.

    The role guard middleware already rejects these requests when the route
    is mounted at its plain path. This dependency repeats the check on the
    route itself, so the policy still holds under a router prefix.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(principal: Principal = Depends(require_roles(frozenset({"USER"})))): ...
    """

    def dependency(request: Request) -> Principal:
        principal = getattr(request.state, "principal", None)
        error = authorize(principal, required_roles)
        if error is not None:
            raise HTTPException(status_code=401 if principal is None else 403, detail=error)
        return principal

    return dependency
