"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (data containers, no I/O). Dataclasses own domain
shape; the store and service do the work. The API contract lives separately in
api/models.py, which projects these records into transfer objects.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field

ROLE_ADMIN = "ADMIN"
ROLE_USER = "USER"
KNOWN_ROLES = frozenset({ROLE_ADMIN, ROLE_USER})

STATUS_ACTIVE = "ACTIVE"
STATUS_BANNED = "BANNED"


@dataclass
class User:
    """Internal user record as stored in the database.

    hashed_password never leaves the service layer: the HTTP boundary only
    returns UserTransfer, which has no field for it.
    """

    username: str
    hashed_password: str
    id: int | None = None
    email: str | None = None
    roles: frozenset[str] = field(default_factory=lambda: frozenset({ROLE_USER}))
    status: str = STATUS_ACTIVE
    created_at: str | None = None
    last_visit: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, resolved from a verified access token.

    Built by auth.dependencies only. Route handlers receive it as a parameter
    and hand it on to the service explicitly.
    """

    user_id: int
    username: str
    roles: frozenset[str]

    def has_any_role(self, required: frozenset[str]) -> bool:
        return bool(self.roles & required)
