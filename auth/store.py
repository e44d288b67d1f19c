"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the row mapper. Service and
dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Refresh tokens are stored as HMAC hashes only (see auth/tokens.py).

Refresh token policy:
  One active refresh token per user. replace_refresh_token() swaps the
  previous row out inside a single transaction, so issuing a new pair makes
  every earlier refresh token stale. consume_refresh_token() is a single
  conditional DELETE: of two concurrent refreshes with the same token, only
  one sees rowcount == 1.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine

from auth.models import ROLE_USER, STATUS_ACTIVE, User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(64), nullable=False, unique=True),
    Column("email", String(255)),
    Column("hashed_password", Text, nullable=False),
    Column("roles", String(100), nullable=False, server_default=ROLE_USER),  # comma-separated
    Column("status", String(16), nullable=False, server_default=STATUS_ACTIVE),
    Column("created_at", String(32), nullable=False),
    Column("last_visit", String(32)),
)

_refresh_tokens = Table(
    "refresh_tokens",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
    Column("token_hash", String(64), nullable=False, unique=True),  # HMAC-SHA256 hex
    Column("expires_at", String(32), nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _now_iso() -> str:
    return _iso(datetime.now(timezone.utc))


def _encode_roles(roles) -> str:
    return ",".join(sorted(roles))


def _decode_roles(raw: str | None) -> frozenset[str]:
    return frozenset(r for r in (raw or "").split(",") if r)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for users and their refresh tokens.

    Usage:
        store = UserStore("sqlite:///accounts.db")
        uid = store.create_user(User(username="alice", hashed_password=hash_password("secret1")))
        user = store.get_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        The UNIQUE constraint is the only uniqueness check, so two concurrent
        registrations for the same name cannot both succeed.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    email=user.email,
                    hashed_password=user.hashed_password,
                    roles=_encode_roles(user.roles),
                    status=user.status,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable fields on an existing user.

        Accepted fields: email, hashed_password, roles (iterable), status.
        Returns True if a row was updated, False if user_id was not found.
        """
        if "roles" in fields:
            fields["roles"] = _encode_roles(fields["roles"])
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def update_last_visit(self, user_id: int) -> None:
        """Stamp the current UTC timestamp as last_visit for the given user."""
        with self.engine.connect() as conn:
            conn.execute(_users.update().where(_users.c.id == user_id).values(last_visit=_now_iso()))
            conn.commit()

    # ------------------------------------------------------------------
    # Refresh token queries
    # ------------------------------------------------------------------

    def replace_refresh_token(self, user_id: int, token_hash: str, expires_at: datetime) -> None:
        """Make token_hash the only valid refresh token for the user."""
        with self.engine.begin() as conn:
            conn.execute(_refresh_tokens.delete().where(_refresh_tokens.c.user_id == user_id))
            conn.execute(
                _refresh_tokens.insert().values(
                    user_id=user_id,
                    token_hash=token_hash,
                    expires_at=_iso(expires_at),
                    created_at=_now_iso(),
                )
            )

    def consume_refresh_token(self, user_id: int, token_hash: str) -> bool:
        """Delete the user's refresh token if it matches and has not expired.

        Returns True if a token was consumed. Ownership is part of the WHERE
        clause, so a token issued to another user never matches.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _refresh_tokens.delete().where(
                    (_refresh_tokens.c.user_id == user_id)
                    & (_refresh_tokens.c.token_hash == token_hash)
                    & (_refresh_tokens.c.expires_at > _now_iso())
                )
            )
        return result.rowcount > 0

    def purge_expired_refresh_tokens(self) -> int:
        """Delete every expired refresh token. Returns the number of rows removed."""
        with self.engine.begin() as conn:
            result = conn.execute(_refresh_tokens.delete().where(_refresh_tokens.c.expires_at <= _now_iso()))
        return result.rowcount

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(_users.select().limit(1))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        roles=_decode_roles(row.roles),
        status=row.status,
        created_at=row.created_at,
        last_visit=row.last_visit,
    )
