#!/usr/bin/env python3
"""
Account Service -- command-line entry point.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080
  python main.py create-admin root
  python main.py create-admin root --email root@example.com
  python main.py set-status mallory BANNED
  python main.py set-roles alice ADMIN USER

Environment variables:
  SECRET_KEY    Required unless DEBUG=true. At least 32 characters.
  DATABASE_URL  SQLAlchemy URL of the account database (default: SQLite file under auth/).
"""

import argparse
import getpass
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.models import KNOWN_ROLES, ROLE_ADMIN, ROLE_USER, STATUS_ACTIVE, STATUS_BANNED, User
from auth.store import UserStore
from auth.tokens import hash_password
from core.config import get_settings

_MIN_PASSWORD_LENGTH = 6


def _prompt_password() -> Optional[str]:
    """Ask for a password twice. Returns None if the entries differ or are too short."""
    first = getpass.getpass("  Password: ")
    second = getpass.getpass("  Repeat password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return None
    if len(first) < _MIN_PASSWORD_LENGTH:
        print(f"  [!] Password must be at least {_MIN_PASSWORD_LENGTH} characters.")
        return None
    return first


def create_admin(username: str, email: Optional[str], store: UserStore) -> int:
    """Create a user holding both ADMIN and USER roles. Returns a process exit code.

    Self-registration only ever grants USER, so this is how the first
    administrator gets into the system.
    """
    password = _prompt_password()
    if password is None:
        return 1
    admin = User(
        username=username,
        email=email,
        hashed_password=hash_password(password),
        roles=frozenset({ROLE_ADMIN, ROLE_USER}),
    )
    try:
        user_id = store.create_user(admin)
    except IntegrityError:
        print(f"  [!] A user named '{username}' already exists.")
        return 1
    print(f"  Created admin '{username}' (id={user_id}).")
    return 0


def set_status(username: str, status: str, store: UserStore) -> int:
    """Ban or reinstate a user. A banned user can no longer log in or use issued tokens."""
    user = store.get_by_username(username)
    if user is None or not store.update_user(user.id, status=status):
        print(f"  [!] No user named '{username}'.")
        return 1
    print(f"  Status of '{username}' set to {status}.")
    return 0


def set_roles(username: str, roles: list[str], store: UserStore) -> int:
    """Replace a user's roles. Takes effect on the user's next request."""
    user = store.get_by_username(username)
    if user is None or not store.update_user(user.id, roles=set(roles)):
        print(f"  [!] No user named '{username}'.")
        return 1
    print(f"  Roles of '{username}' set to {', '.join(sorted(set(roles)))}.")
    return 0


def serve(host: str, port: int, reload: bool) -> int:
    import uvicorn

    uvicorn.run("api.main:app", host=host, port=port, reload=reload)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="account-service",
        description="User registration, login, and token refresh service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --reload
  python main.py create-admin root --email root@example.com
  python main.py set-status mallory BANNED
        """,
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve_cmd = commands.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve_cmd.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_cmd.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve_cmd.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")

    admin_cmd = commands.add_parser("create-admin", help="Create a user with the ADMIN role")
    admin_cmd.add_argument("username", help="Login name for the new administrator")
    admin_cmd.add_argument("--email", default=None, help="Optional contact address")

    status_cmd = commands.add_parser("set-status", help="Ban or reinstate a user")
    status_cmd.add_argument("username")
    status_cmd.add_argument("status", choices=[STATUS_ACTIVE, STATUS_BANNED])

    roles_cmd = commands.add_parser("set-roles", help="Replace the roles of a user")
    roles_cmd.add_argument("username")
    roles_cmd.add_argument("roles", nargs="+", choices=sorted(KNOWN_ROLES), metavar="ROLE")

    args = parser.parse_args(argv)

    if args.command == "serve":
        return serve(args.host, args.port, args.reload)

    if args.command in ("create-admin", "set-status", "set-roles"):
        store = UserStore(db_url=get_settings().database_url)
        try:
            if args.command == "create-admin":
                return create_admin(args.username, args.email, store)
            if args.command == "set-status":
                return set_status(args.username, args.status, store)
            return set_roles(args.username, args.roles, store)
        finally:
            store.close()

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
