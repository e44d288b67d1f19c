"""
api/services/auth_service.py -- Credential checks and token issuing.

AuthService owns every business rule behind the auth routes: uniqueness on
registration, password verification, refresh-token rotation. Failures are
raised as auth.errors exceptions and left for api/main.py to map to HTTP
statuses. The route layer only forwards to these methods.

Each call is independent -- the service keeps no per-request state, only a
reference to the shared UserStore.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from api.models import AuthTransfer, LoginRequest, RegisterRequest
from auth.errors import InvalidCredentials, InvalidRefreshToken, UserAlreadyExists, UserNotFound
from auth.models import ROLE_USER, Principal, User
from auth.store import UserStore
from auth.tokens import (
    access_token_lifetime,
    authenticate_user,
    create_access_token,
    generate_refresh_token,
    hash_password,
    hash_refresh_token,
    refresh_token_expiry,
)

logger = logging.getLogger("accounts.auth")


class AuthService:
    """Register, log in, resolve, and refresh users against a UserStore."""

    def __init__(self, store: UserStore) -> None:
        self.store = store

    def register(self, form: RegisterRequest) -> AuthTransfer:
        """Create a USER account and return its first token pair.

        Raises UserAlreadyExists if the username is taken.
        """
        new_user = User(
            username=form.username,
            email=form.email,
            hashed_password=hash_password(form.password),
            roles=frozenset({ROLE_USER}),
        )
        try:
            user_id = self.store.create_user(new_user)
        except IntegrityError as exc:
            logger.info("Registration rejected: username %r already exists", form.username)
            raise UserAlreadyExists(form.username) from exc

        new_user.id = user_id
        logger.info("Registered user %r (id=%d)", new_user.username, user_id)
        return self._issue(new_user)

    def login(self, form: LoginRequest) -> AuthTransfer:
        """Verify credentials and return a fresh token pair.

        Raises InvalidCredentials for unknown users, wrong passwords, and
        banned accounts alike.
        """
        user = authenticate_user(self.store, form.username, form.password)
        if user is None:
            logger.warning("Failed login for username %r", form.username)
            raise InvalidCredentials()
        self.store.update_last_visit(user.id)
        logger.info("User %r logged in", user.username)
        return self._issue(user)

    def get_current_user(self, principal: Principal) -> User:
        """Return the full stored record for the authenticated caller.

        Raises UserNotFound if the account was removed after the access token
        was issued.
        """
        user = self.store.get_by_username(principal.username)
        if user is None or user.id != principal.user_id:
            raise UserNotFound(principal.username)
        return user

    def refresh(self, username: str, refresh_token: str) -> AuthTransfer:
        """Exchange a refresh token for a new pair. The old token is consumed.

        Raises InvalidRefreshToken if the token is unknown, already used,
        expired, issued to someone else, or the account is no longer active.
        """
        user = self.store.get_by_username(username)
        if user is None or not user.is_active:
            raise InvalidRefreshToken()
        if not self.store.consume_refresh_token(user.id, hash_refresh_token(refresh_token)):
            logger.warning("Rejected refresh token for user %r", username)
            raise InvalidRefreshToken()
        logger.info("Refreshed tokens for user %r", username)
        return self._issue(user)

    def _issue(self, user: User) -> AuthTransfer:
        """Sign an access token and rotate the user's refresh token."""
        raw_refresh = generate_refresh_token()
        self.store.replace_refresh_token(user.id, hash_refresh_token(raw_refresh), refresh_token_expiry())
        return AuthTransfer(
            access_token=create_access_token(user.id, user.username, user.roles),
            refresh_token=raw_refresh,
            expires_in=access_token_lifetime(),
        )
