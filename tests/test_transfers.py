"""
tests/test_transfers.py -- Unit tests for the API transfer models.

UserTransfer.from_user is the only path from an internal User to a response
body, so its output schema must be a strict subset of the internal record
with no credential field.
"""

from __future__ import annotations

import dataclasses

import pytest
from pydantic import ValidationError

from api.models import AuthTransfer, RegisterRequest, UserTransfer
from auth.models import ROLE_ADMIN, ROLE_USER, User


def _stored_user() -> User:
    return User(
        id=3,
        username="alice",
        email="alice@example.com",
        hashed_password="$2b$12$abcdefghijklmnopqrstuv",
        roles=frozenset({ROLE_USER, ROLE_ADMIN}),
        created_at="2026-01-01T00:00:00+00:00",
        last_visit="2026-01-02T00:00:00+00:00",
    )


def test_projection_copies_public_fields():
    transfer = UserTransfer.from_user(_stored_user())
    assert transfer.id == 3
    assert transfer.username == "alice"
    assert transfer.roles == ["ADMIN", "USER"]
    assert transfer.last_visit == "2026-01-02T00:00:00+00:00"


def test_projection_schema_is_strict_subset_of_user():
    internal = {f.name for f in dataclasses.fields(User)}
    public = set(UserTransfer.model_fields)
    assert public < internal
    assert "hashed_password" not in public


def test_projection_json_has_no_credential():
    dumped = UserTransfer.from_user(_stored_user()).model_dump(by_alias=True)
    assert "hashedPassword" not in dumped
    assert "$2b$" not in str(dumped)
    assert dumped["lastVisit"] == "2026-01-02T00:00:00+00:00"


def test_projection_requires_persisted_user():
    with pytest.raises(ValueError):
        UserTransfer.from_user(User(username="draft", hashed_password="x"))


def test_auth_transfer_serializes_camel_case():
    dumped = AuthTransfer(access_token="a", refresh_token="r", expires_in=60).model_dump(by_alias=True)
    assert dumped == {"accessToken": "a", "refreshToken": "r", "tokenType": "bearer", "expiresIn": 60}


@pytest.mark.parametrize(
    "body",
    [
        {"username": "ab", "password": "secret1"},
        {"username": "has space", "password": "secret1"},
        {"username": "alice", "password": "short"},
        {"username": "alice", "password": "secret1", "email": "not-an-email"},
    ],
)
def test_register_request_rejects_bad_input(body):
    with pytest.raises(ValidationError):
        RegisterRequest(**body)
