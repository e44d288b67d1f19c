"""
tests/test_tokens.py -- Unit tests for password hashing and token helpers.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import jwt

from auth.models import User
from auth.store import UserStore
from auth.tokens import (
    _ALGORITHM,
    _settings,
    authenticate_user,
    create_access_token,
    decode_access_token,
    generate_refresh_token,
    hash_password,
    hash_refresh_token,
    refresh_token_expiry,
    verify_password,
)


def test_bcrypt_hashing():
    hashed = hash_password("mypassword")
    assert hashed != "mypassword"
    assert verify_password("mypassword", hashed) is True
    assert verify_password("wrong", hashed) is False


def test_verify_password_with_malformed_hash_is_false():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


def test_password_bytes_past_72_are_significant():
    hashed = hash_password("a" * 72 + "RIGHT")
    assert verify_password("a" * 72 + "RIGHT", hashed) is True
    assert verify_password("a" * 72 + "WRONG", hashed) is False


def test_access_token_claims():
    token = create_access_token(7, "alice", {"USER", "ADMIN"})
    payload = decode_access_token(token)
    assert payload["sub"] == "alice"
    assert payload["user_id"] == 7
    assert payload["roles"] == ["ADMIN", "USER"]
    assert payload["type"] == "access"


def test_access_tokens_are_unique_per_issue():
    assert create_access_token(1, "alice", {"USER"}) != create_access_token(1, "alice", {"USER"})


def test_tampered_token_is_rejected():
    token = create_access_token(1, "alice", {"USER"})
    header, _payload, signature = token.split(".")
    escalated = create_access_token(1, "alice", {"ADMIN"}).split(".")[1]
    assert decode_access_token(f"{header}.{escalated}.{signature}") is None


def test_expired_token_is_rejected():
    payload = {
        "sub": "alice",
        "user_id": 1,
        "roles": ["USER"],
        "type": "access",
        "exp": datetime.now(timezone.utc) - timedelta(seconds=5),
    }
    assert decode_access_token(jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)) is None


def test_token_without_access_type_is_rejected():
    payload = {"sub": "alice", "user_id": 1, "roles": ["USER"]}
    assert decode_access_token(jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)) is None


def test_token_signed_with_other_key_is_rejected():
    token = create_access_token(1, "alice", {"USER"})
    forged = jwt.encode(jwt.get_unverified_claims(token), "x" * 40, algorithm=_ALGORITHM)
    assert decode_access_token(forged) is None


def test_refresh_token_hash_is_deterministic_and_opaque():
    raw = generate_refresh_token()
    assert len(raw) >= 60
    assert hash_refresh_token(raw) == hash_refresh_token(raw)
    assert raw not in hash_refresh_token(raw)
    assert generate_refresh_token() != raw


def test_refresh_token_expiry_uses_settings():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert refresh_token_expiry(now) == now + timedelta(seconds=_settings.refresh_token_expire_seconds)


def test_authenticate_user(store: UserStore):
    store.create_user(User(username="carol", hashed_password=hash_password("secret1")))
    assert authenticate_user(store, "carol", "secret1").username == "carol"
    assert authenticate_user(store, "carol", "wrong12") is None
    assert authenticate_user(store, "nobody", "secret1") is None
