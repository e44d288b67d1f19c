"""
tests/conftest.py -- Shared test fixtures for account service tests.

This module provides:
  - make_store(): creates an isolated in-memory UserStore
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - store: function-scoped UserStore for unit tests
  - api_client: module-scoped (client, store) pair for integration tests
  - register_user / auth_header: small request helpers

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.

The DEBUG env var must be set before any auth module import so get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set DEBUG before any auth/core import.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from api.services.auth_service import AuthService
from auth.store import UserStore


def make_store(name: str) -> UserStore:
    """Create a UserStore backed by a named shared-memory SQLite database.

    The random suffix keeps databases from different tests apart even when
    they share a name prefix.
    """
    return UserStore(db_url=f"sqlite:///file:{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")


def _patch_lifespan(user_store: UserStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.auth_service = AuthService(user_store)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    user_store = make_store("unit")
    yield user_store
    user_store.close()


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, UserStore], None, None]:
    """Yield (client, store) for integration tests.

    One client per test module; each module gets its own database, so
    usernames only need to be unique within a module.
    """
    user_store = make_store(request.module.__name__.replace(".", "_"))
    app.router.lifespan_context = _patch_lifespan(user_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, user_store

    user_store.close()


def register_user(client: TestClient, username: str, password: str = "secret1") -> dict:
    """POST /register and return the token pair, asserting success."""
    resp = client.post("/register", json={"username": username, "password": password})
    assert resp.status_code == 201, resp.text
    return resp.json()


def auth_header(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}
