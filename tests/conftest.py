"""
tests/conftest.py -- Shared test fixtures for ModernHN integration tests.

This module provides:
  - _make_test_stores(): isolated in-memory DBs for users + favorites
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: module-scoped TestClient against the real app
  - register: helper fixture that creates an account through the API

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

Environment must be set before any app import: DEBUG lets get_settings()
auto-generate SECRET_KEY, RATE_LIMIT_ENABLED=false keeps the login limit out
of the way, and UPLOAD_DIR points the static mount at a scratch directory.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager

# CRITICAL: set before any api/auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="modernhn-uploads-"))

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.store import UserStore
from auth.tokens import TokenSigner
from favorites.store import FavoriteStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, FavoriteStore]:
    """Create isolated named shared-memory SQLite stores for one test module.

    Both stores point at the same in-memory DB, as they do in production
    where both read DATABASE_URL.
    """
    db_name = db_suffix.replace(".", "_")
    url = f"sqlite:///file:test_{db_name}?mode=memory&cache=shared&uri=true"
    return UserStore(url), FavoriteStore(url)


def _patch_lifespan(user_store: UserStore, favorite_store: FavoriteStore, signer: TokenSigner):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.favorite_store = favorite_store
        app.state.tokens = signer
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient wired to fresh stores for the requesting module.

    Tests hit real route handlers, middleware, and exception handlers; only
    the storage backend and the signer are swapped in.
    """
    user_store, favorite_store = _make_test_stores(request.module.__name__)
    signer = TokenSigner.from_settings(app.state.settings)

    app.router.lifespan_context = _patch_lifespan(user_store, favorite_store, signer)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    favorite_store.close()
    user_store.close()


@pytest.fixture(scope="module")
def register(api_client: TestClient) -> Callable[..., tuple[str, dict]]:
    """Return a helper that registers a user and yields (token, safe_user).

    Usage:
        token, user = register("alice", profileVisibility=False)
    """

    def _register(username: str, password: str = "password123", age: int = 20, **extra) -> tuple[str, dict]:
        body = {
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "age": age,
            **extra,
        }
        resp = api_client.post("/api/auth/register", json=body)
        assert resp.status_code == 201, f"Expected 201, got {resp.status_code}: {resp.text}"
        data = resp.json()
        return data["token"], data["user"]

    return _register
