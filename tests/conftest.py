"""
tests/conftest.py -- Shared test fixtures for accounts integration tests.

This module provides:
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - user_store: isolated file-backed SQLite store per test
  - sessions: SessionManager with a fixed test secret
  - client: TestClient over the real app with the patched lifespan

Design: each test gets its own SQLite file under tmp_path. TestClient runs
sync route handlers in a thread pool, so a plain :memory: DB (one per
connection) would present a blank schema to the worker threads.

DEBUG and BCRYPT_ROUNDS must be set before any app import: get_settings()
auto-generates SECRET_KEY only in dev mode, and the minimum bcrypt cost keeps
the suite fast.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from pathlib import Path

# CRITICAL: Set before any api/core import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.sessions import SessionManager
from auth.store import UserStore

TEST_SECRET = "test-secret-key-that-is-long-enough-for-signing"
COOKIE_NAME = "accounts-api"


def _patch_lifespan(user_store: UserStore, sessions: SessionManager):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test objects into app.state so TestClient routes see an
    isolated test DB rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.sessions = sessions
        yield

    return test_lifespan


@pytest.fixture
def user_store(tmp_path: Path) -> Generator[UserStore, None, None]:
    store = UserStore(db_url=f"sqlite:///{tmp_path / 'accounts_test.db'}")
    yield store
    store.close()


@pytest.fixture
def sessions() -> SessionManager:
    return SessionManager(secret_key=TEST_SECRET, cookie_name=COOKIE_NAME, max_age=3600)


@pytest.fixture
def client(user_store: UserStore, sessions: SessionManager) -> Generator[TestClient, None, None]:
    """TestClient with follow_redirects=False so redirect responses can be asserted on."""
    app.router.lifespan_context = _patch_lifespan(user_store, sessions)
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as c:
        yield c
