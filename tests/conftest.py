"""
tests/conftest.py -- Shared test fixtures.

This module provides:
  - auth_config: a fast (bcrypt rounds=4) AuthConfig with a fixed secret
  - clock: a controllable UTC clock for expiry tests
  - memory_store / sql_store: isolated store instances
  - service: AuthService on the memory store, driven by the test clock
  - api_client: TestClient with a patched lifespan and an isolated store

Design: the SQL store uses named shared-memory SQLite URIs (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread.

DEBUG is set before any api/ import so get_settings() can auto-generate a
JWT_SECRET instead of raising ValueError.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# Set DEBUG before any api/core import so get_settings() does not require
# a real JWT_SECRET.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.config import AuthConfig
from auth.memory import MemoryAuthStore
from auth.models import User
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import SQLAuthStore
from auth.tokens import TokenCodec

TEST_SECRET = "test-jwt-secret-at-least-32-bytes-long"


class FakeClock:
    """Callable returning a fixed UTC instant that tests can move forward."""

    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(jwt_secret=TEST_SECRET, bcrypt_rounds=4)


@pytest.fixture
def hasher(auth_config: AuthConfig) -> PasswordHasher:
    return PasswordHasher(rounds=auth_config.bcrypt_rounds)


@pytest.fixture
def codec(auth_config: AuthConfig) -> TokenCodec:
    return TokenCodec(auth_config)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryAuthStore:
    return MemoryAuthStore()


@pytest.fixture
def sql_store() -> Generator[SQLAuthStore, None, None]:
    """SQLAuthStore on a private shared-memory database."""
    store = SQLAuthStore(f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    yield store
    store.close()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Each contract test runs once per store implementation."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def service(memory_store, hasher, codec, auth_config, clock) -> AuthService:
    return AuthService(memory_store, memory_store, hasher, codec, auth_config, clock=clock)


@pytest.fixture
def make_service(memory_store, hasher, clock):
    """Factory for services with a non-default AuthConfig on the shared memory store."""

    def _make(**overrides) -> AuthService:
        config = AuthConfig(jwt_secret=TEST_SECRET, bcrypt_rounds=4, **overrides)
        return AuthService(memory_store, memory_store, hasher, TokenCodec(config), config, clock=clock)

    return _make


def _new_user(hasher: PasswordHasher, email: str, password: str, role: str = "user", is_active: bool = True) -> User:
    return User(
        id=str(uuid.uuid4()),
        email=email,
        password_hash=hasher.hash(password),
        role=role,
        is_active=is_active,
    )


@pytest.fixture
def make_user(hasher):
    """Factory for User rows with a real bcrypt hash (not persisted)."""

    def _make(email: str, password: str, role: str = "user", is_active: bool = True) -> User:
        return _new_user(hasher, email, password, role=role, is_active=is_active)

    return _make


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


def _patch_lifespan(service: AuthService):
    """Return an async context manager that replaces the real lifespan.

    Wires a pre-built service into app.state so TestClient routes use an
    isolated store rather than the production database. Secure cookies are
    off because TestClient talks plain http to "testserver".
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.auth_service = service
        app.state.token_codec = service.codec
        app.state.secure_cookies = False
        yield

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[tuple[TestClient, AuthService], None, None]:
    """Yield (client, service) for API integration tests.

    The service runs on a fresh MemoryAuthStore with the real clock (tokens
    go through real JWT expiry checks). An admin account
    admin@example.com / adminpass123 is pre-created.
    """
    config = AuthConfig(jwt_secret=TEST_SECRET, bcrypt_rounds=4)
    store = MemoryAuthStore()
    hasher = PasswordHasher(rounds=4)
    service = AuthService(store, store, hasher, TokenCodec(config), config)
    store.create_user(_new_user(hasher, "admin@example.com", "adminpass123", role="admin"))

    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(service)
    try:
        with TestClient(app, raise_server_exceptions=True) as client:
            yield client, service
    finally:
        app.router.lifespan_context = original_lifespan
