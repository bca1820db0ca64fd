"""Shared fixtures for the client test suite.

Provides:
- In-memory durable and ephemeral storages and a SessionService over them
- FakeBackend: an httpx.MockTransport route table that records every request
- A fully wired DealDeskApp talking to the FakeBackend
"""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
import pytest_asyncio

from src.dealdesk.config import Settings
from src.dealdesk.core.session import SessionService
from src.dealdesk.core.storage import MemoryStorage
from src.dealdesk.main import DealDeskApp, create_app
from src.dealdesk.users.schemas import User, UserRole

API_BASE_URL = "http://testserver/api"
API_PREFIX = "/api"


class FakeBackend:
    """Answers requests from a (method, path) table and records them.

    Paths are registered without the ``/api`` prefix. Unregistered routes
    answer 404. A registered exception is raised instead of answering.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], tuple[int, Any] | Exception] = {}

    def add(self, method: str, path: str, status: int = 200, json: Any = None) -> None:
        self._routes[(method.upper(), path)] = (status, json)

    def fail(self, method: str, path: str, exc: Exception) -> None:
        self._routes[(method.upper(), path)] = exc

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and self._path(r) == path]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    @staticmethod
    def _path(request: httpx.Request) -> str:
        path = request.url.path
        return path[len(API_PREFIX):] if path.startswith(API_PREFIX) else path

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, self._path(request)))
        if route is None:
            return httpx.Response(404, json={"message": f"No route for {request.method} {request.url.path}"})
        if isinstance(route, Exception):
            raise route
        status, payload = route
        if payload is None:
            return httpx.Response(status)
        if isinstance(payload, str):
            return httpx.Response(status, text=payload)
        return httpx.Response(status, json=payload)


# ── Session ────────────────────────────────────────────────────────────────


@pytest.fixture
def durable() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def ephemeral() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def session(durable, ephemeral) -> SessionService:
    return SessionService(durable=durable, ephemeral=ephemeral)


@pytest.fixture
def admin_user() -> User:
    return User(id=1, username="admin", email="admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
def regular_user() -> User:
    return User(id=2, username="analyst", email="analyst@example.com", role=UserRole.USER)


@pytest.fixture
def login_as(session):
    """Put the session in the state a successful interactive login leaves."""

    def _login(user: User, token: str = "tok-123") -> None:
        session.start(token, user)
        session.mark_logged_in_this_session()

    return _login


# ── Application ────────────────────────────────────────────────────────────


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(_env_file=None, API_BASE_URL=API_BASE_URL, STATE_DIR=tmp_path)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def app(settings, backend, durable, ephemeral) -> AsyncGenerator[DealDeskApp, None]:
    """DealDeskApp wired to the FakeBackend with in-memory storages."""
    application = create_app(
        settings=settings,
        transport=backend.transport,
        durable_storage=durable,
        ephemeral_storage=ephemeral,
    )
    yield application
    await application.aclose()
