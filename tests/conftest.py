"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import httpx
import pytest

from moongate_mcp.config import Settings
from moongate_mcp.session.models import AuthProvider, Session
from moongate_mcp.session.store import SessionStore

API_URL = "https://wallet.test"
FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
WEEK = timedelta(days=7)


class FakeClock:
    """Settable clock; call it to read the current instant."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class FakeUpstream:
    """In-process stand-in for the MoonGate API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[int, Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.routes[(method, path)] = (status, body)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get(
            (request.method, request.url.path), (404, {"error": "Not found"})
        )
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def clock() -> FakeClock:
    """Provide a clock pinned to a fixed instant."""
    return FakeClock()


@pytest.fixture
def session_dir(tmp_path: Path) -> Path:
    return tmp_path / "moongate"


@pytest.fixture
def settings(session_dir: Path) -> Settings:
    """Provide settings isolated from the real environment and home directory."""
    return Settings(
        _env_file=None,
        moongate_api_url=API_URL,
        moongate_token=None,
        moongate_session_dir=session_dir,
    )


@pytest.fixture
def store(session_dir: Path) -> SessionStore:
    return SessionStore(session_dir)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def google_session() -> Session:
    """A freshly issued browser-login session."""
    return Session.issue(
        token="google-token",
        auth_provider=AuthProvider.GOOGLE,
        now=FIXED_NOW,
        lifetime=WEEK,
        public_key="WaLLet1111111111111111111111111111111111111",
        user_id="user-1",
    )
