"""Tests for the local OAuth callback listener."""

import asyncio
import socket
from datetime import timedelta

import httpx
import pytest
from starlette.testclient import TestClient

from moongate_mcp.session import AuthProvider, OAuthCallbackIncompleteError, OAuthTimeoutError
from moongate_mcp.session.listener import CallbackListener, ListenerState

API_URL = "https://wallet.test"
CALLBACK_PARAMS = {
    "token": "browser-token",
    "publicKey": "BrowserKey",
    "userId": "user-42",
    "provider": "google",
}


class BrowserStub:
    """Records the URLs it was asked to open."""

    def __init__(self, opens: bool = True) -> None:
        self.opens = opens
        self.urls: list[str] = []

    def __call__(self, url: str) -> bool:
        self.urls.append(url)
        return self.opens


def _listener(clock, port: int = 8787, timeout: timedelta = timedelta(seconds=10), browser=None) -> CallbackListener:
    return CallbackListener(
        port=port,
        api_url=API_URL,
        session_lifetime=timedelta(days=7),
        timeout=timeout,
        open_browser=browser or BrowserStub(),
        clock=clock,
    )


async def _wait_until_opened(browser: BrowserStub) -> None:
    for _ in range(500):
        if browser.urls:
            return
        await asyncio.sleep(0.01)
    raise AssertionError("browser was never opened")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


class TestRoutes:
    def test_signin_page_embeds_urls(self, clock) -> None:
        client = TestClient(_listener(clock).app)
        resp = client.get("/")
        assert resp.status_code == 200
        assert "MoonGate Login" in resp.text
        assert '"https://wallet.test"' in resp.text
        assert '"http://localhost:8787/callback"' in resp.text

    def test_complete_callback_succeeds(self, clock) -> None:
        listener = _listener(clock)
        resp = TestClient(listener.app).get("/callback", params=CALLBACK_PARAMS)
        assert resp.status_code == 200
        assert "Authentication successful!" in resp.text
        assert listener.state is ListenerState.COMPLETED

    @pytest.mark.parametrize("missing", ["token", "publicKey", "userId"])
    def test_missing_parameter_is_rejected(self, clock, missing: str) -> None:
        listener = _listener(clock)
        params = {k: v for k, v in CALLBACK_PARAMS.items() if k != missing}
        resp = TestClient(listener.app).get("/callback", params=params)
        assert resp.status_code == 400
        assert missing in resp.text
        assert listener.state is ListenerState.FAILED

    def test_manual_provider_is_rejected(self, clock) -> None:
        listener = _listener(clock)
        resp = TestClient(listener.app).get(
            "/callback", params={**CALLBACK_PARAMS, "provider": "manual"}
        )
        assert resp.status_code == 400
        assert "Unsupported provider" in resp.text

    def test_failure_page_escapes_input(self, clock) -> None:
        listener = _listener(clock)
        resp = TestClient(listener.app).get(
            "/callback", params={**CALLBACK_PARAMS, "provider": "<script>"}
        )
        assert resp.status_code == 400
        assert "<script>" not in resp.text
        assert "&lt;script&gt;" in resp.text

    def test_second_callback_conflicts(self, clock) -> None:
        client = TestClient(_listener(clock).app)
        assert client.get("/callback", params=CALLBACK_PARAMS).status_code == 200
        assert client.get("/callback", params=CALLBACK_PARAMS).status_code == 409

    def test_unknown_path_is_not_found(self, clock) -> None:
        assert TestClient(_listener(clock).app).get("/favicon.ico").status_code == 404

    def test_post_callback_not_allowed(self, clock) -> None:
        resp = TestClient(_listener(clock).app).post("/callback", params=CALLBACK_PARAMS)
        assert resp.status_code == 405


# ---------------------------------------------------------------------------
# Full flow over a real socket
# ---------------------------------------------------------------------------


class TestRun:
    @pytest.mark.asyncio
    async def test_callback_resolves_session(self, clock) -> None:
        browser = BrowserStub()
        listener = _listener(clock, port=0, browser=browser)
        task = asyncio.create_task(listener.run())
        await _wait_until_opened(browser)

        assert browser.urls == [f"http://localhost:{listener.port}"]
        async with httpx.AsyncClient(trust_env=False) as client:
            resp = await client.get(
                f"http://127.0.0.1:{listener.port}/callback", params=CALLBACK_PARAMS
            )
        session = await asyncio.wait_for(task, timeout=5)

        assert resp.status_code == 200
        assert session.token == "browser-token"
        assert session.public_key == "BrowserKey"
        assert session.user_id == "user-42"
        assert session.auth_provider is AuthProvider.GOOGLE
        assert session.created_at == clock()
        assert session.expires_at == clock() + timedelta(days=7)
        assert listener.state is ListenerState.COMPLETED

    @pytest.mark.asyncio
    async def test_absent_provider_defaults_to_google(self, clock) -> None:
        browser = BrowserStub()
        listener = _listener(clock, port=0, browser=browser)
        task = asyncio.create_task(listener.run())
        await _wait_until_opened(browser)

        params = {k: v for k, v in CALLBACK_PARAMS.items() if k != "provider"}
        async with httpx.AsyncClient(trust_env=False) as client:
            await client.get(f"http://127.0.0.1:{listener.port}/callback", params=params)
        session = await asyncio.wait_for(task, timeout=5)

        assert session.auth_provider is AuthProvider.GOOGLE

    @pytest.mark.asyncio
    async def test_incomplete_callback_fails_run(self, clock) -> None:
        browser = BrowserStub()
        listener = _listener(clock, port=0, browser=browser)
        task = asyncio.create_task(listener.run())
        await _wait_until_opened(browser)

        async with httpx.AsyncClient(trust_env=False) as client:
            resp = await client.get(
                f"http://127.0.0.1:{listener.port}/callback", params={"token": "t"}
            )

        assert resp.status_code == 400
        with pytest.raises(OAuthCallbackIncompleteError):
            await asyncio.wait_for(task, timeout=5)
        assert listener.state is ListenerState.FAILED

    @pytest.mark.asyncio
    async def test_times_out_without_callback(self, clock) -> None:
        listener = _listener(
            clock, port=0, timeout=timedelta(milliseconds=100), browser=BrowserStub(opens=False)
        )
        with pytest.raises(OAuthTimeoutError, match="timed out"):
            await listener.run()
        assert listener.state is ListenerState.TIMED_OUT

    @pytest.mark.asyncio
    async def test_port_released_after_run(self, clock) -> None:
        listener = _listener(clock, port=0, timeout=timedelta(milliseconds=100))
        with pytest.raises(OAuthTimeoutError):
            await listener.run()

        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
            probe.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            probe.bind(("127.0.0.1", listener.port))

    @pytest.mark.asyncio
    async def test_run_only_once(self, clock) -> None:
        listener = _listener(clock, port=0, timeout=timedelta(milliseconds=50))
        with pytest.raises(OAuthTimeoutError):
            await listener.run()
        with pytest.raises(RuntimeError):
            await listener.run()

    @pytest.mark.asyncio
    async def test_busy_port_raises(self, clock) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as occupied:
            occupied.bind(("127.0.0.1", 0))
            occupied.listen()
            port = occupied.getsockname()[1]
            browser = BrowserStub()
            listener = _listener(clock, port=port, browser=browser)

            with pytest.raises(OSError):
                await listener.run()
        assert browser.urls == []
        assert listener.state is ListenerState.IDLE
