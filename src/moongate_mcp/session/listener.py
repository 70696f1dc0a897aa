"""One-shot local HTTP listener that receives the browser OAuth callback.

The listener serves a sign-in page on ``/`` and accepts a single redirect
to ``/callback?token=&publicKey=&userId=&provider=``. ``run()`` resolves
with the resulting Session, or raises when the callback is incomplete or
nothing arrives before the timeout. The HTTP server is torn down exactly
once, whichever way the wait ends.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import webbrowser
from datetime import timedelta
from enum import Enum
from typing import Callable

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, Response
from starlette.routing import Route

from moongate_mcp.session.errors import OAuthCallbackIncompleteError, OAuthTimeoutError
from moongate_mcp.session.models import AuthProvider, Clock, Session, utc_now
from moongate_mcp.session.signin_page import (
    SUCCESS_PAGE,
    render_failure_page,
    render_signin_page,
)

logger = logging.getLogger(__name__)

DEFAULT_OAUTH_TIMEOUT = timedelta(minutes=5)

_INTERACTIVE_PROVIDERS = {AuthProvider.GOOGLE.value, AuthProvider.APPLE.value}
_REQUIRED_PARAMS = ("token", "publicKey", "userId")


class ListenerState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


_SETTLED = {ListenerState.COMPLETED, ListenerState.FAILED, ListenerState.TIMED_OUT}


class CallbackListener:
    """Local sign-in endpoint racing a user-driven browser login against a timeout."""

    def __init__(
        self,
        port: int,
        api_url: str,
        session_lifetime: timedelta,
        timeout: timedelta = DEFAULT_OAUTH_TIMEOUT,
        open_browser: Callable[[str], bool] = webbrowser.open,
        clock: Clock = utc_now,
        host: str = "127.0.0.1",
        google_client_id: str = "",
    ) -> None:
        self._port = port
        self._host = host
        self._api_url = api_url
        self._lifetime = session_lifetime
        self._timeout = timeout
        self._open_browser = open_browser
        self._clock = clock
        self._google_client_id = google_client_id
        self._result: asyncio.Future[Session] | None = None
        self.state = ListenerState.IDLE
        self.app = Starlette(
            routes=[
                Route("/", self._signin, methods=["GET"]),
                Route("/callback", self._callback, methods=["GET"]),
            ]
        )

    @property
    def port(self) -> int:
        return self._port

    @property
    def url(self) -> str:
        return f"http://localhost:{self._port}"

    @property
    def callback_url(self) -> str:
        return f"{self.url}/callback"

    # Routes

    async def _signin(self, request: Request) -> Response:
        return HTMLResponse(
            render_signin_page(self._api_url, self.callback_url, self._google_client_id)
        )

    async def _callback(self, request: Request) -> Response:
        if self.state in _SETTLED:
            return HTMLResponse(
                render_failure_page("This sign-in request has already been handled."),
                status_code=409,
            )

        params = request.query_params
        missing = [name for name in _REQUIRED_PARAMS if not params.get(name)]
        provider = params.get("provider") or AuthProvider.GOOGLE.value

        if missing or provider not in _INTERACTIVE_PROVIDERS:
            if missing:
                detail = f"Missing required parameters: {', '.join(missing)}"
            else:
                detail = f"Unsupported provider: {provider}"
            logger.error("OAuth callback rejected: %s", detail)
            self._settle(error=OAuthCallbackIncompleteError(detail))
            return HTMLResponse(render_failure_page(detail), status_code=400)

        session = Session.issue(
            token=params["token"],
            auth_provider=AuthProvider(provider),
            now=self._clock(),
            lifetime=self._lifetime,
            public_key=params["publicKey"],
            user_id=params["userId"],
        )
        self._settle(session=session)
        logger.info("Authenticated successfully. Public key: %s", session.public_key)
        return HTMLResponse(SUCCESS_PAGE)

    def _settle(
        self,
        session: Session | None = None,
        error: Exception | None = None,
    ) -> None:
        self.state = ListenerState.COMPLETED if session is not None else ListenerState.FAILED
        if self._result is None or self._result.done():
            return
        if session is not None:
            self._result.set_result(session)
        else:
            self._result.set_exception(error or OAuthCallbackIncompleteError())

    # Lifecycle

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self._host, self._port))
        except OSError:
            sock.close()
            raise
        self._port = sock.getsockname()[1]
        return sock

    async def _launch_browser(self) -> None:
        logger.info("Opening browser for authentication: %s", self.url)
        logger.info("Please log in with Google or Apple...")
        try:
            opened = await asyncio.to_thread(self._open_browser, self.url)
        except Exception:
            logger.debug("Browser launch raised.", exc_info=True)
            opened = False
        if not opened:
            logger.error("Failed to open browser. Please manually navigate to: %s", self.url)

    async def run(self) -> Session:
        """Serve the sign-in flow until a callback arrives or the timeout elapses.

        Raises:
            OAuthCallbackIncompleteError: The callback lacked required parameters.
            OAuthTimeoutError: No callback arrived in time.
            OSError: The callback port could not be bound.
        """
        if self.state is not ListenerState.IDLE:
            raise RuntimeError("CallbackListener.run() can only be called once.")

        sock = self._bind()
        self._result = asyncio.get_running_loop().create_future()
        config = uvicorn.Config(
            self.app,
            log_config=None,
            access_log=False,
            lifespan="off",
        )
        server = uvicorn.Server(config)
        serve_task = asyncio.create_task(server.serve(sockets=[sock]))
        self.state = ListenerState.LISTENING

        try:
            while not server.started:
                if serve_task.done():
                    serve_task.result()
                    raise RuntimeError("Callback listener stopped before it started.")
                await asyncio.sleep(0.01)

            await self._launch_browser()

            try:
                return await asyncio.wait_for(
                    self._result, timeout=self._timeout.total_seconds()
                )
            except asyncio.TimeoutError:
                self.state = ListenerState.TIMED_OUT
                minutes = self._timeout.total_seconds() / 60
                raise OAuthTimeoutError(
                    f"OAuth flow timed out after {minutes:g} minutes."
                ) from None
        finally:
            if self.state is ListenerState.LISTENING:
                self.state = ListenerState.FAILED
            server.should_exit = True
            await asyncio.wait({serve_task})
            sock.close()
