"""Session lifecycle for the MoonGate MCP server.

The manager owns the single live Session. At startup it tries three
credential sources in order:

1. an operator-supplied token (``MOONGATE_TOKEN``), validated upstream and
   held in memory only;
2. the session record persisted by an earlier run;
3. an interactive browser sign-in through the local callback listener.

Each source returns a Session, returns None when it does not apply, or
raises when it fails hard. Once a session is live, ``get_token()`` lazily
refreshes it when it is within the refresh threshold of expiring.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

from moongate_mcp.api.client import MoonGateAPI, MoonGateAPIError, create_client
from moongate_mcp.config import Settings
from moongate_mcp.session.errors import (
    CorruptSessionError,
    InvalidManualTokenError,
    NotAuthenticatedError,
    SessionExpiredError,
)
from moongate_mcp.session.listener import CallbackListener
from moongate_mcp.session.models import AuthProvider, Clock, Session, utc_now
from moongate_mcp.session.store import SessionStore

logger = logging.getLogger(__name__)

AcquisitionStrategy = Callable[[], Awaitable["Session | None"]]


class SessionManager:
    """Single authoritative source of the current wallet session."""

    def __init__(
        self,
        settings: Settings,
        store: SessionStore | None = None,
        clock: Clock | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        listener_factory: Callable[[], CallbackListener] | None = None,
    ) -> None:
        self._settings = settings
        self._store = store or SessionStore(settings.moongate_session_dir)
        self._clock = clock or utc_now
        self._transport = transport
        self._listener_factory = listener_factory or self._default_listener
        self._session: Session | None = None
        self._refresh_lock = asyncio.Lock()

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def _default_listener(self) -> CallbackListener:
        return CallbackListener(
            port=self._settings.moongate_callback_port,
            api_url=self._settings.moongate_api_url,
            session_lifetime=self._settings.session_lifetime,
            timeout=self._settings.oauth_timeout,
            clock=self._clock,
            google_client_id=self._settings.moongate_google_client_id,
        )

    def _client(self, token: str | None = None) -> MoonGateAPI:
        return create_client(
            self._settings.moongate_api_url, token, transport=self._transport
        )

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def initialize(self) -> Session:
        """Establish a session from the first credential source that yields one.

        Raises:
            InvalidManualTokenError: MOONGATE_TOKEN is set but rejected upstream.
            OAuthCallbackIncompleteError: The browser callback lacked parameters.
            OAuthTimeoutError: The browser sign-in did not finish in time.
        """
        self._session = None
        strategies: list[AcquisitionStrategy] = [
            self._acquire_from_static_token,
            self._acquire_from_store,
            self._acquire_interactively,
        ]
        for strategy in strategies:
            session = await strategy()
            if session is not None:
                self._session = session
                return session
        raise NotAuthenticatedError("No credential source produced a session.")

    async def _acquire_from_static_token(self) -> Session | None:
        token = self._settings.moongate_token
        if not token:
            return None

        logger.info("Using manual token from MOONGATE_TOKEN env var")
        try:
            async with self._client(token) as api:
                auth = await api.auth_check()
            public_key = auth.public_key
            # /api2/auth does not always include the wallet address
            if not public_key:
                async with self._client(auth.token) as api:
                    public_key = await api.get_wallet_address()
        except MoonGateAPIError as e:
            logger.error("Failed to validate manual token: %s", e)
            raise InvalidManualTokenError("Invalid MOONGATE_TOKEN") from e

        session = Session.issue(
            token=auth.token,
            auth_provider=AuthProvider.MANUAL,
            now=self._clock(),
            lifetime=self._settings.session_lifetime,
            public_key=public_key or "",
            user_id=auth.user_id or "",
        )
        logger.info(
            "Authenticated with manual token. Public key: %s",
            session.public_key or "(not found)",
        )
        return session

    async def _acquire_from_store(self) -> Session | None:
        try:
            self._store.ensure_directory()
            session = self._store.load()
        except (CorruptSessionError, OSError) as e:
            logger.warning("Ignoring unreadable session record: %s", e)
            return None

        if session is None:
            logger.info("No saved session found.")
            return None
        if session.is_expired(self._clock()):
            logger.info("Saved session expired at %s.", session.expires_at.isoformat())
            return None

        self._session = session
        try:
            session = await self._refresh_if_needed()
        except SessionExpiredError:
            return None

        logger.info("Loaded existing session. Public key: %s", session.public_key)
        return session

    async def _acquire_interactively(self) -> Session:
        logger.info("No valid session found, starting OAuth flow")
        listener = self._listener_factory()
        session = await listener.run()
        self._store.save(session)
        return session

    # ------------------------------------------------------------------
    # Live session
    # ------------------------------------------------------------------

    def get_session(self) -> Session:
        """Return the current session without refreshing it."""
        if self._session is None:
            raise NotAuthenticatedError("Not authenticated. Please run initialization first.")
        return self._session

    async def get_token(self) -> str:
        """Return a bearer token, refreshing it first if it is about to expire.

        Raises:
            NotAuthenticatedError: No session is established.
            SessionExpiredError: The refresh was rejected; the session is gone.
        """
        if self._session is None:
            raise NotAuthenticatedError("Not authenticated")
        session = await self._refresh_if_needed()
        return session.token

    async def authenticated_client(self) -> MoonGateAPI:
        """Build an API client carrying the current (possibly refreshed) token."""
        return self._client(await self.get_token())

    async def _refresh_if_needed(self) -> Session:
        # Read-modify-write of the session and its on-disk copy is one critical section
        async with self._refresh_lock:
            session = self._session
            if session is None:
                raise NotAuthenticatedError("Not authenticated")

            if session.time_until_expiry(self._clock()) >= self._settings.refresh_threshold:
                return session

            logger.info("Token expiring soon, refreshing...")
            try:
                async with self._client(session.token) as api:
                    auth = await api.auth_check()
            except MoonGateAPIError as e:
                logger.error("Failed to refresh token: %s", e)
                self._session = None
                if session.auth_provider is not AuthProvider.MANUAL:
                    self._store.clear()
                raise SessionExpiredError("Session expired. Please authenticate again.") from e

            session.token = auth.token
            session.expires_at = self._clock() + self._settings.session_lifetime
            if session.auth_provider is not AuthProvider.MANUAL:
                self._store.save(session)
            logger.info("Token refreshed successfully")
            return session
