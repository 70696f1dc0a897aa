"""Tests for the MCP tool registry and its structured error payloads."""

import json
import logging

import pytest
from fastmcp import Client

from moongate_mcp.server import configure_logging, create_server
from moongate_mcp.session import SessionManager

EXPECTED_TOOLS = {
    "session_status",
    "get_wallet_address",
    "sign_message",
    "sign_transaction",
    "get_portfolio",
    "send_token",
    "search_token",
    "get_token_info",
    "swap_token",
}


def _payload(result) -> dict:
    return json.loads(result.content[0].text)


@pytest.fixture
def manager(settings, store, clock, upstream) -> SessionManager:
    return SessionManager(settings, store=store, clock=clock, transport=upstream.transport)


class TestToolRegistry:
    @pytest.mark.asyncio
    async def test_all_tools_registered(self, manager) -> None:
        async with Client(create_server(manager)) as client:
            tools = await client.list_tools()
        assert {t.name for t in tools} == EXPECTED_TOOLS

    @pytest.mark.asyncio
    async def test_tool_uses_session_token(self, manager, store, upstream, google_session) -> None:
        store.save(google_session)
        await manager.initialize()
        upstream.add("GET", "/api2/getwalletaddress", body={"publicKey": "WalletKey"})

        async with Client(create_server(manager)) as client:
            result = await client.call_tool("get_wallet_address", {})

        assert _payload(result) == {"success": True, "publicKey": "WalletKey"}
        assert upstream.requests[0].headers["Authorization"] == "Bearer google-token"

    @pytest.mark.asyncio
    async def test_unauthenticated_call_names_tool(self, manager) -> None:
        async with Client(create_server(manager)) as client:
            result = await client.call_tool("search_token", {"query": "sol"})

        payload = _payload(result)
        assert payload["success"] is False
        assert payload["tool"] == "search_token"
        assert "Not authenticated" in payload["error"]

    @pytest.mark.asyncio
    async def test_tool_failure_names_tool(self, manager, store, upstream, google_session) -> None:
        store.save(google_session)
        await manager.initialize()
        upstream.add("GET", "/api/tokens/search", status=500, body={"error": "Search is down"})

        async with Client(create_server(manager)) as client:
            result = await client.call_tool("search_token", {"query": "sol"})

        assert _payload(result) == {
            "success": False,
            "tool": "search_token",
            "error": "Token search failed: Search is down",
        }

    @pytest.mark.asyncio
    async def test_session_status(self, manager, store, google_session) -> None:
        store.save(google_session)
        await manager.initialize()

        async with Client(create_server(manager)) as client:
            payload = _payload(await client.call_tool("session_status", {}))

        assert payload["success"] is True
        assert payload["authProvider"] == "google"
        assert payload["publicKey"] == google_session.public_key
        assert "token" not in payload


class TestLogging:
    def test_quiet_http_loggers_unless_debug(self) -> None:
        configure_logging(debug=False)
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("uvicorn").level == logging.WARNING
