"""MoonGate MCP server using FastMCP."""

import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable, Literal

from fastmcp import FastMCP
from pydantic import ValidationError

from moongate_mcp.api.client import MoonGateAPI, MoonGateAPIError
from moongate_mcp.config import Settings, get_settings
from moongate_mcp.session import SessionError, SessionManager
from moongate_mcp.tools import ToolError, portfolio, swap, tokens, transfer, wallet

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "MoonGate MCP Server: AI agent access to a MoonGate Solana wallet.\n\n"
    "## Authentication\n\n"
    "The server signs in before it starts accepting tool calls, either with "
    "an operator token (MOONGATE_TOKEN), a saved session, or a browser login "
    "with Google. Call `session_status` to see which wallet is connected. If a "
    "tool reports that the session expired, the server must be restarted to "
    "sign in again.\n\n"
    "## Tool Selection Guide\n\n"
    "1. `get_wallet_address` and `get_portfolio` to see what the wallet holds.\n"
    "2. `search_token` to find a mint by name or symbol, then `get_token_info` "
    "to check liquidity, holders and rugpull indicators before trading.\n"
    "3. `send_token` to transfer tokens that are already in the portfolio.\n"
    "4. `swap_token` to trade one token for another (slippage in basis points).\n"
    "5. `sign_message` / `sign_transaction` for raw signing.\n\n"
    "Every tool returns a JSON object with `success`. On failure it also "
    "carries `tool` and a human-readable `error`."
)

ToolHandler = Callable[..., Awaitable[dict[str, Any]]]


def create_server(session_manager: SessionManager) -> FastMCP:
    """Build the FastMCP server with every wallet tool bound to ``session_manager``."""
    mcp = FastMCP("moongate-mcp", instructions=INSTRUCTIONS)

    async def dispatch(tool_name: str, handler: ToolHandler, **kwargs: Any) -> dict[str, Any]:
        """Run a tool with a freshly authenticated client; failures become error payloads."""
        logger.debug("Executing tool: %s", tool_name)
        try:
            api: MoonGateAPI = await session_manager.authenticated_client()
            async with api:
                result = await handler(api, **kwargs)
        except (SessionError, MoonGateAPIError, ToolError) as e:
            logger.error("Tool %s failed: %s", tool_name, e)
            return {"success": False, "tool": tool_name, "error": str(e)}
        except Exception as e:
            logger.exception("Tool %s failed unexpectedly.", tool_name)
            return {"success": False, "tool": tool_name, "error": str(e) or type(e).__name__}

        if result.get("success") is False:
            result.setdefault("tool", tool_name)
            logger.error("Tool %s failed: %s", tool_name, result.get("error"))
        else:
            logger.debug("Tool %s completed successfully", tool_name)
        return result

    # Session

    @mcp.tool()
    async def session_status() -> dict[str, Any]:
        """Show which wallet is connected and when its session expires."""
        try:
            session = session_manager.get_session()
        except SessionError as e:
            return {"success": False, "tool": "session_status", "error": str(e)}
        return {"success": True, "authenticated": True, **session.public_view()}

    # Wallet

    @mcp.tool()
    async def get_wallet_address() -> dict[str, Any]:
        """Get the public key (wallet address) of the authenticated MoonGate user."""
        return await dispatch("get_wallet_address", wallet.get_wallet_address_tool)

    @mcp.tool()
    async def sign_message(message: str | list[int]) -> dict[str, Any]:
        """Sign a message with the MoonGate wallet.

        Args:
            message: The message to sign, as a string or an array of byte values
        """
        return await dispatch("sign_message", wallet.sign_message_tool, message=message)

    @mcp.tool()
    async def sign_transaction(
        serialized_transaction: list[int],
        transaction_type: Literal["legacy", "versioned"] = "versioned",
        broadcast: bool = False,
        include_payer_signature: bool = True,
    ) -> dict[str, Any]:
        """Sign a Solana transaction with the MoonGate wallet. Optionally broadcast it.

        Args:
            serialized_transaction: The serialized transaction as an array of bytes
            transaction_type: Transaction encoding, "legacy" or "versioned"
            broadcast: Whether to broadcast the transaction after signing
            include_payer_signature: Whether to include the payer signature
        """
        return await dispatch(
            "sign_transaction",
            wallet.sign_transaction_tool,
            serialized_transaction=serialized_transaction,
            tx_type=transaction_type,
            broadcast=broadcast,
            include_payer_signature=include_payer_signature,
        )

    # Portfolio and transfers

    @mcp.tool()
    async def get_portfolio(wallet_address: str | None = None) -> dict[str, Any]:
        """Get the token portfolio (balances, tokens, NFTs) for a wallet address.

        Args:
            wallet_address: Wallet to inspect (defaults to the authenticated user's wallet)
        """
        return await dispatch(
            "get_portfolio", portfolio.get_portfolio_tool, wallet_address=wallet_address
        )

    @mcp.tool()
    async def send_token(
        to_address: str,
        amount: float,
        token_mint: str | None = None,
        token_name: str | None = None,
        token_symbol: str | None = None,
        decimals: int | None = None,
        user_wallet: str | None = None,
    ) -> dict[str, Any]:
        """Send SPL tokens or SOL to another wallet.

        Provide token_mint, or token_name/token_symbol. The portfolio is fetched
        to resolve the token, verify the balance and use the correct decimals.

        Args:
            to_address: Recipient wallet address
            amount: Amount to send (in token units, not lamports)
            token_mint: Token mint address
            token_name: Token name to search for in the portfolio (e.g. "Wrapped SOL")
            token_symbol: Token symbol to search for in the portfolio (e.g. "SOL", "USDC")
            decimals: Token decimals (auto-filled from the portfolio if omitted)
            user_wallet: Sender wallet address (auto-filled if omitted)
        """
        return await dispatch(
            "send_token",
            transfer.send_token_tool,
            to_address=to_address,
            amount=amount,
            token_mint=token_mint,
            token_name=token_name,
            token_symbol=token_symbol,
            decimals=decimals,
            user_wallet=user_wallet,
        )

    # Token data

    @mcp.tool()
    async def search_token(query: str, limit: int = 10) -> dict[str, Any]:
        """Search for Solana tokens by name, symbol, or mint address.

        Args:
            query: Token name (e.g. "Solana"), symbol (e.g. "SOL"), or mint address
            limit: Maximum number of results to return (default 10, max 100)
        """
        return await dispatch("search_token", tokens.search_token_tool, query=query, limit=limit)

    @mcp.tool()
    async def get_token_info(
        token_mint: str | None = None, token_name: str | None = None
    ) -> dict[str, Any]:
        """Get price, liquidity, holder count, social links and rugpull indicators for a token.

        Useful for analyzing token safety before swapping or investing.

        Args:
            token_mint: Token mint address
            token_name: Token name or symbol (searched to find the mint first)
        """
        return await dispatch(
            "get_token_info",
            tokens.get_token_info_tool,
            token_mint=token_mint,
            token_name=token_name,
        )

    # Swaps

    @mcp.tool()
    async def swap_token(
        input_amount: float,
        input_mint: str | None = None,
        input_token: str | None = None,
        output_mint: str | None = None,
        output_token: str | None = None,
        input_decimals: int | None = None,
        input_symbol: str | None = None,
        output_decimals: int | None = None,
        output_symbol: str | None = None,
        slippage_percentage: int = 100,
        transaction_speed: Literal["slow", "normal", "fast"] = "normal",
    ) -> dict[str, Any]:
        """Swap tokens using the MoonGate DEX integration (Jupiter).

        Each side accepts either a mint address or a token name/symbol.

        Args:
            input_amount: Amount of input token to swap (human-readable, e.g. 190.82)
            input_mint: Input token mint address
            input_token: Input token name or symbol (e.g. "SOL", "USDC")
            output_mint: Output token mint address
            output_token: Output token name or symbol (e.g. "SOL", "USDC")
            input_decimals: Input token decimals (fetched if omitted)
            input_symbol: Input token symbol (fetched if omitted)
            output_decimals: Output token decimals (fetched if omitted)
            output_symbol: Output token symbol (fetched if omitted)
            slippage_percentage: Slippage tolerance in basis points (100 = 1%, 300 = 3%)
            transaction_speed: Transaction priority: slow, normal or fast
        """
        return await dispatch(
            "swap_token",
            swap.swap_token_tool,
            input_amount=input_amount,
            input_mint=input_mint,
            input_token=input_token,
            output_mint=output_mint,
            output_token=output_token,
            input_decimals=input_decimals,
            input_symbol=input_symbol,
            output_decimals=output_decimals,
            output_symbol=output_symbol,
            slippage_percentage=slippage_percentage,
            transaction_speed=transaction_speed,
        )

    return mcp


def configure_logging(debug: bool) -> None:
    """Send logs to stderr; stdout carries the MCP protocol."""
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )
    if not debug:
        for noisy in ("httpx", "httpcore", "uvicorn", "uvicorn.error"):
            logging.getLogger(noisy).setLevel(logging.WARNING)


async def serve(settings: Settings) -> None:
    """Authenticate, then serve MCP over stdio until the client disconnects."""
    logger.info("Initializing MoonGate MCP Server...")
    session_manager = SessionManager(settings)
    await session_manager.initialize()

    mcp = create_server(session_manager)
    logger.info("MoonGate MCP Server running")
    await mcp.run_async()


def main() -> None:
    """Main entry point for the server."""
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Error: Failed to load settings: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.moongate_mcp_debug)
    try:
        asyncio.run(serve(settings))
    except (SessionError, OSError) as e:
        logger.error("Failed to start server: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Shutting down.")


if __name__ == "__main__":
    main()
