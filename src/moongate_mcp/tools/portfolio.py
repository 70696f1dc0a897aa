"""Portfolio lookup tool for MoonGate MCP server."""

import logging
from typing import Any

from moongate_mcp.api.client import MoonGateAPI, MoonGateAPIError

logger = logging.getLogger(__name__)


async def get_portfolio_tool(api: MoonGateAPI, wallet_address: str | None = None) -> dict[str, Any]:
    """Get token balances and NFTs for a wallet.

    Args:
        api: Authenticated MoonGate API client
        wallet_address: Wallet to inspect; defaults to the authenticated wallet

    Returns:
        Dictionary with success status, the wallet address and the raw portfolio
    """
    try:
        if not wallet_address:
            wallet_address = await api.get_wallet_address()
        portfolio = await api.get_portfolio(wallet_address)
        logger.debug("Portfolio response: %s", portfolio)
        return {"success": True, "walletAddress": wallet_address, "portfolio": portfolio}
    except MoonGateAPIError as e:
        logger.error("Failed to get portfolio: %s", e)
        return {"success": False, "error": f"Failed to get portfolio: {e}"}
