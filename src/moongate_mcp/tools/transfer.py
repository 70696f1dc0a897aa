"""Token transfer tool for MoonGate MCP server."""

import json
import logging
from dataclasses import dataclass
from typing import Any

from moongate_mcp.api.client import MoonGateAPI, MoonGateAPIError
from moongate_mcp.tools import ToolError
from moongate_mcp.utils.constants import DEFAULT_TOKEN_DECIMALS
from moongate_mcp.utils.formatters import to_float

logger = logging.getLogger(__name__)


@dataclass
class PortfolioToken:
    """A token held in the wallet, normalized across portfolio response shapes."""

    mint: str
    decimals: int
    symbol: str
    name: str
    balance: float


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def normalize_portfolio_token(raw: Any) -> PortfolioToken | None:
    """Map one portfolio entry to a PortfolioToken, or None if it has no mint."""
    if not isinstance(raw, dict):
        return None
    mint = _first(raw, "mint", "address", "Mint", "tokenAddress")
    if not mint or not isinstance(mint, str):
        return None

    decimals = _first(raw, "decimals", "Decimals")
    symbol = str(_first(raw, "symbol", "Symbol", "ticker") or "") or "UNKNOWN"
    name = str(_first(raw, "name", "Name") or "") or symbol
    balance = to_float(_first(raw, "balance", "Balance", "amount", "uiAmount"))
    return PortfolioToken(
        mint=mint,
        decimals=int(to_float(decimals, DEFAULT_TOKEN_DECIMALS)),
        symbol=symbol,
        name=name,
        balance=balance,
    )


def match_token(
    tokens: list[PortfolioToken],
    token_mint: str | None = None,
    token_name: str | None = None,
    token_symbol: str | None = None,
) -> PortfolioToken | None:
    """Find a token by mint, else by symbol then name, else by name then symbol."""

    def by_mint(m: str) -> PortfolioToken | None:
        return next((t for t in tokens if t.mint.lower() == m.lower()), None)

    def by_symbol(s: str) -> PortfolioToken | None:
        return next((t for t in tokens if t.symbol.lower() == s.lower()), None)

    def by_name(n: str) -> PortfolioToken | None:
        return next((t for t in tokens if n.lower() in t.name.lower()), None)

    if token_mint:
        return by_mint(token_mint)
    if token_symbol:
        return by_symbol(token_symbol) or by_name(token_symbol)
    if token_name:
        return by_name(token_name) or by_symbol(token_name)
    return None


async def resolve_token_from_portfolio(
    api: MoonGateAPI,
    user_wallet: str,
    token_mint: str | None = None,
    token_name: str | None = None,
    token_symbol: str | None = None,
) -> PortfolioToken:
    """Look up the token to send in the sender's own portfolio."""
    data = await api.get_portfolio(user_wallet)
    raw_tokens = None
    if isinstance(data, dict):
        raw_tokens = _first(data, "tokens", "tokenList", "assets")
    if not isinstance(raw_tokens, list):
        raise ToolError("Portfolio response has no tokens array")

    tokens = [t for t in map(normalize_portfolio_token, raw_tokens) if t is not None]
    match = match_token(tokens, token_mint, token_name, token_symbol)
    if match is None:
        if token_mint:
            hint = f"mint {token_mint}"
        else:
            hint = f'name/symbol "{token_symbol or token_name}"'
        available = ", ".join(f"{t.symbol} ({t.mint})" for t in tokens) or "none"
        raise ToolError(f"Token not found in portfolio: {hint}. Available tokens: {available}")
    return match


async def send_token_tool(
    api: MoonGateAPI,
    to_address: str,
    amount: float,
    token_mint: str | None = None,
    token_name: str | None = None,
    token_symbol: str | None = None,
    decimals: int | None = None,
    user_wallet: str | None = None,
) -> dict[str, Any]:
    """Send SOL or an SPL token to another wallet.

    The token is resolved from the sender's portfolio, which also supplies
    the balance check and the decimals when they are not given.

    Args:
        api: Authenticated MoonGate API client
        to_address: Recipient wallet address
        amount: Amount in token units (not lamports)
        token_mint: Token mint address
        token_name: Token name to look for in the portfolio
        token_symbol: Token symbol to look for in the portfolio
        decimals: Token decimals override
        user_wallet: Sender wallet; defaults to the authenticated wallet

    Returns:
        Dictionary with success status, transaction signature, token and amount
    """
    token_mint = token_mint.strip() if token_mint else None
    token_name = token_name.strip() if token_name else None
    token_symbol = token_symbol.strip() if token_symbol else None
    if not (token_mint or token_name or token_symbol):
        return {
            "success": False,
            "error": "Provide at least one of: token_mint, token_name, or token_symbol",
        }

    try:
        if not user_wallet:
            user_wallet = await api.get_wallet_address()
        resolved = await resolve_token_from_portfolio(
            api, user_wallet, token_mint, token_name, token_symbol
        )
        if resolved.balance < amount:
            raise ToolError(
                f"Insufficient balance. You have {resolved.balance:g} {resolved.symbol}, "
                f"but tried to send {amount:g}."
            )

        payload = {
            "tokenMint": resolved.mint,
            "toAddress": to_address,
            "amount": amount,
            "decimals": decimals if decimals is not None else resolved.decimals,
            "userWallet": user_wallet,
            "password": "",
        }
        logger.info("Sending token with payload: %s", json.dumps(payload))
        data = await api.send_token(payload)
        logger.info("Send token response: %s", data)
    except ToolError as e:
        return {"success": False, "error": str(e)}
    except MoonGateAPIError as e:
        logger.error("Failed to send token (HTTP %s): %s", e.status_code or "?", e.payload)
        details = json.dumps(e.payload, indent=2) if e.payload else str(e)
        return {
            "success": False,
            "error": f"Failed to send token (HTTP {e.status_code or '?'}): {e}\n\nFull error: {details}",
        }

    return {
        "success": data.get("success") is not False,
        "signature": data.get("signature"),
        "error": data.get("error"),
        "token": resolved.symbol,
        "amount": amount,
    }
