"""Token swap tool for MoonGate MCP server.

Routing is done upstream by the DEX aggregator; this module only resolves
the two sides of the swap to mints, decimals and symbols.
"""

import logging
from dataclasses import dataclass
from typing import Any

from moongate_mcp.api.client import MoonGateAPI, MoonGateAPIError
from moongate_mcp.tools import ToolError
from moongate_mcp.utils.constants import (
    DEFAULT_SLIPPAGE_BPS,
    DEFAULT_TOKEN_DECIMALS,
    PLACEHOLDER_SYMBOL,
    SWAP_ERROR_MESSAGES,
    SWAP_SEARCH_LIMIT,
    TransactionSpeed,
)
from moongate_mcp.utils.formatters import strip_quotes

logger = logging.getLogger(__name__)


@dataclass
class SwapSide:
    mint: str
    decimals: str
    symbol: str

    def as_payload(self) -> dict[str, str]:
        return {"mint": self.mint, "decimals": self.decimals, "symbol": self.symbol}


async def _search_token_by_name(api: MoonGateAPI, query: str) -> SwapSide | None:
    """Return the top search hit for ``query``; a failed search counts as no hit."""
    try:
        tokens = await api.search_tokens(query, limit=SWAP_SEARCH_LIMIT)
    except MoonGateAPIError as e:
        logger.warning('Token search failed for "%s": %s', query, e)
        return None
    if not tokens:
        return None
    top = tokens[0]
    logger.info("Found token: %s (%s) - %s", top.symbol, top.name, top.address)
    return SwapSide(mint=top.address, decimals=str(top.decimals), symbol=top.symbol)


async def _resolve_side(
    api: MoonGateAPI,
    label: str,
    mint: str | None,
    token: str | None,
    decimals: int | None,
    symbol: str | None,
) -> SwapSide:
    if mint:
        return SwapSide(
            mint=strip_quotes(mint),
            decimals=str(decimals) if decimals else str(DEFAULT_TOKEN_DECIMALS),
            symbol=symbol or PLACEHOLDER_SYMBOL,
        )
    if token:
        side = await _search_token_by_name(api, str(token))
        if side is None:
            raise ToolError(
                f'{label.capitalize()} token "{token}" not found. '
                "Try providing the mint address instead."
            )
        logger.info('Resolved %s token "%s" to %s (%s)', label, token, side.symbol, side.mint)
        return side
    raise ToolError(f"Provide either {label}_mint or {label}_token (name/symbol)")


async def _fill_metadata(api: MoonGateAPI, sides: list[SwapSide]) -> None:
    """Replace placeholder symbols and decimals with upstream token metadata."""
    try:
        metadata = await api.get_token_list([s.mint for s in sides])
    except MoonGateAPIError:
        logger.warning("Metadata fetch failed, using resolved values")
        return
    by_mint = {m.mint: m for m in metadata}
    for side in sides:
        found = by_mint.get(side.mint)
        if found and side.symbol == PLACEHOLDER_SYMBOL:
            side.symbol = found.symbol
            side.decimals = str(found.decimals)


def _swap_error_message(error: MoonGateAPIError) -> str:
    friendly = SWAP_ERROR_MESSAGES.get(error.error_code or "")
    if friendly:
        return friendly
    return f"Swap failed (HTTP {error.status_code or '?'}): {error}"


async def swap_token_tool(
    api: MoonGateAPI,
    input_amount: float,
    input_mint: str | None = None,
    input_token: str | None = None,
    output_mint: str | None = None,
    output_token: str | None = None,
    input_decimals: int | None = None,
    input_symbol: str | None = None,
    output_decimals: int | None = None,
    output_symbol: str | None = None,
    slippage_percentage: int = DEFAULT_SLIPPAGE_BPS,
    transaction_speed: str = TransactionSpeed.NORMAL.value,
) -> dict[str, Any]:
    """Swap one token for another through the MoonGate DEX integration.

    Args:
        api: Authenticated MoonGate API client
        input_amount: Human-readable amount of the input token (e.g. 190.82)
        input_mint: Input token mint (or use input_token)
        input_token: Input token name or symbol, resolved via search
        output_mint: Output token mint (or use output_token)
        output_token: Output token name or symbol, resolved via search
        input_decimals: Input token decimals override
        input_symbol: Input token symbol override
        output_decimals: Output token decimals override
        output_symbol: Output token symbol override
        slippage_percentage: Slippage tolerance in basis points (100 = 1%)
        transaction_speed: "slow", "normal" or "fast"

    Returns:
        Dictionary with success status, signature and swap summary
    """
    try:
        speed = TransactionSpeed(transaction_speed).value
    except ValueError:
        return {
            "success": False,
            "error": f"Invalid transaction speed '{transaction_speed}'. Use slow, normal or fast.",
        }

    try:
        source = await _resolve_side(
            api, "input", input_mint, input_token, input_decimals, input_symbol
        )
        target = await _resolve_side(
            api, "output", output_mint, output_token, output_decimals, output_symbol
        )
        if PLACEHOLDER_SYMBOL in (source.symbol, target.symbol):
            await _fill_metadata(api, [source, target])
        logger.debug(
            "Final token data: input %s (%s decimals) - %s, output %s (%s decimals) - %s",
            source.symbol, source.decimals, source.mint,
            target.symbol, target.decimals, target.mint,
        )

        user_wallet = await api.get_wallet_address()
        payload = {
            "inputToken": source.as_payload(),
            "outputToken": target.as_payload(),
            "inputAmount": input_amount,
            "slippagePercentage": slippage_percentage,
            "userWallet": user_wallet,
            "password": "",
            "transactionSpeed": speed,
        }
        logger.info("Executing swap: %s %s -> %s", input_amount, source.symbol, target.symbol)
        logger.debug("Swap payload: %s", payload)
        data = await api.swap(payload)
        logger.debug("Swap response: %s", data)
    except ToolError as e:
        return {"success": False, "error": str(e)}
    except MoonGateAPIError as e:
        logger.error(
            "Failed to swap token: status=%s code=%s message=%s",
            e.status_code, e.error_code, e,
        )
        return {"success": False, "error": _swap_error_message(e)}

    if not data.get("success"):
        message = data.get("error") or "Swap failed without error message"
        logger.error("Swap rejected: %s", message)
        return {"success": False, "error": message}

    return {
        "success": True,
        "signature": data.get("signature"),
        "inputToken": data.get("inputToken") or source.mint,
        "outputToken": data.get("outputToken") or target.mint,
        "inputAmount": data.get("inputAmount", input_amount),
        "transactionCount": data.get("transactionCount"),
        "status": data.get("status") or "success",
    }
