"""Token search and token analysis tools for MoonGate MCP server."""

import logging
from datetime import datetime, timezone
from typing import Any

from moongate_mcp.api.client import MoonGateAPI, MoonGateAPIError
from moongate_mcp.api.models import TokenInfo
from moongate_mcp.tools import ToolError
from moongate_mcp.utils.constants import SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT, RiskLevel
from moongate_mcp.utils.formatters import format_percent, format_usd_price, to_float

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86400


async def search_token_tool(
    api: MoonGateAPI, query: str, limit: int = SEARCH_DEFAULT_LIMIT
) -> dict[str, Any]:
    """Search Solana tokens by name, symbol or mint address.

    Args:
        api: Authenticated MoonGate API client
        query: Token name ("Solana"), symbol ("SOL") or mint address
        limit: Maximum results (capped at 100)

    Returns:
        Dictionary with success status and matching tokens
    """
    limit = max(1, min(limit or SEARCH_DEFAULT_LIMIT, SEARCH_MAX_LIMIT))
    logger.info('Searching for token: "%s"', query)
    try:
        tokens = await api.search_tokens(query, limit=limit)
    except MoonGateAPIError as e:
        logger.error("Failed to search tokens: %s", e)
        return {"success": False, "error": f"Token search failed: {e}"}

    if not tokens:
        return {
            "success": True,
            "results": [],
            "count": 0,
            "message": f'No tokens found matching "{query}"',
        }

    logger.info('Found %d token(s) for query: "%s"', len(tokens), query)
    return {
        "success": True,
        "results": [
            {
                "mint": t.address,
                "name": t.name,
                "symbol": t.symbol,
                "decimals": t.decimals,
                "price": format_usd_price(t.price_usd),
                "marketCap": t.market_cap,
                "volume24h": t.volume_24h,
                "holders": t.holders,
                "image": t.image,
            }
            for t in tokens
        ],
        "count": len(tokens),
    }


def assess_risk(info: TokenInfo, now: datetime | None = None) -> dict[str, Any]:
    """Summarize rugpull indicators from a token's market and security data."""
    now = now or datetime.now(timezone.utc)
    risks: list[str] = []
    safety: list[str] = []

    liquidity = to_float(info.liquidity)
    if liquidity < 1000:
        risks.append("Low liquidity (<$1K) - high rugpull risk")
    elif liquidity < 10000:
        risks.append("Moderate liquidity (<$10K)")
    else:
        safety.append(f"Good liquidity (${liquidity / 1000:.1f}K)")

    holders = info.holder_total
    if holders:
        if holders < 100:
            risks.append("Very few holders (<100)")
        elif holders < 1000:
            risks.append("Low holder count (<1K)")
        else:
            safety.append(f"{holders:,} holders")

    top = info.top_holders_percent
    if top:
        if top > 80:
            risks.append(f"Extremely concentrated (top holders: {format_percent(top)})")
        elif top > 50:
            risks.append(f"High concentration (top holders: {format_percent(top)})")
        else:
            safety.append(f"Good distribution (top holders: {format_percent(top)})")

    if info.mintable is True:
        risks.append("⚠️ Mintable (supply can be increased)")
    if info.freezable is True:
        risks.append("⚠️ Freezable (accounts can be frozen)")
    if info.mintable is False and info.freezable is False:
        safety.append("✓ Not mintable or freezable")

    locked = info.locked_liquidity_percent
    if locked is not None:
        if locked < 50:
            risks.append(f"Low locked liquidity ({locked:g}%)")
        else:
            safety.append(f"{locked:g}% liquidity locked")

    if info.snipers_percent and info.snipers_percent > 10:
        risks.append(f"High sniper activity ({format_percent(info.snipers_percent)})")

    if info.dev_holders_percent and info.dev_holders_percent > 10:
        risks.append(f"High dev holdings ({format_percent(info.dev_holders_percent)})")

    if info.created_at:
        age_days = (now.timestamp() - info.created_at) / _SECONDS_PER_DAY
        if age_days < 1:
            risks.append("Very new token (<1 day old)")
        elif age_days < 7:
            risks.append(f"New token ({age_days:.0f} days old)")
        else:
            safety.append(f"Established ({age_days:.0f} days old)")

    if info.social_links and info.social_links.has_presence:
        safety.append("Has social media presence")
    else:
        risks.append("No social media links")

    sentiment = info.buyer_sentiment_percent
    if sentiment is not None:
        if sentiment < 30:
            risks.append(f"Very bearish sentiment ({format_percent(sentiment)} buyers)")
        elif sentiment > 60:
            safety.append(f"Bullish sentiment ({format_percent(sentiment)} buyers)")

    if not risks:
        overall = RiskLevel.LOW
    elif len(risks) <= 2:
        overall = RiskLevel.MODERATE
    else:
        overall = RiskLevel.HIGH

    if len(risks) >= 5:
        recommendation = "🚫 HIGH RISK - Not recommended"
    elif len(risks) >= 3:
        recommendation = "⚠️ MODERATE RISK - Use caution, do more research"
    else:
        recommendation = "✓ Appears relatively safe, but always DYOR (Do Your Own Research)"

    return {
        "riskIndicators": risks or ["No major red flags detected"],
        "safetyIndicators": safety,
        "overallRisk": overall.value,
        "recommendation": recommendation,
    }


async def _resolve_mint(api: MoonGateAPI, token_name: str) -> str:
    logger.info('Searching for token: "%s"', token_name)
    tokens = await api.search_tokens(token_name, limit=1)
    if not tokens:
        raise ToolError(f'Token "{token_name}" not found')
    logger.info('Resolved "%s" to %s', token_name, tokens[0].address)
    return tokens[0].address


async def get_token_info_tool(
    api: MoonGateAPI,
    token_mint: str | None = None,
    token_name: str | None = None,
) -> dict[str, Any]:
    """Get price, liquidity, holder and security details with a rugpull assessment.

    Args:
        api: Authenticated MoonGate API client
        token_mint: Token mint address
        token_name: Token name or symbol, resolved to a mint via search

    Returns:
        Dictionary with success status, token details and risk assessment
    """
    try:
        if not token_mint and token_name:
            token_mint = await _resolve_mint(api, token_name)
        if not token_mint:
            raise ToolError("Provide either token_mint or token_name")

        logger.info("Fetching token info for: %s", token_mint)
        info = await api.get_token_info(token_mint)
        if info is None:
            raise ToolError("Token information not available")
    except (MoonGateAPIError, ToolError) as e:
        logger.error("Failed to get token info: %s", e)
        return {"success": False, "error": f"Failed to get token info: {e}"}

    return {
        "success": True,
        "token": {
            "mint": token_mint,
            "name": info.name,
            "symbol": info.symbol,
            "decimals": info.decimals,
            "supply": info.supply,
            "createdAt": info.created_at,
        },
        "price": {
            "usd": info.price or info.price_usd,
            "marketCap": info.market_cap,
            "circulatingMarketCap": info.circulating_market_cap,
        },
        "security": {
            "mintable": info.mintable,
            "freezable": info.freezable,
            "lockedLiquidityPercent": info.locked_liquidity_percent,
            "topHoldersPercent": info.top_holders_percent,
            "devHoldersPercent": info.dev_holders_percent,
            "snipersPercent": info.snipers_percent,
        },
        "market": {
            "liquidity": info.liquidity,
            "holders": info.holder_total,
            "transactionsCount": info.transactions_count,
            "buyCount24h": info.buy_count_24h,
            "sellCount24h": info.sell_count_24h,
            "buyerSentimentPercent": info.buyer_sentiment_percent,
            "proTradersCount": info.pro_traders_count,
            "oldWalletPercent": info.old_wallet_percent,
        },
        "exchange": info.first_exchange,
        "socialLinks": (
            info.social_links.model_dump(exclude_none=True) if info.social_links else None
        ),
        "riskAssessment": assess_risk(info),
    }
