"""Basic usage example for the MoonGate wallet API client."""

import asyncio
import os

from moongate_mcp.api.client import MoonGateAPI
from moongate_mcp.tools.tokens import assess_risk


async def main() -> None:
    """Demonstrate read-only API usage."""
    # Get a bearer token from environment
    token = os.getenv("MOONGATE_TOKEN")
    if not token:
        print("Error: MOONGATE_TOKEN environment variable not set")
        return

    async with MoonGateAPI(token=token) as api:
        print("\n=== Wallet ===")
        wallet = await api.get_wallet_address()
        print(f"Public key: {wallet}")

        print("\n=== Portfolio ===")
        portfolio = await api.get_portfolio(wallet)
        for token_entry in portfolio.get("tokens", []):
            print(f"{token_entry.get('symbol')}: {token_entry.get('balance')}")

        print("\n=== Searching Tokens ===")
        results = await api.search_tokens("bonk", limit=3)
        for result in results:
            print(f"Found: {result.symbol} ({result.name}) - {result.address}")

        if not results:
            print("No tokens found")
            return

        print(f"\n=== Risk Assessment: {results[0].symbol} ===")
        info = await api.get_token_info(results[0].address)
        if info is None:
            print("Token information not available")
            return
        risk = assess_risk(info)
        print(f"Overall risk: {risk['overallRisk']}")
        for indicator in risk["riskIndicators"]:
            print(f"  - {indicator}")
        print(risk["recommendation"])


if __name__ == "__main__":
    asyncio.run(main())
