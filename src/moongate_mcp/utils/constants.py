"""Constants and enums for MoonGate MCP server."""

from enum import Enum

DEFAULT_API_URL = "https://wallet.moongate.one"
REQUEST_TIMEOUT_SECONDS = 30.0

SEARCH_PREDEFINED_FILTERS = ["BASE", "SEARCH_QUALITY"]
SEARCH_DEFAULT_LIMIT = 10
SEARCH_MAX_LIMIT = 100
SWAP_SEARCH_LIMIT = 5

DEFAULT_TOKEN_DECIMALS = 9
DEFAULT_SLIPPAGE_BPS = 100
PLACEHOLDER_SYMBOL = "TOKEN"


class TransactionType(str, Enum):
    """Solana transaction encodings accepted by the signer."""

    LEGACY = "legacy"
    VERSIONED = "versioned"


class TransactionSpeed(str, Enum):
    """Priority-fee tiers for swaps."""

    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class RiskLevel(str, Enum):
    """Overall token risk bucket."""

    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


# Swap error codes returned by the upstream DEX integration
SWAP_ERROR_MESSAGES = {
    "NO_ROUTE_FOUND": "No swap route found. The tokens might not have enough liquidity.",
    "INSUFFICIENT_BALANCE": "Insufficient token balance for this swap.",
    "INSUFFICIENT_SOL_BALANCE": "Insufficient SOL balance for transaction fees.",
    "AUTH_REQUIRED": "Authentication required. Session may have expired.",
}
