"""Wallet identity and signing tools for MoonGate MCP server."""

import logging
from typing import Any

from moongate_mcp.api.client import MoonGateAPI, MoonGateAPIError
from moongate_mcp.utils.constants import TransactionType

logger = logging.getLogger(__name__)


async def get_wallet_address_tool(api: MoonGateAPI) -> dict[str, Any]:
    """Get the public key (wallet address) of the authenticated user.

    Args:
        api: Authenticated MoonGate API client

    Returns:
        Dictionary with success status and the wallet public key
    """
    try:
        public_key = await api.get_wallet_address()
        return {"success": True, "publicKey": public_key}
    except MoonGateAPIError as e:
        logger.error("Failed to get wallet address: %s", e)
        return {"success": False, "error": f"Failed to get wallet address: {e}"}


async def sign_message_tool(api: MoonGateAPI, message: str | list[int]) -> dict[str, Any]:
    """Sign a message with the wallet.

    Args:
        api: Authenticated MoonGate API client
        message: UTF-8 string or array of byte values

    Returns:
        Dictionary with success status and the signature
    """
    try:
        data = await api.sign_message(message)
        logger.debug("Sign message response: %s", data)
        return {"success": True, "signature": data.get("signature")}
    except MoonGateAPIError as e:
        logger.error("Failed to sign message: %s", e)
        return {"success": False, "error": f"Failed to sign message: {e}"}


async def sign_transaction_tool(
    api: MoonGateAPI,
    serialized_transaction: list[int],
    tx_type: str = TransactionType.VERSIONED.value,
    broadcast: bool = False,
    include_payer_signature: bool = True,
) -> dict[str, Any]:
    """Sign a serialized Solana transaction, optionally broadcasting it.

    Args:
        api: Authenticated MoonGate API client
        serialized_transaction: Transaction bytes
        tx_type: "legacy" or "versioned"
        broadcast: Submit the signed transaction to the network
        include_payer_signature: Include the fee payer's signature

    Returns:
        Dictionary with success status, signatures and the signed transaction
    """
    try:
        tx_type = TransactionType(tx_type).value
    except ValueError:
        return {
            "success": False,
            "error": f"Invalid transaction type '{tx_type}'. Use 'legacy' or 'versioned'.",
        }

    try:
        data = await api.sign_transaction(
            serialized_transaction,
            tx_type=tx_type,
            broadcast=broadcast,
            include_payer_signature=include_payer_signature,
        )
        logger.debug("Sign transaction response: %s", data)
        return {
            "success": True,
            "signatures": data.get("signatures"),
            "signedTransaction": data.get("signedTransaction"),
            "txSignature": data.get("txSignature"),
        }
    except MoonGateAPIError as e:
        logger.error("Failed to sign transaction: %s", e)
        return {"success": False, "error": f"Failed to sign transaction: {e}"}
