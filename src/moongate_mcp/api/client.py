"""MoonGate wallet API client using httpx."""

import json
from typing import Any

import httpx

from moongate_mcp.api.models import AuthResponse, SearchToken, TokenInfo, TokenMetadata
from moongate_mcp.utils.constants import (
    DEFAULT_API_URL,
    REQUEST_TIMEOUT_SECONDS,
    SEARCH_PREDEFINED_FILTERS,
)


class MoonGateAPIError(Exception):
    """MoonGate API error.

    Carries the HTTP status and parsed error body when the upstream
    service answered, so tools can surface its ``error`` message.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

    @property
    def error_code(self) -> str | None:
        if isinstance(self.payload, dict):
            return self.payload.get("errorCode")
        return None


def _error_message(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict):
        message = payload.get("error") or payload.get("details")
        if message:
            return str(message)
    return fallback


class MoonGateAPI:
    """MoonGate wallet API client."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize MoonGate API client.

        Args:
            base_url: Base URL for the MoonGate wallet API
            token: Bearer token; omitted for unauthenticated calls
            transport: Optional httpx transport (tests inject a mock here)
        """
        self.base_url = base_url
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "MoonGateAPI":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make HTTP request to the MoonGate API.

        Args:
            method: HTTP method
            endpoint: API endpoint
            json_data: JSON request body
            params: Query parameters

        Returns:
            Parsed JSON response (or text for non-JSON bodies)

        Raises:
            MoonGateAPIError: If request fails
        """
        try:
            response = await self.client.request(
                method=method,
                url=endpoint,
                json=json_data,
                params=params,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            try:
                payload = e.response.json()
            except ValueError:
                payload = e.response.text
            fallback = f"HTTP {e.response.status_code}: {e.response.text}"
            raise MoonGateAPIError(
                _error_message(payload, fallback),
                status_code=e.response.status_code,
                payload=payload,
            ) from e
        except httpx.HTTPError as e:
            raise MoonGateAPIError(f"Request failed: {str(e)}") from e

        if "application/json" in response.headers.get("content-type", ""):
            return response.json()
        return response.text

    # Authentication

    async def auth_check(self) -> AuthResponse:
        """Validate the bearer token and obtain a fresh one."""
        data = await self._request("GET", "/api2/auth")
        try:
            return AuthResponse.model_validate(data)
        except ValueError as e:
            raise MoonGateAPIError("Auth check returned no token.", payload=data) from e

    async def get_wallet_address(self) -> str:
        """Get the public key of the authenticated wallet."""
        data = await self._request("GET", "/api2/getwalletaddress")
        if not isinstance(data, dict) or not data.get("publicKey"):
            raise MoonGateAPIError("Wallet address response has no publicKey.", payload=data)
        return data["publicKey"]

    # Signing

    async def sign_message(self, message: str | list[int]) -> dict[str, Any]:
        """Sign a message (string or byte array) with the wallet."""
        return await self._request(
            "POST",
            "/api/wallet/sign-message",
            json_data={"message": message, "password": ""},
        )

    async def sign_transaction(
        self,
        serialized_transaction: list[int],
        tx_type: str = "versioned",
        broadcast: bool = False,
        include_payer_signature: bool = True,
    ) -> dict[str, Any]:
        """Sign (and optionally broadcast) a serialized transaction."""
        return await self._request(
            "POST",
            "/api/wallet/sign-transaction",
            json_data={
                "serializedTransaction": serialized_transaction,
                "type": tx_type,
                "password": "",
                "broadcast": broadcast,
                "includePayerSignature": include_payer_signature,
            },
        )

    # Transfers and portfolio

    async def send_token(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Send SOL or an SPL token."""
        return await self._request("POST", "/sending/sendtoken", json_data=payload)

    async def get_portfolio(self, wallet_address: str) -> dict[str, Any]:
        """Get balances, tokens and NFTs held by a wallet."""
        return await self._request(
            "POST", "/api2/wallet-portfolio", json_data={"walletAddress": wallet_address}
        )

    # Token data

    async def search_tokens(self, query: str, limit: int = 10) -> list[SearchToken]:
        """Search tokens by name, symbol or mint, largest market cap first."""
        params = {
            "q": query,
            "limit": limit,
            "offset": 0,
            "excludeScam": "true",
            "sortBy": "circulatingMarketCap",
            "sortDirection": "desc",
            "predefinedFilters": json.dumps(SEARCH_PREDEFINED_FILTERS),
        }
        data = await self._request("GET", "/api/tokens/search", params=params)
        if not isinstance(data, dict):
            return []
        tokens = (data.get("data") or {}).get("tokens") or []
        return [SearchToken.model_validate(t) for t in tokens]

    async def get_token_info(self, token_mint: str) -> TokenInfo | None:
        """Get market and security details for a token mint."""
        data = await self._request("GET", "/tokens/token-info", params={"tokenMint": token_mint})
        if not data:
            return None
        return TokenInfo.model_validate(data)

    async def get_token_list(self, mints: list[str]) -> list[TokenMetadata]:
        """Get name, symbol and decimals for a set of mints."""
        data = await self._request("GET", "/tokens/getlist", params={"mint": ",".join(mints)})
        if not isinstance(data, list):
            return []
        return [TokenMetadata.model_validate(t) for t in data]

    # Swaps

    async def swap(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Execute a swap through the MoonGate DEX integration."""
        return await self._request("POST", "/pump/swap", json_data=payload)


def create_client(
    base_url: str = DEFAULT_API_URL,
    token: str | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MoonGateAPI:
    """Build an API client bound to ``base_url``, authenticated when ``token`` is given."""
    return MoonGateAPI(base_url, token, transport=transport)
