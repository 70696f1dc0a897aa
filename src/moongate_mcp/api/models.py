"""Pydantic models for MoonGate API responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AuthResponse(BaseModel):
    """Response of the auth-check endpoint (``GET /api2/auth``)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    token: str = Field(min_length=1)
    public_key: str | None = Field(None, alias="publicKey")
    user_id: str | None = Field(None, alias="userId")


class SearchToken(BaseModel):
    """A single hit from the token search endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    address: str
    name: str = ""
    symbol: str = ""
    decimals: int = 9
    price_usd: str | None = Field(None, alias="priceUSD")
    market_cap: str | float | None = Field(None, alias="marketCap")
    volume_24h: str | float | None = Field(None, alias="volume24h")
    holders: int | None = None
    image_large: str | None = Field(None, alias="imageLarge")
    image_thumb: str | None = Field(None, alias="imageThumb")
    image_small: str | None = Field(None, alias="imageSmall")

    @property
    def image(self) -> str | None:
        return self.image_small or self.image_thumb or self.image_large


class SocialLinks(BaseModel):
    website: str | None = None
    twitter: str | None = None
    telegram: str | None = None
    discord: str | None = None
    github: str | None = None

    @property
    def has_presence(self) -> bool:
        return bool(self.twitter or self.website or self.telegram)


class TokenInfo(BaseModel):
    """Market and security details from ``GET /tokens/token-info``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    address: str | None = None
    name: str | None = None
    symbol: str | None = None
    decimals: int | None = None
    supply: str | float | None = None
    price: float | None = None
    price_usd: str | None = Field(None, alias="priceUSD")
    market_cap: str | float | None = Field(None, alias="marketCap")
    circulating_market_cap: str | float | None = Field(None, alias="circulatingMarketCap")
    liquidity: str | float | None = None
    holders_count: int | None = Field(None, alias="holdersCount")
    holders: int | None = None
    transactions_count: int | None = Field(None, alias="transactionsCount")
    buy_count_24h: int | None = Field(None, alias="buyCount24h")
    sell_count_24h: int | None = Field(None, alias="sellCount24h")
    buyer_sentiment_percent: float | None = Field(None, alias="buyerSentimentPercent")
    created_at: float | None = Field(None, alias="createdAt")  # epoch seconds
    top_holders_percent: float | None = Field(None, alias="topHoldersPercent")
    dev_holders_percent: float | None = Field(None, alias="devHoldersPercent")
    snipers_percent: float | None = Field(None, alias="snipersPercent")
    locked_liquidity_percent: float | None = Field(None, alias="lockedLiquidityPercent")
    pro_traders_count: int | None = Field(None, alias="proTradersCount")
    old_wallet_percent: float | None = Field(None, alias="oldWalletPercent")
    mintable: bool | None = None
    freezable: bool | None = None
    social_links: SocialLinks | None = Field(None, alias="socialLinks")
    first_exchange: dict[str, Any] | None = Field(None, alias="firstExchange")

    @property
    def holder_total(self) -> int:
        return self.holders_count or self.holders or 0


class TokenMetadata(BaseModel):
    """Entry from the ``GET /tokens/getlist`` metadata endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    mint: str = Field(alias="Mint")
    symbol: str = Field(alias="Symbol")
    name: str | None = Field(None, alias="Name")
    decimals: str | int = Field(alias="Decimals")
