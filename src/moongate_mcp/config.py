"""Configuration management for MoonGate MCP server."""

from datetime import timedelta
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """MoonGate MCP server settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    moongate_api_url: str = "https://wallet.moongate.one"
    moongate_callback_port: int = 8787
    moongate_token: str | None = None  # operator-supplied, bypasses OAuth
    moongate_mcp_debug: bool = False
    moongate_google_client_id: str = ""

    moongate_session_dir: Path = Path.home() / ".moongate-mcp"
    moongate_session_ttl_seconds: int = 604800  # 7 days
    moongate_refresh_threshold_seconds: int = 3600  # 1 hour
    moongate_oauth_timeout_seconds: int = 300  # 5 minutes

    @property
    def session_lifetime(self) -> timedelta:
        return timedelta(seconds=self.moongate_session_ttl_seconds)

    @property
    def refresh_threshold(self) -> timedelta:
        return timedelta(seconds=self.moongate_refresh_threshold_seconds)

    @property
    def oauth_timeout(self) -> timedelta:
        return timedelta(seconds=self.moongate_oauth_timeout_seconds)


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
