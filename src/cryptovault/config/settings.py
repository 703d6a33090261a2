"""Application settings and configuration."""

from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory."""
    return Path.home() / ".cryptovault"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CRYPTOVAULT_",
    )

    app_name: str = "CryptoVault"
    app_version: str = "0.1.0"

    # Data directory (local database and durable key-value state live here)
    data_dir: Optional[Path] = None

    # Database URL (derived from data_dir if not set explicitly)
    database_url: Optional[str] = None
    sqlite_busy_timeout_ms: int = 5000

    log_level: str = "INFO"

    # Upstream calls
    provider_timeout_seconds: float = 8.0
    binance_base_url: str = "https://api.binance.com"
    binance_stream_url: str = "wss://stream.binance.com:9443/stream"
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    tokenmetrics_base_url: str = "https://api.tokenmetrics.com"
    tokenmetrics_api_key: Optional[str] = None
    cors_relays: list[str] = [
        "https://api.allorigins.win/get?url={encoded_url}",
        "https://cors.isomorphic-git.org/{url}",
    ]
    simple_price_providers: list[str] = ["binance", "coingecko", "tokenmetrics"]
    coingecko_via_relays: bool = False
    live_stream_enabled: bool = False

    # Price cache TTLs
    simple_price_ttl_seconds: int = 60 * 60
    detailed_price_ttl_seconds: int = 60 * 60
    last_known_ttl_seconds: int = 24 * 60 * 60

    # Rate limits
    manual_min_interval_seconds: int = 60
    passive_min_interval_seconds: int = 60 * 60
    max_calls_per_window: int = 30
    rate_window_seconds: int = 60 * 60

    # Background refresh
    price_refresh_interval_seconds: int = 5 * 60
    max_tracked_symbols: int = 200

    # Aggregation and analytics
    shared_entries_ttl_seconds: int = 5 * 60
    min_position_usd: Decimal = Decimal("10")

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "cryptovault.db"
        return f"sqlite:///{db_path}"


# Global settings instance (can be replaced at runtime)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to force reload."""
    global _settings
    _settings = None
