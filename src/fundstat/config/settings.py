"""Application settings and configuration."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Fund Statistics"
    app_version: str = "0.1.0"
    log_level: str = "INFO"

    # Ledger network ("testnet" or "mainnet"); horizon_url overrides the network default
    stellar_network: str = "testnet"
    horizon_url: Optional[str] = None
    http_timeout_seconds: float = 30.0

    # Quote API for off-ledger symbols
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"

    # Ledger price discovery
    price_cache_ttl_seconds: float = 30.0
    price_cache_max_entries: int = 1000
    price_retry_initial_delay_seconds: float = 2.0
    price_max_attempts: int = 5
    token_price_delay_seconds: float = 0.1

    # External prices
    external_price_cache_ttl_seconds: float = 3600.0
    external_price_request_delay_seconds: float = 6.0
    external_price_retry_initial_delay_seconds: float = 10.0
    external_price_max_attempts: int = 5

    # Fund report
    valuation_fetch_concurrency: int = 3
    account_delay_seconds: float = 0.2


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
