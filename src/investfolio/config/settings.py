"""Application settings and configuration."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Return the default data directory based on platform."""
    return Path.home() / "Documents" / "Investfolio Data"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Investfolio"
    app_version: str = "0.1.0"

    # Data directory (all app data lives here)
    data_dir: Optional[Path] = None

    # Database URL for the key-value store (derived from data_dir if not set)
    database_url: Optional[str] = None

    log_level: str = "INFO"

    # Calendar used to decide what "today" is for purchase value dates
    timezone: str = "UTC"

    # Price service
    price_api_base_url: str = "https://api.coingecko.com/api/v3"
    price_api_key: Optional[str] = None
    quote_currency: str = "usd"
    use_stub_provider: bool = False
    http_timeout_seconds: float = 30.0
    max_fetch_attempts: int = 3
    retry_backoff_base: float = 2.0

    # Price cache
    current_price_ttl_seconds: int = 60 * 60
    historical_price_ttl_seconds: int = 24 * 60 * 60
    search_ttl_seconds: int = 30 * 60
    rate_limit_window_seconds: int = 60
    cache_cleanup_interval_seconds: int = 60 * 60

    # Batch price refresh
    price_batch_size: int = Field(default=50, ge=1, le=50)
    price_batch_pause_seconds: float = 1.0

    # Oldest value date the price service can supply history for
    historical_limit_days: int = 365

    def get_data_dir(self) -> Path:
        """Get the data directory, creating it if needed."""
        data_dir = self.data_dir or get_default_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    def get_database_url(self) -> str:
        """Get database URL, deriving from data_dir if not set."""
        if self.database_url:
            return self.database_url
        db_path = self.get_data_dir() / "investfolio.db"
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
