"""
Application configuration using pydantic-settings.
All settings are loaded from environment variables.
"""

from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the directory containing this file (app/)
APP_DIR = Path(__file__).resolve().parent
# Project root is one level up
PROJECT_ROOT = APP_DIR.parent
# .env file path
ENV_FILE = PROJECT_ROOT / ".env"

# Load .env file into environment variables BEFORE pydantic-settings reads them
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=True)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App
    app_name: str = "Charter Bookings API"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000"]

    # Database
    database_url: str = "postgresql+asyncpg://localhost/charter_bookings"

    # Currencies: all commission and profit figures are reported in base_currency
    base_currency: str = "THB"
    supported_currencies: List[str] = ["THB", "USD", "EUR", "GBP", "AUD"]

    # Exchange rate providers (rates are quoted as THB per 1 unit of currency)
    exchange_rate_api_url: str = "https://api.exchangerate.host"
    exchange_rate_fallback_url: str = "https://api.frankfurter.app"
    exchange_rate_timeout: float = 10.0

    @field_validator("cors_origins", "supported_currencies", mode="before")
    @classmethod
    def parse_list(cls, v):
        if isinstance(v, str):
            import json
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(",")]
        return v

    @field_validator("supported_currencies")
    @classmethod
    def upper_currencies(cls, v: List[str]) -> List[str]:
        return [c.upper() for c in v]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
