"""
Shared configuration management for the Sheets Feedback Proxy.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SPREADSHEET_ID = "1N4rNJDtW2NHl0K38oiIrGag-VwXbvaUkgPri-QE4XnM"
DEFAULT_SHEET_NAME = "Answers"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SHEETS_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment (SHEETS_ENV, SHEETS_LOG_LEVEL)
    env: str = "local"
    log_level: str = "info"


class SheetsProxyConfig(BaseConfig):
    """Configuration for the sheets proxy service.

    Resolved once at startup and handed to the components that need it;
    nothing below the service reads the environment directly.
    """

    service_name: str = "sheets_proxy"
    host: str = "0.0.0.0"
    port: int = 8020

    # Upstream resource
    spreadsheet_id: str = DEFAULT_SPREADSHEET_ID
    sheet_name: str = DEFAULT_SHEET_NAME
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SHEETS_API_KEY", "GOOGLE_SHEETS_API_KEY"),
    )
    api_base_url: str = "https://sheets.googleapis.com"

    # Caching
    cache_ttl_seconds: float = Field(default=180.0, gt=0)
    serve_stale_on_error: bool = True

    # Upstream call behaviour
    upstream_timeout_seconds: float = Field(default=10.0, gt=0)
    upstream_max_attempts: int = Field(default=1, ge=1)


def get_config(**overrides) -> SheetsProxyConfig:
    """Get configuration for the sheets proxy service."""
    return SheetsProxyConfig(**overrides)
