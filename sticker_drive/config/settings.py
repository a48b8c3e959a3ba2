"""Configuration management using pydantic-settings.

Provides validated configuration with support for:
- JSON config file (config.json)
- Environment variable overrides (nested keys use ``__``)
- Type coercion and validation
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class DriveConfig(BaseModel):
    """Credentials and folder layout for the Google Drive source."""

    root_folder_id: str = ""
    api_key: str = ""
    # Static OAuth access token; used when no service account is configured.
    access_token: str = ""
    # Path to a service-account JSON key file.
    service_account_file: str = ""
    # Shared secret echoed back by Google in X-Goog-Channel-Token.
    webhook_channel_token: str = ""

    @field_validator("root_folder_id", "api_key", "access_token", mode="before")
    @classmethod
    def strip_whitespace(cls, v: Any) -> Any:
        """Strip stray whitespace copied along with ids and keys."""
        if isinstance(v, str):
            return v.strip()
        return v


class SyncConfig(BaseModel):
    """Reconciliation and throttle tuning."""

    min_interval_seconds: float = Field(default=120.0, ge=0)
    change_batch_size: int = Field(default=10, ge=1)
    batch_pause_seconds: float = Field(default=0.1, ge=0)
    retry_attempts: int = Field(default=3, ge=1)
    retry_initial_delay: float = Field(default=1.0, ge=0)
    webhook_ttl_seconds: int = Field(default=7 * 24 * 60 * 60, gt=0)
    thumbnail_size: int = Field(default=400, gt=0)


class ImageProxyConfig(BaseModel):
    """Image proxy cache and fetch limits."""

    cache_ttl_seconds: float = Field(default=3600.0, gt=0)
    cache_max_entries: int = Field(default=500, ge=1)
    fetch_timeout_seconds: float = Field(default=15.0, gt=0)
    # Width requested from thumbnail endpoints for full-size requests.
    full_size_hint: int = Field(default=2000, gt=0)


class AppSettings(BaseSettings):
    """Application settings with validation.

    Settings are loaded from a JSON config file (config.json) and may be
    overridden by environment variables such as ``DRIVE__API_KEY``.
    """

    database_url: str = "sqlite+aiosqlite:///./stickers.db"
    # Public base URL, used to build the webhook callback address.
    app_url: str = ""
    drive: DriveConfig = Field(default_factory=DriveConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    images: ImageProxyConfig = Field(default_factory=ImageProxyConfig)

    model_config = SettingsConfigDict(
        extra="ignore",
        env_nested_delimiter="__",
    )

    @field_validator("app_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def webhook_url(self) -> str | None:
        """Absolute webhook callback URL, or None without a public app URL."""
        if not self.app_url:
            return None
        return f"{self.app_url}/api/webhooks/google-drive"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Earlier sources win: environment overrides the JSON file.
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @classmethod
    def from_json(cls, path: str | Path = "config.json") -> "AppSettings":
        """Load settings from a JSON config file.

        Environment variables still take precedence over values in the file.

        Args:
            path: Path to the JSON config file

        Returns:
            AppSettings instance with validated configuration
        """
        config_path = Path(path)
        if not config_path.exists():
            return cls()

        class FileSettings(cls):  # type: ignore[valid-type, misc]
            model_config = SettingsConfigDict(
                json_file=config_path, json_file_encoding="utf-8"
            )

        return FileSettings()


@lru_cache
def get_settings(config_path: str = "config.json") -> AppSettings:
    """Get cached application settings.

    Args:
        config_path: Path to JSON config file (default: config.json)

    Returns:
        Cached AppSettings instance
    """
    return AppSettings.from_json(config_path)


def load_config(path: str | Path = "config.json") -> AppSettings:
    """Load configuration from file, bypassing the settings cache."""
    get_settings.cache_clear()
    return AppSettings.from_json(path)
