"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the record stores and
the maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file into the environment."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class GoogleSettings(BaseSettings):
    """OAuth client configuration for Google's token endpoints."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    client_id: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_ID")
    client_secret: Optional[str] = Field(None, validation_alias="GOOGLE_CLIENT_SECRET")
    token_url: str = Field(
        "https://oauth2.googleapis.com/token", validation_alias="GOOGLE_TOKEN_URL"
    )
    revoke_url: str = Field(
        "https://oauth2.googleapis.com/revoke", validation_alias="GOOGLE_REVOKE_URL"
    )


class YouTubeSettings(BaseSettings):
    """YouTube Data API endpoint configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    api_base: str = Field(
        "https://www.googleapis.com/youtube/v3", validation_alias="YOUTUBE_API_BASE"
    )
    page_size: int = Field(50, ge=1, le=50, validation_alias="YOUTUBE_PAGE_SIZE")


class HttpSettings(BaseSettings):
    """Outbound HTTP behaviour shared by every remote client."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    timeout_seconds: float = Field(
        10.0,
        gt=0,
        validation_alias="HTTP_TIMEOUT_SECONDS",
        description="Upper bound for OAuth and YouTube calls.",
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    token_encryption_key: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_KEY",
        description="64 hex characters (32 bytes) used for AES-256-GCM token encryption.",
    )


class RateLimitSettings(BaseSettings):
    """Per-user admission budget for outbound YouTube calls."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    max_requests: int = Field(100, ge=1, validation_alias="RATE_LIMIT_MAX_REQUESTS")
    window_ms: int = Field(60_000, ge=1, validation_alias="RATE_LIMIT_WINDOW_MS")


class StorageSettings(BaseSettings):
    """Record store selection."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    backend: Literal["sqlite", "dynamodb"] = Field(
        "sqlite", validation_alias="STORAGE_BACKEND"
    )
    sqlite_path: str = Field("data/subsweep.db", validation_alias="SQLITE_PATH")
    dynamodb_table_name: Optional[str] = Field(
        None, validation_alias="DYNAMODB_TABLE_NAME"
    )
    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: str) -> str:
        """Accept backend names in any case."""
        return value.strip().lower() if isinstance(value, str) else value


class AuthSettings(BaseSettings):
    """How the upstream authentication layer identifies the caller."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    user_header: str = Field(
        "X-Authenticated-User",
        validation_alias="AUTH_USER_HEADER",
        description="Header carrying the signed-in user id, set by the auth proxy.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    history_cache_ttl_seconds: int = Field(
        300, ge=0, validation_alias="HISTORY_CACHE_TTL_SECONDS"
    )
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    youtube: YouTubeSettings = Field(default_factory=YouTubeSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "AuthSettings",
    "GoogleSettings",
    "HttpSettings",
    "RateLimitSettings",
    "SecuritySettings",
    "StorageSettings",
    "YouTubeSettings",
    "get_settings",
]
