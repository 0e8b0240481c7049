"""Settings for the anime quotes API.

Three groups, each with its own environment prefix:

- ``APP_``: API prefix, key format, validity cache and rate limits
- ``STORE_``: counter store (Redis) and record store (SQL) locations
- ``LOG_``: log level, format and destination

``APP_ENV`` picks the dotenv file (``.env.development``, ``.env.testing``, ...)
that is loaded into the process environment before any group is built.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

# Repository root; dotenv files live next to pyproject.toml
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}


def _dotenv_path(app_env: str) -> Path | None:
    """Dotenv file for ``app_env``, or None when it does not exist."""
    path = PROJECT_ROOT / ENV_FILE_MAP.get(app_env, ENV_FILE_MAP["development"])
    return path if path.is_file() else None


# Nested BaseSettings do not share an env_file, so the file goes into
# os.environ once, before the groups below read it.
_env_file = _dotenv_path(APP_ENV)
if _env_file is not None:
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


def _build_store_settings() -> "StoreSettings":
    return StoreSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """Request gate and API behaviour."""

    debug: bool = Field(
        False,
        description="Run FastAPI in debug mode (tracebacks in 500 responses)",
    )
    api_prefix: str = Field(
        "/api/v1",
        description="Path prefix under which the gated quote API is mounted",
    )

    api_key_prefix: str = Field(
        "ani-",
        description="Literal prefix every well-formed API key starts with",
    )
    api_key_min_length: int = Field(
        60,
        description="Minimum total length of a well-formed API key",
        ge=1,
    )
    api_key_cache_enabled: bool = Field(
        True,
        description="Write confirmed-valid keys to the validity cache after a database hit",
    )
    api_key_cache_ttl_seconds: int = Field(
        3600,
        description="Lifetime of a validity cache entry in seconds",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable IP and API key rate limiting",
    )
    rate_limit_ip_requests: int = Field(
        100,
        description="Maximum requests per window for anonymous clients (per IP)",
        ge=1,
    )
    rate_limit_ip_window_seconds: int = Field(
        900,
        description="IP rate limit window size in seconds",
        ge=1,
    )
    rate_limit_key_requests: int = Field(
        1000,
        description="Maximum requests per window for authenticated clients (per API key)",
        ge=1,
    )
    rate_limit_key_window_seconds: int = Field(
        900,
        description="API key rate limit window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )
    rate_limit_fail_open: bool = Field(
        False,
        description="Allow requests when the counter store is unavailable",
    )
    trust_forwarded_for: bool = Field(
        False,
        description="Use the first X-Forwarded-For entry as the client IP",
    )

    store_timeout_seconds: float = Field(
        2.0,
        description="Upper bound for a single counter/record store call",
        gt=0,
    )
    quotes_page_size: int = Field(
        5,
        description="Number of quotes returned per page by the list endpoint",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class StoreSettings(BaseSettings):
    """Backing store locations."""

    redis_url: str | None = Field(
        None,
        description="Redis URL for the counter store; in-process store when unset",
    )
    database_url: str = Field(
        "sqlite+aiosqlite:///./anime_quotes.db",
        description="SQLAlchemy async URL of the quote/API key database",
    )
    database_echo: bool = Field(
        False,
        description="Echo SQL statements (debugging)",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """All settings groups; ``create_app`` takes one of these."""

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
