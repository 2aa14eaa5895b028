"""Application configuration using Pydantic BaseSettings."""

import json
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.constants import (
    BLOCKED_HOST_PATTERNS,
    DEFAULT_CACHE_MAX_ENTRIES,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_MAX_IMAGES,
    DEFAULT_MAX_KEYWORDS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RESPONSE_BYTES,
    DEFAULT_MIN_CONTENT_CHARS,
    DEFAULT_RATE_LIMIT_MAX_REQUESTS,
    DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
    DEFAULT_REDIS_URL,
    DEFAULT_SUMMARY_MAX_SENTENCES,
    DEFAULT_USER_AGENT,
)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _split_host_list(raw: str) -> list[str]:
    """Parse a host list given as a JSON array or a comma-separated string."""
    raw = raw.strip()
    if not raw:
        return []
    if raw.startswith("["):
        return [str(h).strip().lower() for h in json.loads(raw) if str(h).strip()]
    return [h.strip().lower() for h in raw.split(",") if h.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        # Load .env first, then .env.local (for local/test overrides)
        # Later files override earlier ones, so .env.local takes precedence
        env_file=[".env", ".env.local"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: Literal["local", "staging", "prod"] = Field(
        default="local", description="Current environment"
    )
    log_level: str = Field(default="INFO", description="Python logging level")

    # Sentry Configuration
    sentry_dsn: str | None = Field(
        default=None, description="Sentry DSN for error tracking (optional)"
    )
    sentry_traces_sample_rate: float = Field(
        default=1.0, description="Sentry traces sample rate (0.0 to 1.0)"
    )

    # Logfire Configuration
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token for observability"
    )

    # ==========================================================================
    # Fetch Configuration
    # ==========================================================================

    fetch_timeout_seconds: float = Field(
        default=DEFAULT_FETCH_TIMEOUT_SECONDS,
        gt=0,
        description="Timeout for fetching the target page (seconds)",
    )
    max_redirects: int = Field(
        default=DEFAULT_MAX_REDIRECTS,
        ge=0,
        description="Maximum redirects followed per fetch",
    )
    max_response_bytes: int = Field(
        default=DEFAULT_MAX_RESPONSE_BYTES,
        gt=0,
        description="Maximum accepted response body size (bytes)",
    )
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT, description="User-Agent sent with fetches"
    )

    # ==========================================================================
    # URL Safety
    # ==========================================================================

    allowed_hosts: str = Field(
        default="",
        description="Allowlist of host fragments (comma-separated or JSON list); empty allows all",
    )
    blocked_hosts: str = Field(
        default=",".join(BLOCKED_HOST_PATTERNS),
        description="Blocklist of host fragments (comma-separated or JSON list)",
    )

    # ==========================================================================
    # Key-Value Store, Cache and Rate Limiting
    # ==========================================================================

    store_backend: Literal["memory", "redis", "none"] = Field(
        default="memory",
        description="Backing store for cache and rate limits; 'none' disables both",
    )
    redis_url: str = Field(default=DEFAULT_REDIS_URL, description="Redis URL")
    cache_ttl_seconds: int = Field(
        default=DEFAULT_CACHE_TTL_SECONDS,
        gt=0,
        description="TTL for cached extraction results (seconds)",
    )
    cache_max_entries: int = Field(
        default=DEFAULT_CACHE_MAX_ENTRIES,
        gt=0,
        description="Maximum number of cached extraction results",
    )
    rate_limit_max_requests: int = Field(
        default=DEFAULT_RATE_LIMIT_MAX_REQUESTS,
        gt=0,
        description="Max requests per client per rate limit window",
    )
    rate_limit_window_seconds: int = Field(
        default=DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
        gt=0,
        description="Fixed rate limit window duration in seconds",
    )

    # ==========================================================================
    # Extraction Defaults
    # ==========================================================================

    min_content_chars: int = Field(
        default=DEFAULT_MIN_CONTENT_CHARS,
        ge=0,
        description="Minimum visible characters for a detected article",
    )
    max_keywords: int = Field(default=DEFAULT_MAX_KEYWORDS, ge=0)
    summary_max_sentences: int = Field(default=DEFAULT_SUMMARY_MAX_SENTENCES, ge=0)
    max_images: int = Field(default=DEFAULT_MAX_IMAGES, ge=0)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase, falling back to INFO."""
        normalized = v.upper().strip()
        if normalized not in VALID_LOG_LEVELS:
            return "INFO"
        return normalized

    def get_allowed_hosts(self) -> list[str]:
        """Return the parsed host allowlist."""
        return _split_host_list(self.allowed_hosts)

    def get_blocked_hosts(self) -> list[str]:
        """Return the parsed host blocklist."""
        return _split_host_list(self.blocked_hosts)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
