"""Application settings with Pydantic validation and environment loading."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "Domain Watchdog"
    app_version: str = "1.0.0"
    debug: bool = Field(
        default=False, description="Enable debug mode (disable in production)"
    )
    environment: str = Field(
        default="production",
        description="Environment: development, staging, production",
    )
    user_agent: str = Field(
        default="DomainWatchdog/1.0 (+https://github.com/maelgangloff/domain-watchdog)",
        description="User-Agent sent to RDAP servers and directory sources",
    )

    # Watch trigger scheduling
    watch_refresh_interval_days: int = Field(
        default=7, ge=1, le=90, description="Base re-query cadence for tracked domains"
    )
    close_watch_window_days: int = Field(
        default=30,
        ge=0,
        le=365,
        description="Domains expiring within this many days (either side of now) are watched closely",
    )
    close_watch_min_interval_hours: int = Field(
        default=24,
        ge=1,
        description="Minimum age of the last refresh before a closely watched domain is re-queried",
    )
    watch_max_concurrency: int = Field(
        default=5, ge=1, le=50, description="Concurrent domain lookups per watchlist"
    )

    # RDAP
    rdap_timeout_seconds: float = Field(
        default=15.0, gt=0, le=120, description="Timeout for a single RDAP query"
    )
    notification_timeout_seconds: float = Field(
        default=30.0, gt=0, le=300, description="Timeout for a single notification send"
    )

    # Directory sources
    iana_tld_list_url: str = Field(
        default="https://data.iana.org/TLD/tlds-alpha-by-domain.txt",
        description="IANA list of all delegated TLDs",
    )
    icann_gtld_list_url: str = Field(
        default="https://www.icann.org/resources/registries/gtlds/v2/gtlds.json",
        description="ICANN list of generic TLDs and their registry operators",
    )
    rdap_bootstrap_url: str = Field(
        default="https://data.iana.org/rdap/dns.json",
        description="IANA RDAP bootstrap file (TLD -> RDAP base URLs)",
    )
    directory_fetch_timeout_seconds: float = Field(default=60.0, gt=0, le=600)
    directory_fetch_attempts: int = Field(
        default=3, ge=1, le=10, description="Attempts per directory source on transport errors"
    )

    # Limited mode
    limited_features: bool = Field(
        default=False, description="Enforce per-user watchlist quotas and domain dedup"
    )
    limit_max_watchlist: int = Field(default=10, ge=1)
    limit_max_watchlist_domains: int = Field(default=10, ge=1)

    # Valkey (Redis-compatible)
    valkey_url: str = Field(
        default="redis://valkey:6379/0", description="Valkey connection URL"
    )
    valkey_max_connections: int = Field(default=10, ge=1, le=100)

    # Celery
    celery_broker_url: Optional[str] = Field(
        default=None, description="Celery broker URL (defaults to valkey_url)"
    )
    celery_result_backend: Optional[str] = Field(default=None)
    scheduler_timezone: str = Field(default="UTC", description="Scheduler timezone")
    dependencies_factory: Optional[str] = Field(
        default=None,
        description="Import path (module:callable) returning the worker Dependencies; "
        "in-memory repositories are used when unset",
    )

    # Notifications
    notification_sender_name: str = Field(default="Domain Watchdog")

    # Logging
    log_level: str = Field(
        default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR"
    )
    log_format: str = Field(default="json", description="Log format: json or text")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower = v.lower()
        if lower not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return lower

    @property
    def broker_url(self) -> str:
        return self.celery_broker_url or self.valkey_url

    @property
    def result_backend(self) -> str:
        return self.celery_result_backend or self.broker_url


@lru_cache
def get_settings() -> Settings:
    """Cached settings factory."""
    return Settings()


settings = get_settings()
