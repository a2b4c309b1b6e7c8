"""Pydantic models for DramBox configuration.

These models define the structure of config.toml and secrets.env files.
"""

from typing import Literal

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000
    workers: int = 2
    debug: bool = False
    enforce_https: bool = False
    rate_limit_per_minute: int = 60
    # CORS configuration - empty list means same-origin only
    cors_origins: list[str] = []


class DatabaseConfig(BaseModel):
    """MongoDB database configuration."""

    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "drambox"
    # Connection pool settings
    min_pool_size: int = 10
    max_pool_size: int = 100


class AuthConfig(BaseModel):
    """Authentication configuration."""

    access_token_expire_minutes: int = 120
    auth_rate_limit_per_minute: int = 30


class PoursConfig(BaseModel):
    """Pour tracking and fill-level ledger configuration."""

    # 750 mL expressed in US fluid ounces
    bottle_size_oz: float = Field(default=25.36, gt=0)
    max_pour_oz: float = Field(default=10.0, gt=0)
    session_window_hours: float = Field(default=4.0, gt=0)
    orphan_grace_minutes: int = Field(default=5, ge=0)
    prune_empty_sessions: bool = False
    max_write_retries: int = Field(default=3, ge=1)
    recent_pours_limit: int = Field(default=10, ge=0)


class JobsConfig(BaseModel):
    """Background job configuration (orphan sweep, community ratings)."""

    enabled: bool = False
    interval_minutes: int = Field(default=1440, ge=1)
    cron_rate_limit: str = "10/minute"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class AnalyticsConfig(BaseModel):
    """Analytics configuration."""

    posthog_enabled: bool = False
    posthog_host: str = "https://eu.posthog.com"
    posthog_debug: bool = False


class DramboxConfig(BaseModel):
    """Main DramBox configuration loaded from config.toml."""

    app_name: str = "DramBox"
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    pours: PoursConfig = Field(default_factory=PoursConfig)
    jobs: JobsConfig = Field(default_factory=JobsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)


class SecretsConfig(BaseModel):
    """Secrets loaded from secrets.env file.

    These are sensitive values that should not be stored in config.toml.
    """

    secret_key: str | None = None
    cron_secret: str | None = None
    posthog_api_key: str | None = None
