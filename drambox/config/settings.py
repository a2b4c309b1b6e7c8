"""Global settings instance for DramBox.

This module provides a unified settings object that combines:
- Configuration from config.toml
- Secrets from secrets.env
- Environment variable overrides

The settings object provides a flat interface over the structured
configuration sections.
"""

import logging
import secrets as secrets_module

from drambox.config.loader import load_config, load_secrets
from drambox.config.schema import DramboxConfig, SecretsConfig

logger = logging.getLogger(__name__)


class Settings:
    """Unified settings object combining config and secrets."""

    def __init__(
        self,
        config: DramboxConfig | None = None,
        secrets: SecretsConfig | None = None,
    ):
        """Initialize settings.

        Args:
            config: Optional DramboxConfig instance. If not provided, loads from file.
            secrets: Optional SecretsConfig instance. If not provided, loads from file.
        """
        self._config = config or load_config()
        self._secrets = secrets or load_secrets()

        if not self._secrets.secret_key:
            self._secrets.secret_key = secrets_module.token_urlsafe(32)
            logger.warning(
                "SECURITY WARNING: No secret key configured. "
                "A random secret key has been generated. JWT tokens will be invalidated "
                "when the server restarts. Set DRAMBOX_SECRET_KEY for production use."
            )

    @property
    def config(self) -> DramboxConfig:
        """Get the full configuration object."""
        return self._config

    @property
    def secrets(self) -> SecretsConfig:
        """Get the secrets configuration object."""
        return self._secrets

    # Application
    @property
    def app_name(self) -> str:
        return self._config.app_name

    @property
    def debug(self) -> bool:
        return self._config.server.debug

    # Server
    @property
    def host(self) -> str:
        return self._config.server.host

    @property
    def port(self) -> int:
        return self._config.server.port

    @property
    def workers(self) -> int:
        return self._config.server.workers

    @property
    def enforce_https(self) -> bool:
        return self._config.server.enforce_https

    @property
    def rate_limit_per_minute(self) -> int:
        return self._config.server.rate_limit_per_minute

    @property
    def cors_origins(self) -> list[str]:
        return self._config.server.cors_origins

    # Database
    @property
    def mongodb_url(self) -> str:
        return self._config.database.mongodb_url

    @property
    def mongodb_database(self) -> str:
        return self._config.database.mongodb_database

    @property
    def min_pool_size(self) -> int:
        return self._config.database.min_pool_size

    @property
    def max_pool_size(self) -> int:
        return self._config.database.max_pool_size

    # Auth
    @property
    def access_token_expire_minutes(self) -> int:
        return self._config.auth.access_token_expire_minutes

    @property
    def auth_rate_limit_per_minute(self) -> int:
        return self._config.auth.auth_rate_limit_per_minute

    # Pours
    @property
    def bottle_size_oz(self) -> float:
        return self._config.pours.bottle_size_oz

    @property
    def max_pour_oz(self) -> float:
        return self._config.pours.max_pour_oz

    @property
    def session_window_hours(self) -> float:
        return self._config.pours.session_window_hours

    @property
    def orphan_grace_minutes(self) -> int:
        return self._config.pours.orphan_grace_minutes

    @property
    def prune_empty_sessions(self) -> bool:
        return self._config.pours.prune_empty_sessions

    @property
    def max_write_retries(self) -> int:
        return self._config.pours.max_write_retries

    @property
    def recent_pours_limit(self) -> int:
        return self._config.pours.recent_pours_limit

    # Jobs
    @property
    def jobs_enabled(self) -> bool:
        return self._config.jobs.enabled

    @property
    def jobs_interval_minutes(self) -> int:
        return self._config.jobs.interval_minutes

    @property
    def cron_rate_limit(self) -> str:
        return self._config.jobs.cron_rate_limit

    # Logging
    @property
    def log_level(self) -> str:
        return self._config.logging.level

    @property
    def log_format(self) -> str:
        return self._config.logging.format

    # Analytics
    @property
    def posthog_enabled(self) -> bool:
        return self._config.analytics.posthog_enabled

    @property
    def posthog_host(self) -> str:
        return self._config.analytics.posthog_host

    @property
    def posthog_debug(self) -> bool:
        return self._config.analytics.posthog_debug

    # Secrets
    @property
    def secret_key(self) -> str:
        # Never None after __init__
        return self._secrets.secret_key or ""

    @property
    def cron_secret(self) -> str | None:
        return self._secrets.cron_secret

    @property
    def posthog_api_key(self) -> str | None:
        return self._secrets.posthog_api_key


# Global settings instance - lazily initialized
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance.

    The settings are loaded once and cached for subsequent calls.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance.

    This is primarily useful for testing to reload configuration.
    """
    global _settings
    _settings = None


def configure_logging() -> None:
    """Configure root logging from the [logging] section."""
    current = get_settings()
    logging.basicConfig(level=current.log_level, format=current.log_format)


class _SettingsProxy:
    """Proxy object that lazily loads settings on first access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)

    def __repr__(self) -> str:
        return repr(get_settings())


settings = _SettingsProxy()
