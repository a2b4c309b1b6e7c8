"""DramBox configuration module.

This module provides TOML-based configuration with environment variable overrides.

Configuration is loaded from the following locations (in order of priority):
1. Environment variables (highest priority)
2. ./config.toml (project root - for development)
3. ~/.config/drambox/config.toml (user config)
4. /opt/drambox/config.toml (production install)
5. /etc/drambox/config.toml (system config)

Secrets are loaded from secrets.env files in the same directories.
"""

from drambox.config.schema import (
    AnalyticsConfig,
    AuthConfig,
    DatabaseConfig,
    DramboxConfig,
    JobsConfig,
    LoggingConfig,
    PoursConfig,
    SecretsConfig,
    ServerConfig,
)
from drambox.config.settings import configure_logging, get_settings, reset_settings, settings

__all__ = [
    "AnalyticsConfig",
    "AuthConfig",
    "DatabaseConfig",
    "DramboxConfig",
    "JobsConfig",
    "LoggingConfig",
    "PoursConfig",
    "SecretsConfig",
    "ServerConfig",
    "configure_logging",
    "get_settings",
    "reset_settings",
    "settings",
]
