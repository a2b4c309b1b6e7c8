"""Configuration loader for DramBox.

Loads configuration from TOML files and secrets from .env files.
Environment variables can override any configuration value.
"""

import logging
import os
from pathlib import Path
from typing import Any

from drambox.config.schema import DramboxConfig, SecretsConfig

logger = logging.getLogger(__name__)

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[import-not-found,no-redef]

CONFIG_DIRS = (
    Path.home() / ".config" / "drambox",
    Path("/opt/drambox"),
    Path("/etc/drambox"),
)

# Env var -> (section, key)
ENV_MAPPINGS: dict[str, tuple[str, str]] = {
    # Server
    "SERVER_HOST": ("server", "host"),
    "SERVER_PORT": ("server", "port"),
    "SERVER_WORKERS": ("server", "workers"),
    "SERVER_DEBUG": ("server", "debug"),
    "SERVER_ENFORCE_HTTPS": ("server", "enforce_https"),
    "DEBUG": ("server", "debug"),
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    # Database
    "DATABASE_MONGODB_URL": ("database", "mongodb_url"),
    "DATABASE_MONGODB_DATABASE": ("database", "mongodb_database"),
    "MONGODB_URL": ("database", "mongodb_url"),
    "MONGODB_DATABASE": ("database", "mongodb_database"),
    # Auth
    "AUTH_ACCESS_TOKEN_EXPIRE_MINUTES": ("auth", "access_token_expire_minutes"),
    "AUTH_RATE_LIMIT_PER_MINUTE": ("auth", "auth_rate_limit_per_minute"),
    # Pours
    "POURS_BOTTLE_SIZE_OZ": ("pours", "bottle_size_oz"),
    "POURS_MAX_POUR_OZ": ("pours", "max_pour_oz"),
    "POURS_SESSION_WINDOW_HOURS": ("pours", "session_window_hours"),
    "POURS_ORPHAN_GRACE_MINUTES": ("pours", "orphan_grace_minutes"),
    "POURS_PRUNE_EMPTY_SESSIONS": ("pours", "prune_empty_sessions"),
    "POURS_MAX_WRITE_RETRIES": ("pours", "max_write_retries"),
    "POURS_RECENT_POURS_LIMIT": ("pours", "recent_pours_limit"),
    # Jobs
    "JOBS_ENABLED": ("jobs", "enabled"),
    "JOBS_INTERVAL_MINUTES": ("jobs", "interval_minutes"),
    "JOBS_CRON_RATE_LIMIT": ("jobs", "cron_rate_limit"),
    # Logging
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
    # Analytics
    "POSTHOG_ENABLED": ("analytics", "posthog_enabled"),
    "POSTHOG_HOST": ("analytics", "posthog_host"),
    "POSTHOG_DEBUG": ("analytics", "posthog_debug"),
}

INT_KEYS = {
    "port",
    "workers",
    "access_token_expire_minutes",
    "auth_rate_limit_per_minute",
    "orphan_grace_minutes",
    "max_write_retries",
    "recent_pours_limit",
    "interval_minutes",
}
FLOAT_KEYS = {"bottle_size_oz", "max_pour_oz", "session_window_hours"}
BOOL_KEYS = {
    "debug",
    "enforce_https",
    "prune_empty_sessions",
    "enabled",
    "posthog_enabled",
    "posthog_debug",
}

SECRET_KEYS = {
    "DRAMBOX_SECRET_KEY": "secret_key",
    "DRAMBOX_CRON_SECRET": "cron_secret",
    "DRAMBOX_POSTHOG_API_KEY": "posthog_api_key",
}


def get_config_search_paths() -> list[Path]:
    """Get the list of paths to search for configuration files.

    Returns paths in priority order (first found wins):
    1. ./config.toml (project root - for development)
    2. ~/.config/drambox/config.toml (user config)
    3. /opt/drambox/config.toml (production install)
    4. /etc/drambox/config.toml (system config)
    """
    return [Path.cwd() / "config.toml"] + [d / "config.toml" for d in CONFIG_DIRS]


def get_secrets_search_paths() -> list[Path]:
    """Get the list of paths to search for secrets files, same order as config."""
    return [Path.cwd() / "secrets.env"] + [d / "secrets.env" for d in CONFIG_DIRS]


def _first_existing(paths: list[Path]) -> Path | None:
    for path in paths:
        if path.exists() and path.is_file():
            logger.debug("Found file: %s", path)
            return path
    return None


def find_config_file() -> Path | None:
    """Find the first existing config file from search paths."""
    return _first_existing(get_config_search_paths())


def find_secrets_file() -> Path | None:
    """Find the first existing secrets file from search paths."""
    return _first_existing(get_secrets_search_paths())


def load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents as a dictionary."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a simple .env file into a dictionary.

    Supports KEY=value, KEY="quoted value", # comments and empty lines.
    """
    env_vars: dict[str, str] = {}

    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()

            if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
                value = value[1:-1]

            env_vars[key] = value

    return env_vars


def _convert(key: str, value: str) -> Any:
    if key in INT_KEYS:
        return int(value)
    if key in FLOAT_KEYS:
        return float(value)
    if key in BOOL_KEYS:
        return value.lower() in ("true", "1", "yes")
    return value


def apply_env_overrides(config_dict: dict[str, Any], prefix: str = "DRAMBOX") -> None:
    """Apply environment variable overrides to configuration dictionary.

    Environment variables are mapped as follows:
    - DRAMBOX_SERVER_HOST -> config_dict["server"]["host"]
    - DRAMBOX_POURS_BOTTLE_SIZE_OZ -> config_dict["pours"]["bottle_size_oz"]
    - etc.

    Note: This modifies config_dict in place.
    """
    for suffix, (section, key) in ENV_MAPPINGS.items():
        value = os.environ.get(f"{prefix}_{suffix}")
        if value is None:
            continue
        config_dict.setdefault(section, {})[key] = _convert(key, value)


def load_secrets(secrets_file: Path | None = None) -> SecretsConfig:
    """Load secrets from environment variables and optional secrets.env file.

    Environment variables take precedence over file values.
    """
    secrets_dict: dict[str, str | None] = {}

    if secrets_file is None:
        secrets_file = find_secrets_file()

    if secrets_file and secrets_file.exists():
        logger.info("Loading secrets from: %s", secrets_file)
        file_secrets = parse_env_file(secrets_file)
        for file_key, config_key in SECRET_KEYS.items():
            if file_key in file_secrets:
                secrets_dict[config_key] = file_secrets[file_key]

    for env_var, config_key in SECRET_KEYS.items():
        value = os.environ.get(env_var)
        if value:
            secrets_dict[config_key] = value

    return SecretsConfig(**secrets_dict)


def load_config(config_file: Path | None = None) -> DramboxConfig:
    """Load configuration from TOML file with environment variable overrides.

    Args:
        config_file: Optional path to config file. If not provided,
                     searches default locations.

    Returns:
        DramboxConfig instance with all settings loaded.
    """
    config_dict: dict[str, Any] = {}

    if config_file is None:
        config_file = find_config_file()

    if config_file and config_file.exists():
        logger.info("Loading config from: %s", config_file)
        config_dict = load_toml_file(config_file)
    else:
        logger.info("No config file found, using defaults with env overrides")

    apply_env_overrides(config_dict)

    return DramboxConfig(**config_dict)
