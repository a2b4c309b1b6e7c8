"""Tests for the DramBox configuration system."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from drambox.config.loader import (
    apply_env_overrides,
    find_config_file,
    get_config_search_paths,
    get_secrets_search_paths,
    load_config,
    load_secrets,
    load_toml_file,
    parse_env_file,
)
from drambox.config.schema import (
    AuthConfig,
    DatabaseConfig,
    DramboxConfig,
    JobsConfig,
    PoursConfig,
    SecretsConfig,
    ServerConfig,
)
from drambox.config.settings import Settings, get_settings, reset_settings


class TestSchemaDefaults:
    """Test default values in schema models."""

    def test_server_config_defaults(self):
        config = ServerConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 8000
        assert config.debug is False
        assert config.cors_origins == []

    def test_database_config_defaults(self):
        config = DatabaseConfig()
        assert config.mongodb_url == "mongodb://localhost:27017"
        assert config.mongodb_database == "drambox"

    def test_auth_config_defaults(self):
        config = AuthConfig()
        assert config.access_token_expire_minutes == 120
        assert config.auth_rate_limit_per_minute == 30

    def test_pours_config_defaults(self):
        """Test PoursConfig has the ledger defaults."""
        config = PoursConfig()
        assert config.bottle_size_oz == pytest.approx(25.36)
        assert config.max_pour_oz == 10
        assert config.session_window_hours == 4
        assert config.orphan_grace_minutes == 5
        assert config.prune_empty_sessions is False
        assert config.max_write_retries == 3
        assert config.recent_pours_limit == 10

    def test_pours_config_rejects_zero_bottle(self):
        with pytest.raises(ValueError):
            PoursConfig(bottle_size_oz=0)

    def test_jobs_config_defaults(self):
        config = JobsConfig()
        assert config.enabled is False
        assert config.interval_minutes == 1440

    def test_secrets_config_defaults(self):
        config = SecretsConfig()
        assert config.secret_key is None
        assert config.cron_secret is None
        assert config.posthog_api_key is None


class TestConfigSearchPaths:
    """Test configuration file search paths."""

    def test_config_search_paths_order(self):
        paths = get_config_search_paths()
        assert paths == [
            Path.cwd() / "config.toml",
            Path.home() / ".config" / "drambox" / "config.toml",
            Path("/opt/drambox/config.toml"),
            Path("/etc/drambox/config.toml"),
        ]

    def test_secrets_search_paths_order(self):
        paths = get_secrets_search_paths()
        assert paths[0] == Path.cwd() / "secrets.env"
        assert paths[-1] == Path("/etc/drambox/secrets.env")

    def test_find_config_file_in_cwd(self, tmp_path, monkeypatch):
        (tmp_path / "config.toml").write_text('app_name = "Here"\n')
        monkeypatch.chdir(tmp_path)
        assert find_config_file() == tmp_path / "config.toml"


class TestTomlLoading:
    """Test TOML file loading."""

    def test_load_toml_file(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            """
app_name = "TestApp"

[pours]
bottle_size_oz = 33.8
prune_empty_sessions = true
"""
        )

        data = load_toml_file(config_file)
        assert data["app_name"] == "TestApp"
        assert data["pours"]["bottle_size_oz"] == 33.8
        assert data["pours"]["prune_empty_sessions"] is True

    def test_load_config_from_file(self, tmp_path):
        config_file = tmp_path / "config.toml"
        config_file.write_text(
            """
[pours]
session_window_hours = 6

[jobs]
enabled = true
interval_minutes = 60
"""
        )

        config = load_config(config_file)
        assert config.pours.session_window_hours == 6
        assert config.jobs.enabled is True
        assert config.jobs.interval_minutes == 60
        # Defaults still apply
        assert config.pours.max_pour_oz == 10
        assert config.database.mongodb_url == "mongodb://localhost:27017"


class TestEnvFileParsing:
    """Test .env file parsing."""

    def test_parse_env_file(self, tmp_path):
        env_file = tmp_path / "secrets.env"
        env_file.write_text(
            """
# comment
DRAMBOX_SECRET_KEY=my-secret-key
DRAMBOX_CRON_SECRET="quoted secret"

KEY3='single'
"""
        )

        result = parse_env_file(env_file)
        assert result == {
            "DRAMBOX_SECRET_KEY": "my-secret-key",
            "DRAMBOX_CRON_SECRET": "quoted secret",
            "KEY3": "single",
        }


class TestEnvOverrides:
    """Test environment variable overrides."""

    def test_apply_server_overrides(self):
        config_dict = {}
        with patch.dict(os.environ, {"DRAMBOX_HOST": "0.0.0.0", "DRAMBOX_PORT": "3000"}):
            apply_env_overrides(config_dict)

        assert config_dict["server"]["host"] == "0.0.0.0"
        assert config_dict["server"]["port"] == 3000

    def test_apply_pours_overrides(self):
        config_dict = {}
        with patch.dict(
            os.environ,
            {
                "DRAMBOX_POURS_BOTTLE_SIZE_OZ": "33.8",
                "DRAMBOX_POURS_MAX_WRITE_RETRIES": "5",
                "DRAMBOX_POURS_PRUNE_EMPTY_SESSIONS": "yes",
            },
        ):
            apply_env_overrides(config_dict)

        assert config_dict["pours"] == {
            "bottle_size_oz": 33.8,
            "max_write_retries": 5,
            "prune_empty_sessions": True,
        }

    def test_apply_boolean_override_false(self):
        config_dict = {"jobs": {"enabled": True}}
        with patch.dict(os.environ, {"DRAMBOX_JOBS_ENABLED": "false"}):
            apply_env_overrides(config_dict)

        assert config_dict["jobs"]["enabled"] is False


class TestSecretsLoading:
    """Test secrets loading."""

    def test_load_secrets_from_file(self, tmp_path):
        secrets_file = tmp_path / "secrets.env"
        secrets_file.write_text("DRAMBOX_CRON_SECRET=from-file\nDRAMBOX_POSTHOG_API_KEY=phc_123\n")

        with patch.dict(os.environ, {}, clear=True):
            secrets = load_secrets(secrets_file)

        assert secrets.cron_secret == "from-file"
        assert secrets.posthog_api_key == "phc_123"

    def test_load_secrets_env_override(self, tmp_path):
        secrets_file = tmp_path / "secrets.env"
        secrets_file.write_text("DRAMBOX_SECRET_KEY=file-secret-key\n")

        with patch.dict(os.environ, {"DRAMBOX_SECRET_KEY": "env-secret-key"}):
            secrets = load_secrets(secrets_file)

        assert secrets.secret_key == "env-secret-key"


class TestSettings:
    """Test the Settings class."""

    def teardown_method(self):
        reset_settings()

    def test_settings_generates_secret_key(self):
        settings = Settings(config=DramboxConfig(), secrets=SecretsConfig())
        assert settings.secret_key is not None
        assert len(settings.secret_key) > 20

    def test_settings_property_accessors(self):
        config = DramboxConfig(
            app_name="TestApp",
            server=ServerConfig(host="0.0.0.0", port=9000),
            database=DatabaseConfig(mongodb_database="testdb"),
            pours=PoursConfig(bottle_size_oz=33.8, session_window_hours=2),
            jobs=JobsConfig(cron_rate_limit="2/minute"),
        )
        secrets = SecretsConfig(secret_key="test-key", cron_secret="cron")
        settings = Settings(config=config, secrets=secrets)

        assert settings.app_name == "TestApp"
        assert settings.host == "0.0.0.0"
        assert settings.port == 9000
        assert settings.mongodb_database == "testdb"
        assert settings.bottle_size_oz == 33.8
        assert settings.session_window_hours == 2
        assert settings.cron_rate_limit == "2/minute"
        assert settings.secret_key == "test-key"
        assert settings.cron_secret == "cron"

    def test_get_settings_singleton(self):
        reset_settings()
        assert get_settings() is get_settings()

    def test_reset_settings_clears_cache(self):
        reset_settings()
        s1 = get_settings()
        reset_settings()
        assert get_settings() is not s1
