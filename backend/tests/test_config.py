"""
Tests for the workshop and Valkey configuration loaders.
"""

import pytest
from unittest.mock import patch

from orm_workshop.cache import ValkeyConfig, ValkeyConfigurationError
from orm_workshop.utils import config as config_module
from orm_workshop.utils.config import WorkshopConfig, get_config, load_config, validate_required_settings


class TestWorkshopConfig:
    """Test WorkshopConfig defaults and validation."""

    def test_defaults(self):
        """Test the defaults point at local SQLite and Valkey."""
        config = WorkshopConfig()
        assert config.database_url == "sqlite:///orm_workshop.db"
        assert config.async_database_url is None
        assert "{tenant}" in config.tenant_database_url
        assert config.valkey_port == 6379
        assert config.write_behind_batch_size == 100

    def test_log_level_is_normalized(self):
        """Test log levels are upper-cased."""
        assert WorkshopConfig(workshop_log_level="debug").workshop_log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        """Test an unknown log level fails validation."""
        with pytest.raises(ValueError):
            WorkshopConfig(workshop_log_level="chatty")

    def test_empty_async_url_means_derived(self):
        """Test an empty async URL is treated as unset."""
        assert WorkshopConfig(async_database_url="").async_database_url is None

    def test_load_config_from_env(self, tmp_path):
        """Test environment variables override the defaults."""
        with patch.dict("os.environ", {
            "DATABASE_URL": "sqlite:///other.db",
            "VALKEY_HOST": "cache-host",
            "VALKEY_PORT": "6380",
            "CACHE_ENABLED": "false",
            "WRITE_BEHIND_BATCH_SIZE": "50",
        }):
            config = load_config(str(tmp_path / "missing.env"))

        assert config.database_url == "sqlite:///other.db"
        assert config.valkey_host == "cache-host"
        assert config.valkey_port == 6380
        assert config.cache_enabled is False
        assert config.write_behind_batch_size == 50

    def test_load_config_rejects_bad_values(self, tmp_path):
        """Test invalid environment values surface as ValueError."""
        with patch.dict("os.environ", {"VALKEY_PORT": "70000"}):
            with pytest.raises(ValueError, match="Configuration validation failed"):
                load_config(str(tmp_path / "missing.env"))

    def test_validate_required_settings(self):
        """Test the cache needs a host only when enabled."""
        validate_required_settings(WorkshopConfig(valkey_host="", cache_enabled=False))
        with pytest.raises(ValueError, match="VALKEY_HOST"):
            validate_required_settings(WorkshopConfig(valkey_host="", cache_enabled=True))


class TestValkeyConfig:
    """Test Valkey configuration functionality."""

    def test_config_from_workshop_config(self):
        """Test the Valkey section is copied from WorkshopConfig."""
        config = ValkeyConfig.from_workshop_config(
            WorkshopConfig(valkey_host="valkey", valkey_port=6390, valkey_password="secret")
        )
        assert config.host == "valkey"
        assert config.port == 6390
        assert config.password == "secret"

    def test_password_is_masked(self):
        """Test the password never shows up in the string form."""
        config = ValkeyConfig(host="localhost", password="secret")
        assert "secret" not in str(config)

    def test_invalid_port_rejected(self):
        """Test validation catches an out-of-range port."""
        with pytest.raises(ValkeyConfigurationError):
            ValkeyConfig(port=0).validate()

    def test_config_from_env(self):
        """Test VALKEY_* variables are read."""
        with patch.dict("os.environ", {"VALKEY_HOST": "cache-host", "VALKEY_PORT": "6390", "VALKEY_DATABASE": "2"}):
            config = ValkeyConfig.from_env()
        assert (config.host, config.port, config.database) == ("cache-host", 6390, 2)

    def test_env_flags_and_pool_kwargs(self):
        """Test boolean variables and the arguments handed to the connection pool."""
        with patch.dict("os.environ", {"VALKEY_RETRY_ON_TIMEOUT": "no", "VALKEY_HEALTH_CHECK_INTERVAL": "5"}):
            config = ValkeyConfig.from_env()
        assert config.retry_on_timeout is False
        assert config.health_check_interval == 5

        kwargs = config.to_connection_pool_kwargs()
        assert kwargs["decode_responses"] is True
        assert kwargs["max_connections"] == 10
        assert "password" not in kwargs


class TestGlobalConfig:
    """Test the process-wide configuration."""

    def test_get_config_is_cached(self, monkeypatch, tmp_path):
        """Test the configuration is loaded once."""
        monkeypatch.setattr(config_module, "_config", None)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("API_PORT", "9000")

        first = get_config()
        monkeypatch.setenv("API_PORT", "9001")
        assert get_config() is first
        assert first.api_port == 9000
