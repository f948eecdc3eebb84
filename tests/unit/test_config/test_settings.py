"""
Unit tests for relay configuration loading.
"""

import pytest

from room_relay.config import RelayConfig, RelayConfigManager
from room_relay.infrastructure.exceptions import ConfigurationError, ValidationError

RELAY_ENV_VARS = [
    "RELAY_HOST",
    "RELAY_PORT",
    "RELAY_PING_INTERVAL",
    "RELAY_MAX_CONNECTIONS",
    "RELAY_MAX_MESSAGE_SIZE",
    "RELAY_SEND_TIMEOUT",
    "RELAY_CLIENT_ID_LENGTH",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Unset relay variables and restore them (or their absence) afterwards."""
    for name in RELAY_ENV_VARS:
        # setenv first so monkeypatch also removes values a .env file loads
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture
def missing_env_file(tmp_path):
    return str(tmp_path / "missing.env")


class TestRelayConfigManager:

    @pytest.mark.unit
    def test_defaults(self, clean_env, missing_env_file):
        config = RelayConfigManager(missing_env_file).get_config()

        assert config == RelayConfig()
        assert config.host == "localhost"
        assert config.port == 8765
        assert config.send_timeout == 5.0

    @pytest.mark.unit
    def test_environment_overrides(self, clean_env, missing_env_file):
        clean_env.setenv("RELAY_HOST", "0.0.0.0")
        clean_env.setenv("RELAY_PORT", "9001")
        clean_env.setenv("RELAY_PING_INTERVAL", "0")
        clean_env.setenv("RELAY_SEND_TIMEOUT", "1.5")
        clean_env.setenv("RELAY_CLIENT_ID_LENGTH", "8")
        clean_env.setenv("LOG_LEVEL", "warning")

        config = RelayConfigManager(missing_env_file).get_config()

        assert config.host == "0.0.0.0"
        assert config.port == 9001
        assert config.ping_interval == 0
        assert config.send_timeout == 1.5
        assert config.client_id_length == 8
        assert config.log_level == "WARNING"

    @pytest.mark.unit
    def test_env_file_is_loaded(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("RELAY_PORT=9100\nRELAY_MAX_CONNECTIONS=7\n")

        config = RelayConfigManager(str(env_file)).get_config()

        assert config.port == 9100
        assert config.max_connections == 7

    @pytest.mark.unit
    def test_blank_values_fall_back_to_defaults(self, clean_env, missing_env_file):
        clean_env.setenv("RELAY_PORT", "  ")
        assert RelayConfigManager(missing_env_file).get_config().port == 8765

    @pytest.mark.unit
    def test_non_integer_port(self, clean_env, missing_env_file):
        clean_env.setenv("RELAY_PORT", "eighty")
        with pytest.raises(ConfigurationError, match="RELAY_PORT"):
            RelayConfigManager(missing_env_file).get_config()

    @pytest.mark.unit
    def test_non_numeric_timeout(self, clean_env, missing_env_file):
        clean_env.setenv("RELAY_SEND_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="RELAY_SEND_TIMEOUT"):
            RelayConfigManager(missing_env_file).get_config()

    @pytest.mark.unit
    def test_out_of_range_is_validation_error(self, clean_env, missing_env_file):
        clean_env.setenv("RELAY_CLIENT_ID_LENGTH", "2")
        with pytest.raises(ValidationError, match="client_id_length"):
            RelayConfigManager(missing_env_file).get_config()


class TestRelayConfigValidation:

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"port": 70000},
            {"ping_interval": -1},
            {"max_connections": 0},
            {"max_message_size": 0},
            {"send_timeout": 0},
            {"client_id_length": 64},
            {"log_level": "LOUD"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            RelayConfig(**kwargs)

    @pytest.mark.unit
    def test_log_level_normalized(self):
        assert RelayConfig(log_level="debug").log_level == "DEBUG"
