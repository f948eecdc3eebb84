"""
Configuration management for the Room Relay server.

Settings come from environment variables, optionally seeded from a ``.env``
file, and are validated into a :class:`RelayConfig`.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from ..core.types import (
    DEFAULT_CLIENT_ID_LENGTH,
    DEFAULT_HOST,
    DEFAULT_MAX_CONNECTIONS,
    DEFAULT_MAX_MESSAGE_SIZE,
    DEFAULT_PING_INTERVAL,
    DEFAULT_PORT,
    DEFAULT_SEND_TIMEOUT,
    ENV_LOG_LEVEL,
    ENV_RELAY_CLIENT_ID_LENGTH,
    ENV_RELAY_HOST,
    ENV_RELAY_MAX_CONNECTIONS,
    ENV_RELAY_MAX_MESSAGE_SIZE,
    ENV_RELAY_PING_INTERVAL,
    ENV_RELAY_PORT,
    ENV_RELAY_SEND_TIMEOUT,
    MAX_CLIENT_ID_LENGTH,
    MIN_CLIENT_ID_LENGTH,
)
from ..infrastructure.exceptions import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RelayConfig:
    """Runtime settings for the relay server."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    ping_interval: int = DEFAULT_PING_INTERVAL
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE
    send_timeout: float = DEFAULT_SEND_TIMEOUT
    client_id_length: int = DEFAULT_CLIENT_ID_LENGTH
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate ranges after construction."""
        if not 0 <= self.port <= 65535:
            raise ValidationError(f"port must be between 0 and 65535, got {self.port}")
        if self.ping_interval < 0:
            raise ValidationError(
                f"ping_interval must not be negative, got {self.ping_interval}"
            )
        if self.max_connections < 1:
            raise ValidationError(
                f"max_connections must be at least 1, got {self.max_connections}"
            )
        if self.max_message_size < 1:
            raise ValidationError(
                f"max_message_size must be at least 1, got {self.max_message_size}"
            )
        if self.send_timeout <= 0:
            raise ValidationError(
                f"send_timeout must be positive, got {self.send_timeout}"
            )
        if not MIN_CLIENT_ID_LENGTH <= self.client_id_length <= MAX_CLIENT_ID_LENGTH:
            raise ValidationError(
                f"client_id_length must be between {MIN_CLIENT_ID_LENGTH} and "
                f"{MAX_CLIENT_ID_LENGTH}, got {self.client_id_length}"
            )
        self.log_level = self.log_level.upper()
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValidationError(f"Invalid log level: {self.log_level}")


class RelayConfigManager:
    """Loads :class:`RelayConfig` from the environment."""

    def __init__(self, env_file_path: str = ".env"):
        """
        Initialize configuration manager.

        Args:
            env_file_path: Path to environment file
        """
        self.env_file_path = env_file_path
        self._load_environment()

    def _load_environment(self):
        """Load environment variables from file."""
        if os.path.exists(self.env_file_path):
            load_dotenv(dotenv_path=self.env_file_path)
            logger.info(f"Loaded environment from {self.env_file_path}")
        else:
            logger.debug(
                f"Environment file {self.env_file_path} not found, using process environment"
            )

    def _get_optional_env(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = os.getenv(key)
        if value is None or value.strip() == "":
            return default
        return value.strip()

    def _get_int_env(self, key: str, default: int) -> int:
        """
        Get an integer environment variable.

        Raises:
            ConfigurationError: If the value is not an integer
        """
        value = self._get_optional_env(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(f"{key} must be an integer, got {value!r}") from e

    def _get_float_env(self, key: str, default: float) -> float:
        value = self._get_optional_env(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError as e:
            raise ConfigurationError(f"{key} must be a number, got {value!r}") from e

    def get_config(self) -> RelayConfig:
        """
        Build the relay configuration.

        Raises:
            ConfigurationError: If a value is malformed or out of range
        """
        try:
            config = RelayConfig(
                host=self._get_optional_env(ENV_RELAY_HOST, DEFAULT_HOST),
                port=self._get_int_env(ENV_RELAY_PORT, DEFAULT_PORT),
                ping_interval=self._get_int_env(
                    ENV_RELAY_PING_INTERVAL, DEFAULT_PING_INTERVAL
                ),
                max_connections=self._get_int_env(
                    ENV_RELAY_MAX_CONNECTIONS, DEFAULT_MAX_CONNECTIONS
                ),
                max_message_size=self._get_int_env(
                    ENV_RELAY_MAX_MESSAGE_SIZE, DEFAULT_MAX_MESSAGE_SIZE
                ),
                send_timeout=self._get_float_env(
                    ENV_RELAY_SEND_TIMEOUT, DEFAULT_SEND_TIMEOUT
                ),
                client_id_length=self._get_int_env(
                    ENV_RELAY_CLIENT_ID_LENGTH, DEFAULT_CLIENT_ID_LENGTH
                ),
                log_level=self._get_optional_env(ENV_LOG_LEVEL, "INFO"),
            )
            logger.info("Configuration loaded successfully")
            return config

        except ConfigurationError as e:
            logger.error(f"Failed to load configuration: {e}")
            raise
