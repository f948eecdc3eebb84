"""
Logging management for the Room Relay server.

Logging is configured from the ``logging.yaml`` shipped with the package and
falls back to plain console/file handlers when that file is unavailable.
The default level depends on the ``ENVIRONMENT`` variable:

- development: DEBUG
- staging: INFO
- production: WARNING (file handlers and relay loggers are capped too)
"""

import logging
import logging.config
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "logging.yaml"

STANDARD_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers kept at WARNING whatever the environment
NOISY_LOGGERS = [
    "websockets",
    "websockets.server",
    "websockets.client",
    "asyncio",
]


class Environment(Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_env(cls) -> "Environment":
        value = os.getenv("ENVIRONMENT", "development").strip().lower()
        if value in ("prod", "production"):
            return cls.PRODUCTION
        if value in ("stage", "staging"):
            return cls.STAGING
        return cls.DEVELOPMENT

    @property
    def default_level(self) -> str:
        return _ENVIRONMENT_LEVELS[self]


_ENVIRONMENT_LEVELS = {
    Environment.DEVELOPMENT: "DEBUG",
    Environment.STAGING: "INFO",
    Environment.PRODUCTION: "WARNING",
}


class LoggingManager:
    """Loads the relay logging configuration once per process."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: dictConfig YAML file. Defaults to the packaged
                ``logging.yaml``.
        """
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._environment = Environment.from_env()
        self._yaml_config: Optional[Dict[str, Any]] = None

    def get_environment(self) -> Environment:
        return self._environment

    def is_production(self) -> bool:
        return self._environment is Environment.PRODUCTION

    def _load_yaml_config(self) -> Optional[Dict[str, Any]]:
        if self._yaml_config is None and self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    self._yaml_config = yaml.safe_load(f)
            except (yaml.YAMLError, OSError) as e:
                print(f"Warning: Failed to load YAML logging config: {e}")
        return self._yaml_config

    def _production_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Cap relay loggers and debug file handlers at the environment level."""
        level = self._environment.default_level
        config = dict(config)

        if "root" in config:
            config["root"] = {**config["root"], "level": level}

        config["loggers"] = {
            name: logger_config if name in NOISY_LOGGERS else {**logger_config, "level": level}
            for name, logger_config in config.get("loggers", {}).items()
        }

        handlers = {}
        for name, handler_config in config.get("handlers", {}).items():
            if name.startswith("file_") and handler_config.get("level") == "DEBUG":
                handler_config = {**handler_config, "level": level}
            handlers[name] = handler_config
        config["handlers"] = handlers

        return config

    def setup_logging(
        self,
        component_name: str,
        log_level: Optional[str] = None,
        log_file: Optional[str] = None,
    ) -> logging.Logger:
        """
        Configure logging and return the logger for ``component_name``.

        Args:
            component_name: Logger name, usually ``room_relay``.
            log_level: Level for the component logger. Defaults to the
                environment level.
            log_file: File written by the fallback setup. The YAML setup
                takes its file names from ``logging.yaml``.
        """
        level = (log_level or self._environment.default_level).upper()
        config = self._load_yaml_config()

        if config:
            if self.is_production():
                config = self._production_overrides(config)
            os.makedirs("logs", exist_ok=True)
            logging.config.dictConfig(config)
            logger = logging.getLogger(component_name)
            logger.setLevel(level)
        else:
            logger = self._setup_basic_logging(component_name, level, log_file)

        self._suppress_noisy_loggers()
        return logger

    def _setup_basic_logging(
        self, component_name: str, level: str, log_file: Optional[str]
    ) -> logging.Logger:
        """Console (and optional file) handlers when no YAML config is usable."""
        logger = logging.getLogger(component_name)
        logger.setLevel(level)
        logger.handlers.clear()

        formatter = logging.Formatter(
            STANDARD_FORMAT if self.is_production() else DETAILED_FORMAT,
            datefmt=DATE_FORMAT,
        )

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.WARNING if self.is_production() else logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        return logger

    def _suppress_noisy_loggers(self) -> None:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


# Global logging manager instance
_logging_manager = LoggingManager()


def setup_logging(
    component_name: str,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Set up logging for a component (convenience function)."""
    return _logging_manager.setup_logging(component_name, log_level, log_file)


def get_logger(component_name: str) -> logging.Logger:
    """Get a logger for a component."""
    return logging.getLogger(component_name)


def is_production() -> bool:
    return _logging_manager.is_production()


def get_environment() -> Environment:
    return _logging_manager.get_environment()
