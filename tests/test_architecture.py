#!/usr/bin/env python3
"""
Architecture tests for Room Relay.

Verifies that the package surfaces import cleanly and that the ambient
infrastructure (logging, exceptions) behaves as the rest of the code expects.
"""

import logging
from pathlib import Path

import pytest


class TestArchitectureImports:
    """Test that all modules can be imported correctly."""

    def test_main_package_import(self):
        import room_relay

        assert room_relay.__version__ == "1.0.0"
        for name in room_relay.__all__:
            assert hasattr(room_relay, name)

    def test_core_imports(self):
        from room_relay.core import RoomRegistry, ChatMessage, chat_payload, server_notice
        from room_relay.core.connection_manager import RoomRegistry as RoomRegistryClass
        from room_relay.core.messages import ChatMessage as ChatMessageClass

        assert RoomRegistry is RoomRegistryClass
        assert ChatMessage is ChatMessageClass
        assert callable(chat_payload)
        assert callable(server_notice)

    def test_config_imports(self):
        from room_relay.config import RelayConfig, RelayConfigManager
        from room_relay.config.settings import RelayConfig as RelayConfigClass

        assert RelayConfig is RelayConfigClass
        assert RelayConfigManager is not None

    def test_server_imports(self):
        from room_relay.websockets.server import RoomRelayServer
        from room_relay.websockets.server.relay_server import main, run
        from room_relay.websockets.server.process_messages import (
            ChatMessageHandler,
            ConnectionUtils,
        )

        assert RoomRelayServer is not None
        assert callable(main)
        assert callable(run)
        assert ChatMessageHandler is not None
        assert ConnectionUtils is not None


class TestExceptionHierarchy:

    def test_everything_derives_from_base(self):
        from room_relay.infrastructure.exceptions import (
            RoomRelayError,
            ConfigurationError,
            ValidationError,
            MessageParseError,
            NetworkError,
            WebSocketError,
            DeliveryError,
        )

        assert issubclass(ValidationError, ConfigurationError)
        assert issubclass(DeliveryError, WebSocketError)
        assert issubclass(WebSocketError, NetworkError)
        for error in (ConfigurationError, MessageParseError, NetworkError):
            assert issubclass(error, RoomRelayError)


class TestLoggingManager:

    def test_environment_detection(self, monkeypatch):
        from room_relay.infrastructure.logging_manager import Environment, LoggingManager

        monkeypatch.setenv("ENVIRONMENT", "production")
        manager = LoggingManager()

        assert manager.get_environment() is Environment.PRODUCTION
        assert manager.is_production()

    def test_basic_fallback_without_yaml(self, tmp_path, monkeypatch):
        from room_relay.infrastructure.logging_manager import LoggingManager

        monkeypatch.setenv("ENVIRONMENT", "development")
        manager = LoggingManager(config_path=tmp_path / "missing.yaml")
        logger = manager.setup_logging("room_relay.fallback_test", log_level="DEBUG")

        assert logger.level == logging.DEBUG
        assert logger.handlers
        assert logging.getLogger("websockets").level == logging.WARNING

    @pytest.mark.parametrize("name", ["room_relay", "room_relay.core"])
    def test_get_logger_returns_named_logger(self, name):
        from room_relay.infrastructure import get_logger

        assert get_logger(name).name == name


class TestPackaging:

    PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"

    def test_runtime_dependencies_declared(self):
        text = self.PYPROJECT.read_text()
        for requirement in ('"websockets>=', '"python-dotenv>=', '"PyYAML>='):
            assert requirement in text

    def test_no_readme_entry(self):
        project_lines = [
            line.strip() for line in self.PYPROJECT.read_text().splitlines()
        ]
        assert not any(line.startswith("readme") for line in project_lines)
