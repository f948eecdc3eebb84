"""
Pytest configuration and shared fixtures for the Room Relay test suite.

This module provides common fixtures and configuration for all tests.
"""

import json
from typing import Any, Dict, List

import pytest
from unittest.mock import AsyncMock, MagicMock

from room_relay.config.settings import RelayConfig
from room_relay.core import RoomRegistry


@pytest.fixture
def mock_config():
    """Create a configuration suitable for tests."""
    return RelayConfig(
        host="127.0.0.1",
        port=0,
        ping_interval=0,
        max_connections=10,
        send_timeout=0.5,
        client_id_length=12,
        log_level="DEBUG",
    )


@pytest.fixture
def make_websocket():
    """Factory for mock WebSocket connections."""
    counter = {"n": 0}

    def _make(name: str = None):
        counter["n"] += 1
        websocket = MagicMock(name=name or f"ws{counter['n']}")
        websocket.remote_address = ("127.0.0.1", 50000 + counter["n"])
        websocket.send = AsyncMock()
        websocket.close = AsyncMock()
        websocket.ping = AsyncMock()
        return websocket

    return _make


@pytest.fixture
def mock_websocket(make_websocket):
    """Create a single mock WebSocket connection for testing."""
    return make_websocket()


@pytest.fixture
def registry():
    """Create an empty room registry."""
    return RoomRegistry()


def _sent_payloads(websocket) -> List[Dict[str, Any]]:
    return [json.loads(call.args[0]) for call in websocket.send.await_args_list]


@pytest.fixture
def sent_payloads():
    """Decode every JSON payload sent to a mock websocket."""
    return _sent_payloads


@pytest.fixture
def sent_messages():
    """Return the ``message`` field of every payload sent to a mock websocket."""

    def _messages(websocket) -> List[str]:
        return [payload["message"] for payload in _sent_payloads(websocket)]

    return _messages


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
