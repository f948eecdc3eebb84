"""
Infrastructure components for the Room Relay system.

This package contains infrastructure concerns including:
- Logging configuration with environment-aware levels
- Custom exception definitions
"""

from .logging_manager import (
    LoggingManager,
    Environment,
    setup_logging,
    get_logger,
    is_production,
    get_environment,
)
from .exceptions import (
    RoomRelayError,
    ConfigurationError,
    ValidationError,
    MessageParseError,
    NetworkError,
    WebSocketError,
    DeliveryError,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "LoggingManager",
    "Environment",
    "is_production",
    "get_environment",
    # Exceptions
    "RoomRelayError",
    "ConfigurationError",
    "ValidationError",
    "MessageParseError",
    "NetworkError",
    "WebSocketError",
    "DeliveryError",
]
