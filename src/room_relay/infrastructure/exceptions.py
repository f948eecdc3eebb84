"""
Custom exceptions for the Room Relay system.

This module defines all custom exceptions used throughout the system,
providing clear error categorization and handling.
"""


class RoomRelayError(Exception):
    """Base exception for all Room Relay related errors."""

    pass


class ConfigurationError(RoomRelayError):
    """Raised when there are configuration-related errors."""

    pass


class ValidationError(ConfigurationError):
    """Raised when configuration validation fails."""

    pass


class MessageParseError(RoomRelayError):
    """Raised when an inbound chat payload cannot be parsed."""

    pass


class NetworkError(RoomRelayError):
    """Raised when there are network communication errors."""

    pass


class WebSocketError(NetworkError):
    """Raised when there are WebSocket communication errors."""

    pass


class DeliveryError(WebSocketError):
    """Raised when a single send to a connection fails or times out."""

    pass
