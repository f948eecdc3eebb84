"""
WebSocket server implementation for the room relay.

This module contains the main RoomRelayServer class and related components.
"""

from .relay_server import RoomRelayServer

__all__ = [
    "RoomRelayServer",
]
