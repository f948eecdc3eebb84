"""
Core relay state and wire format.

- RoomRegistry: connection and room membership state
- ChatMessage: parsed inbound payloads
"""

from .connection_manager import RoomRegistry
from .messages import ChatMessage, chat_payload, server_notice

__all__ = [
    "RoomRegistry",
    "ChatMessage",
    "chat_payload",
    "server_notice",
]
