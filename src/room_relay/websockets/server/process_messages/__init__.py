"""
Message processing modules for the WebSocket relay server.

This package contains the chat frame handler and the delivery helpers it
shares with the server loop.
"""

from .chat_message import ChatMessageHandler
from .utils import ConnectionUtils

__all__ = [
    "ChatMessageHandler",
    "ConnectionUtils",
]
