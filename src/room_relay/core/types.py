"""
Common types and constants for the Room Relay system.

This module centralizes wire field names, server notice texts and defaults
to avoid hardcoding throughout the codebase.
"""

from typing import Final

# Wire fields
FIELD_USER: Final[str] = "user"
FIELD_MESSAGE: Final[str] = "message"
FIELD_CHATROOM: Final[str] = "chatroom"
FIELD_KILL: Final[str] = "kill"
FIELD_KILL_ROOM: Final[str] = "killRoom"
FIELD_CLIENT_ID: Final[str] = "clientId"
FIELD_CLEAR_ALL_MESSAGES: Final[str] = "clearAllMessages"

# Display name used for every system notice
SERVER_USER: Final[str] = "server"

# Server notices
MSG_CONNECTED: Final[str] = "Connected! Waiting for room information..."
MSG_JOINED_ROOM: Final[str] = "You've joined room {chatroom}"
MSG_USER_JOINED: Final[str] = "A new user joined the chat"
MSG_USER_LEFT: Final[str] = "A user left the chat"
MSG_ROOM_KILLED: Final[str] = "⚠️ THIS ROOM HAS BEEN KILLED - ALL MESSAGES CLEARED ⚠️"
MSG_NO_CHATROOM: Final[str] = "Error: No chatroom specified"
MSG_NO_CHATROOM_KILL: Final[str] = "Error: No chatroom specified for kill room operation"
MSG_PROCESSING_ERROR: Final[str] = "Error processing message: {error}"

# Close codes
CLOSE_NORMAL: Final[int] = 1000
CLOSE_INTERNAL_ERROR: Final[int] = 1011
CLOSE_REASON_KILL: Final[str] = "Client requested termination"
CLOSE_REASON_UNRESPONSIVE: Final[str] = "Connection unresponsive"
CLOSE_REASON_DELIVERY_FAILED: Final[str] = "Delivery failed"

# Used in logs when a connection has no client id (already cleaned up)
UNKNOWN_CLIENT_ID: Final[str] = "unknown"

# Environment Variable Names (from .env file)
ENV_RELAY_HOST: Final[str] = "RELAY_HOST"
ENV_RELAY_PORT: Final[str] = "RELAY_PORT"
ENV_RELAY_PING_INTERVAL: Final[str] = "RELAY_PING_INTERVAL"
ENV_RELAY_MAX_CONNECTIONS: Final[str] = "RELAY_MAX_CONNECTIONS"
ENV_RELAY_MAX_MESSAGE_SIZE: Final[str] = "RELAY_MAX_MESSAGE_SIZE"
ENV_RELAY_SEND_TIMEOUT: Final[str] = "RELAY_SEND_TIMEOUT"
ENV_RELAY_CLIENT_ID_LENGTH: Final[str] = "RELAY_CLIENT_ID_LENGTH"
ENV_LOG_LEVEL: Final[str] = "LOG_LEVEL"

# Default Values
DEFAULT_HOST: Final[str] = "localhost"
DEFAULT_PORT: Final[int] = 8765
DEFAULT_PING_INTERVAL: Final[int] = 30
DEFAULT_MAX_CONNECTIONS: Final[int] = 100
DEFAULT_MAX_MESSAGE_SIZE: Final[int] = 2**20
DEFAULT_SEND_TIMEOUT: Final[float] = 5.0
DEFAULT_CLIENT_ID_LENGTH: Final[int] = 12
MIN_CLIENT_ID_LENGTH: Final[int] = 4
MAX_CLIENT_ID_LENGTH: Final[int] = 32
