"""
Room Relay - real-time chat relay over WebSockets.

Persistent connections are grouped into named rooms and text messages are
broadcast among members of the same room.

Key Features:
- Lazy room creation and removal of empty rooms
- Room switching with join/leave notices
- Room-wide "kill" notices that tell clients to clear their history
- Server-assigned client ids on every outgoing message
- Cleanup of dead connections during broadcast and by health pings

Architecture:
- Core: Room registry and wire format
- WebSockets: Relay server, message handling and delivery helpers
- Config: Configuration management
- Infrastructure: Logging and exceptions
"""

__version__ = "1.0.0"

# Core components
from .core import RoomRegistry, ChatMessage

# Configuration
from .config import RelayConfig, RelayConfigManager

# Infrastructure
from .infrastructure import (
    setup_logging,
    get_logger,
    RoomRelayError,
    ConfigurationError,
    MessageParseError,
    DeliveryError,
)

# Server
from .websockets.server import RoomRelayServer

__all__ = [
    # Version info
    "__version__",
    # Core components
    "RoomRegistry",
    "ChatMessage",
    # Configuration
    "RelayConfig",
    "RelayConfigManager",
    # Infrastructure
    "setup_logging",
    "get_logger",
    "RoomRelayError",
    "ConfigurationError",
    "MessageParseError",
    "DeliveryError",
    # Server
    "RoomRelayServer",
]
