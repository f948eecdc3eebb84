#!/usr/bin/env python3
"""
WebSocket Room Relay Server.

This script starts the relay server that groups WebSocket connections into
chat rooms and broadcasts messages among room members.
"""

import sys
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from room_relay.websockets.server.relay_server import run

if __name__ == "__main__":
    run()
