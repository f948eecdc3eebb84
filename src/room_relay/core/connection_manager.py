"""
Room registry for the WebSocket relay server.

This module keeps the shared relay state (connection -> room, connection <->
client id, room -> members) behind one object so the two directions of
membership can never disagree. A room exists exactly as long as
its member set is non-empty.

The registry performs no I/O and never awaits; callers serialize access to it.
"""

import logging
import uuid
from typing import Dict, List, Optional, Set

from websockets.asyncio.server import ServerConnection

from .types import DEFAULT_CLIENT_ID_LENGTH

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Connection and room membership state for the relay."""

    def __init__(self, client_id_length: int = DEFAULT_CLIENT_ID_LENGTH) -> None:
        self.client_id_length = client_id_length

        # Map connection -> room it currently belongs to
        self._connections: Dict[ServerConnection, str] = {}

        # Map connection -> server-assigned client id
        self._client_ids: Dict[ServerConnection, str] = {}

        # Map client id -> connection, for collision checks
        self._id_owners: Dict[str, ServerConnection] = {}

        # Map room -> member connections (never empty)
        self._chat_rooms: Dict[str, Set[ServerConnection]] = {}

    # -------------------- Connection lifecycle -------------------- #

    def register(self, ws: ServerConnection) -> str:
        """Register a new connection and return its client id."""
        existing = self._client_ids.get(ws)
        if existing is not None:
            return existing

        client_id = self._generate_client_id()
        while client_id in self._id_owners:
            client_id = self._generate_client_id()

        self._client_ids[ws] = client_id
        self._id_owners[client_id] = ws
        return client_id

    def unregister(self, ws: ServerConnection) -> Optional[str]:
        """
        Drop every entry held for ``ws``.

        Returns the room the connection was removed from, if any. Calling it
        for an unknown connection is a no-op.
        """
        room = self.leave_room(ws)
        client_id = self._client_ids.pop(ws, None)
        if client_id is not None:
            self._id_owners.pop(client_id, None)
        return room

    def _generate_client_id(self) -> str:
        return uuid.uuid4().hex[: self.client_id_length]

    # -------------------- Membership -------------------- #

    def join_room(self, ws: ServerConnection, room: str) -> Optional[str]:
        """
        Move ``ws`` into ``room``.

        The connection leaves its previous room first (deleting that room if
        it becomes empty). Returns the previous room, or None.
        """
        previous = self._connections.get(ws)
        if previous == room:
            return None

        if previous is not None:
            self.leave_room(ws)

        self._chat_rooms.setdefault(room, set()).add(ws)
        self._connections[ws] = room
        return previous

    def leave_room(self, ws: ServerConnection) -> Optional[str]:
        """Remove ``ws`` from its room, deleting the room once empty."""
        room = self._connections.pop(ws, None)
        if room is None:
            return None

        members = self._chat_rooms.get(room)
        if members is not None:
            members.discard(ws)
            if not members:
                del self._chat_rooms[room]
                logger.debug(f"Room {room} is now empty and removed")
        return room

    # -------------------- Lookups -------------------- #

    def is_registered(self, ws: ServerConnection) -> bool:
        return ws in self._client_ids

    def get_client_id(self, ws: ServerConnection) -> Optional[str]:
        return self._client_ids.get(ws)

    def get_room(self, ws: ServerConnection) -> Optional[str]:
        return self._connections.get(ws)

    def get_connection(self, client_id: str) -> Optional[ServerConnection]:
        return self._id_owners.get(client_id)

    def room_exists(self, room: str) -> bool:
        return room in self._chat_rooms

    def is_member(self, room: str, ws: ServerConnection) -> bool:
        return ws in self._chat_rooms.get(room, ())

    def get_room_members(self, room: str) -> List[ServerConnection]:
        """Return a snapshot of the room's members, safe to iterate while mutating."""
        return list(self._chat_rooms.get(room, ()))

    def get_connections(self) -> List[ServerConnection]:
        """Return a snapshot of every registered connection."""
        return list(self._client_ids)

    def get_rooms(self) -> List[str]:
        return list(self._chat_rooms)

    # -------------------- Diagnostics -------------------- #

    def get_stats(self) -> Dict[str, int]:
        """Get registry statistics."""
        return {
            "total_connections": len(self._client_ids),
            "rooms": len(self._chat_rooms),
            "room_members": sum(len(m) for m in self._chat_rooms.values()),
            "unassigned_connections": len(self._client_ids) - len(self._connections),
        }

    def describe(self) -> List[str]:
        """Human-readable dump of rooms and their members."""
        lines = [
            f"Active connections: {len(self._client_ids)}",
            f"Active chatrooms: {len(self._chat_rooms)}",
        ]
        for room, members in self._chat_rooms.items():
            lines.append(f"Room {room}: {len(members)} clients")
            for i, ws in enumerate(members, start=1):
                lines.append(f"  - Client #{i}: clientId={self._client_ids.get(ws)}")
        return lines

    def is_consistent(self) -> bool:
        """Check that every mapping agrees with the others and no room is empty."""
        if len(self._id_owners) != len(self._client_ids):
            return False
        for ws, client_id in self._client_ids.items():
            if self._id_owners.get(client_id) is not ws:
                return False
        for ws, room in self._connections.items():
            if ws not in self._chat_rooms.get(room, ()):
                return False
            if ws not in self._client_ids:
                return False
        for room, members in self._chat_rooms.items():
            if not members:
                return False
            for ws in members:
                if self._connections.get(ws) != room:
                    return False
        return True
