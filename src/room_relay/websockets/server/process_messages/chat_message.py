"""
Chat message handler for the WebSocket relay server.

This module turns one inbound frame into registry changes and outgoing
notices: self-disconnect, room history clearing, room switches and ordinary
room broadcasts.
"""

import logging
from typing import Union

from websockets.asyncio.server import ServerConnection

from room_relay.core import ChatMessage, RoomRegistry, chat_payload, server_notice
from room_relay.core.types import (
    CLOSE_NORMAL,
    CLOSE_REASON_KILL,
    MSG_JOINED_ROOM,
    MSG_NO_CHATROOM,
    MSG_NO_CHATROOM_KILL,
    MSG_PROCESSING_ERROR,
    MSG_ROOM_KILLED,
    MSG_USER_JOINED,
    MSG_USER_LEFT,
    UNKNOWN_CLIENT_ID,
)
from room_relay.infrastructure.exceptions import MessageParseError

from .utils import ConnectionUtils


class ChatMessageHandler:
    """Handles inbound chat frames for registered connections."""

    def __init__(
        self,
        connections: RoomRegistry,
        logger: logging.Logger,
        send_timeout: float,
    ) -> None:
        self.connections = connections
        self.logger = logger
        self.send_timeout = send_timeout

    async def process_chat_message(
        self, websocket: ServerConnection, raw: Union[str, bytes]
    ) -> None:
        """Process one inbound frame. Callers must hold the relay lock."""
        client_id = self.connections.get_client_id(websocket)
        if client_id is None:
            self.logger.warning("Received message from unregistered connection")
            return

        try:
            message = ChatMessage.from_raw(raw)
        except MessageParseError as e:
            self.logger.warning(f"Malformed message from client {client_id}: {e}")
            await self._send_error(websocket, MSG_PROCESSING_ERROR.format(error=e))
            return

        if (
            message.claimed_client_id is not None
            and message.claimed_client_id != client_id
        ):
            self.logger.debug(
                f"Ignoring client-supplied clientId {message.claimed_client_id!r} "
                f"from client {client_id}"
            )

        self.logger.debug(
            f"Received message from {message.user} (clientId: {client_id}) "
            f"in room {message.chatroom!r}: {message.message}"
        )

        if message.kill:
            await self._handle_kill(websocket, client_id)
        elif message.kill_room:
            await self._handle_kill_room(websocket, message, client_id)
        elif not message.chatroom:
            await self._send_error(websocket, MSG_NO_CHATROOM)
        elif self.connections.get_room(websocket) != message.chatroom:
            await self._handle_room_switch(websocket, message, client_id)
        else:
            await self._handle_room_message(message, client_id)

    async def _handle_kill(self, websocket: ServerConnection, client_id: str) -> None:
        """Close the sender's connection; cleanup follows from the close."""
        self.logger.info(f"Client {client_id} requested connection termination")
        await ConnectionUtils.close_connection(
            websocket, CLOSE_NORMAL, CLOSE_REASON_KILL, self.send_timeout, self.logger
        )

    async def _handle_kill_room(
        self, websocket: ServerConnection, message: ChatMessage, client_id: str
    ) -> None:
        """Tell every member of a room to discard its message history."""
        room = message.chatroom
        self.logger.info(f"Kill room request for room {room!r} from client {client_id}")

        if not room:
            await self._send_error(websocket, MSG_NO_CHATROOM_KILL)
            return

        if not self.connections.room_exists(room):
            self.logger.info(f"Cannot kill non-existent room: {room}")
            return

        await ConnectionUtils.broadcast_to_room(
            self.connections,
            room,
            server_notice(MSG_ROOM_KILLED, room, client_id, clear_all_messages=True),
            self.send_timeout,
            self.logger,
        )
        self.logger.info(f"Room {room} has been killed")

    async def _handle_room_switch(
        self, websocket: ServerConnection, message: ChatMessage, client_id: str
    ) -> None:
        """Move the sender into ``message.chatroom`` and announce it."""
        room = message.chatroom
        previous = self.connections.join_room(websocket, room)

        if previous is not None:
            await ConnectionUtils.broadcast_to_room(
                self.connections,
                previous,
                server_notice(MSG_USER_LEFT, previous, client_id),
                self.send_timeout,
                self.logger,
                exclude=websocket,
            )

        joined = await ConnectionUtils.deliver(
            self.connections,
            websocket,
            server_notice(MSG_JOINED_ROOM.format(chatroom=room), room, client_id),
            self.send_timeout,
            self.logger,
        )
        if not joined:
            return

        await ConnectionUtils.broadcast_to_room(
            self.connections,
            room,
            server_notice(MSG_USER_JOINED, room, client_id),
            self.send_timeout,
            self.logger,
            exclude=websocket,
        )

        self.logger.info(f"Client {client_id} joined room {room}")
        for line in self.connections.describe():
            self.logger.debug(line)

    async def _handle_room_message(self, message: ChatMessage, client_id: str) -> None:
        """Broadcast an ordinary message to the whole room, sender included."""
        self.logger.debug(f"Broadcasting regular message to room {message.chatroom}")
        await ConnectionUtils.broadcast_to_room(
            self.connections,
            message.chatroom,
            chat_payload(message, client_id),
            self.send_timeout,
            self.logger,
        )

    async def _send_error(self, websocket: ServerConnection, text: str) -> None:
        """Send an error notice to the sender only."""
        client_id = self.connections.get_client_id(websocket) or UNKNOWN_CLIENT_ID
        await ConnectionUtils.deliver(
            self.connections,
            websocket,
            server_notice(text, "", client_id),
            self.send_timeout,
            self.logger,
        )
