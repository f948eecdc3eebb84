"""
Delivery and cleanup helpers for the relay server.

Every send is a single attempt bounded by ``send_timeout``. Broadcasts and
health pings reach all peers concurrently, so one slow peer costs at most one
timeout. A connection that fails a send or a health ping is unregistered,
its room is told it left, and the socket is closed.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from websockets.asyncio.server import ServerConnection

from room_relay.core import RoomRegistry, server_notice
from room_relay.core.types import (
    CLOSE_INTERNAL_ERROR,
    CLOSE_REASON_DELIVERY_FAILED,
    CLOSE_REASON_UNRESPONSIVE,
    FIELD_CHATROOM,
    MSG_USER_LEFT,
    UNKNOWN_CLIENT_ID,
)
from room_relay.infrastructure.exceptions import DeliveryError


class ConnectionUtils:
    """Utility functions for connection management."""

    # Closes started for dropped connections; held so they are not collected
    _pending_closes: Set[asyncio.Task] = set()

    @staticmethod
    async def send_json(
        websocket: ServerConnection, payload: Dict[str, Any], send_timeout: float
    ) -> None:
        """
        Send ``payload`` once.

        Raises:
            DeliveryError: If the send fails or does not finish in time.
        """
        try:
            await asyncio.wait_for(
                websocket.send(json.dumps(payload)), timeout=send_timeout
            )
        except asyncio.TimeoutError as e:
            raise DeliveryError(f"Send timed out after {send_timeout}s") from e
        except Exception as e:
            raise DeliveryError(f"Send failed: {e}") from e

    @staticmethod
    async def deliver(
        connections: RoomRegistry,
        websocket: ServerConnection,
        payload: Dict[str, Any],
        send_timeout: float,
        logger: logging.Logger,
    ) -> bool:
        """Send to one connection, dropping it if the send fails."""
        try:
            await ConnectionUtils.send_json(websocket, payload, send_timeout)
            return True
        except DeliveryError as e:
            client_id = connections.get_client_id(websocket) or UNKNOWN_CLIENT_ID
            logger.warning(f"Delivery to client {client_id} failed: {e}")
            await ConnectionUtils.drop_connections(
                connections, [websocket], send_timeout, logger
            )
            return False

    @staticmethod
    async def broadcast_to_room(
        connections: RoomRegistry,
        room: str,
        payload: Dict[str, Any],
        send_timeout: float,
        logger: logging.Logger,
        exclude: Optional[ServerConnection] = None,
    ) -> int:
        """
        Deliver ``payload`` to every member of ``room`` except ``exclude``.

        All sends run together against a snapshot of the members. Members
        whose send failed are dropped once every send has settled. Returns
        the number of successful deliveries.
        """
        members = [
            member
            for member in connections.get_room_members(room)
            if member is not exclude
        ]
        if not members:
            logger.debug(f"No clients in room {room} to broadcast to")
            return 0

        message = dict(payload)
        if not message.get(FIELD_CHATROOM):
            message[FIELD_CHATROOM] = room

        # Send to all members concurrently
        results = await asyncio.gather(
            *(
                ConnectionUtils.send_json(member, message, send_timeout)
                for member in members
            ),
            return_exceptions=True,
        )

        failed = []
        for member, result in zip(members, results):
            if isinstance(result, Exception):
                client_id = connections.get_client_id(member) or UNKNOWN_CLIENT_ID
                logger.warning(f"Delivery to client {client_id} failed: {result}")
                failed.append(member)

        sent_count = len(members) - len(failed)
        logger.debug(
            f"Broadcast complete in room {room} - sent to {sent_count}/{len(members)} clients"
        )

        if failed:
            await ConnectionUtils.drop_connections(
                connections, failed, send_timeout, logger
            )
        return sent_count

    @staticmethod
    async def _reap(
        connections: RoomRegistry,
        websockets: Iterable[ServerConnection],
        send_timeout: float,
        logger: logging.Logger,
    ) -> List[Tuple[ServerConnection, str, Optional[str]]]:
        """
        Unregister ``websockets``, then tell each former room that a user left.

        Every connection is removed before any notice goes out, so a peer
        reaped in the same batch is never sent another notice. Returns
        ``(websocket, client_id, room)`` for the connections that were still
        registered.
        """
        departed = []
        for websocket in websockets:
            if not connections.is_registered(websocket):
                continue
            client_id = connections.get_client_id(websocket)
            room = connections.unregister(websocket)
            departed.append((websocket, client_id, room))

        for _, client_id, room in departed:
            logger.info(f"Client disconnected: {client_id}")
            if room is not None:
                await ConnectionUtils.broadcast_to_room(
                    connections,
                    room,
                    server_notice(MSG_USER_LEFT, room, client_id),
                    send_timeout,
                    logger,
                )

        if departed:
            for line in connections.describe():
                logger.debug(line)
        return departed

    @staticmethod
    async def cleanup_connection(
        connections: RoomRegistry,
        websocket: ServerConnection,
        send_timeout: float,
        logger: logging.Logger,
    ) -> Optional[str]:
        """
        Clean up when a connection is closed or errored.

        Removes the connection from the registry and tells the remaining
        members of its room that a user left. Returns the room it left.
        Safe to call more than once.
        """
        departed = await ConnectionUtils._reap(
            connections, [websocket], send_timeout, logger
        )
        return departed[0][2] if departed else None

    @staticmethod
    async def drop_connections(
        connections: RoomRegistry,
        websockets: Iterable[ServerConnection],
        send_timeout: float,
        logger: logging.Logger,
    ) -> int:
        """
        Reap connections that failed a send and close them in the background.

        The closes do not hold up the caller. Returns the number dropped.
        """
        departed = await ConnectionUtils._reap(
            connections, websockets, send_timeout, logger
        )
        for websocket, _, _ in departed:
            ConnectionUtils.schedule_close(
                websocket,
                CLOSE_INTERNAL_ERROR,
                CLOSE_REASON_DELIVERY_FAILED,
                send_timeout,
                logger,
            )
        return len(departed)

    @staticmethod
    async def close_connection(
        websocket: ServerConnection,
        code: int,
        reason: str,
        send_timeout: float,
        logger: logging.Logger,
    ) -> bool:
        """Close ``websocket`` once, bounded by ``send_timeout``."""
        try:
            await asyncio.wait_for(websocket.close(code, reason), timeout=send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Closing connection timed out after {send_timeout}s")
        except Exception as e:
            logger.warning(f"Error closing connection: {e}")
        return False

    @staticmethod
    def schedule_close(
        websocket: ServerConnection,
        code: int,
        reason: str,
        send_timeout: float,
        logger: logging.Logger,
    ) -> asyncio.Task:
        """Start closing ``websocket`` without waiting for it."""
        task = asyncio.create_task(
            ConnectionUtils.close_connection(websocket, code, reason, send_timeout, logger)
        )
        ConnectionUtils._pending_closes.add(task)
        task.add_done_callback(ConnectionUtils._pending_closes.discard)
        return task

    @staticmethod
    async def wait_for_pending_closes() -> None:
        """Wait until every close scheduled on the running loop has finished."""
        loop = asyncio.get_running_loop()
        while True:
            pending = [
                task
                for task in ConnectionUtils._pending_closes
                if task.get_loop() is loop and not task.done()
            ]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    @staticmethod
    async def _ping(websocket: ServerConnection, send_timeout: float) -> None:
        async def ping_and_wait() -> None:
            pong_waiter = await websocket.ping()
            await pong_waiter

        await asyncio.wait_for(ping_and_wait(), timeout=send_timeout)

    @staticmethod
    async def check_connections(
        connections: RoomRegistry,
        lock: asyncio.Lock,
        send_timeout: float,
        logger: logging.Logger,
    ) -> int:
        """
        Ping every registered connection once and reap the unresponsive ones.

        Pings run concurrently outside the lock. Returns the number of
        connections reaped.
        """
        async with lock:
            snapshot = connections.get_connections()
        if not snapshot:
            return 0

        results = await asyncio.gather(
            *(ConnectionUtils._ping(websocket, send_timeout) for websocket in snapshot),
            return_exceptions=True,
        )

        failures = {}
        for websocket, result in zip(snapshot, results):
            if isinstance(result, asyncio.TimeoutError):
                failures[websocket] = f"no pong within {send_timeout}s"
            elif isinstance(result, Exception):
                failures[websocket] = str(result) or type(result).__name__

        if not failures:
            return 0

        async with lock:
            for websocket, error in failures.items():
                if connections.is_registered(websocket):
                    client_id = connections.get_client_id(websocket)
                    logger.warning(f"Client {client_id} failed health check: {error}")
            departed = await ConnectionUtils._reap(
                connections, failures, send_timeout, logger
            )

        await asyncio.gather(
            *(
                ConnectionUtils.close_connection(
                    websocket,
                    CLOSE_INTERNAL_ERROR,
                    CLOSE_REASON_UNRESPONSIVE,
                    send_timeout,
                    logger,
                )
                for websocket, _, _ in departed
            )
        )
        return len(departed)

    @staticmethod
    async def health_monitor(
        connections: RoomRegistry,
        lock: asyncio.Lock,
        ping_interval: int,
        send_timeout: float,
        logger: logging.Logger,
    ) -> None:
        """Monitor connection health and reap dead peers."""
        while True:
            await asyncio.sleep(ping_interval)
            reaped = await ConnectionUtils.check_connections(
                connections, lock, send_timeout, logger
            )
            if reaped:
                logger.info(f"Health check reaped {reaped} unresponsive connections")
