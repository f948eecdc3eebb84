"""
WebSocket relay server for chat rooms.

Connections are grouped into named rooms and text messages are broadcast
among members of the same room. All relay state lives in a RoomRegistry and
every lifecycle event (open, message, close, error) runs under one lock, so
each membership change and its notices form a single atomic step.
"""

import asyncio
import sys
from typing import Any, Dict, Optional, Union

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from room_relay.config import RelayConfig, RelayConfigManager
from room_relay.core import RoomRegistry, server_notice
from room_relay.core.types import (
    DEFAULT_CLIENT_ID_LENGTH,
    DEFAULT_HOST,
    DEFAULT_MAX_CONNECTIONS,
    DEFAULT_MAX_MESSAGE_SIZE,
    DEFAULT_PING_INTERVAL,
    DEFAULT_PORT,
    DEFAULT_SEND_TIMEOUT,
    MSG_CONNECTED,
    UNKNOWN_CLIENT_ID,
)
from room_relay.infrastructure import ConfigurationError, setup_logging
from .process_messages import ChatMessageHandler, ConnectionUtils

logger = setup_logging(
    component_name="room_relay",
    log_file="logs/room_relay.log",
)


class RoomRelayServer:
    """WebSocket server that relays chat messages between room members."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        ping_interval: int = DEFAULT_PING_INTERVAL,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
        send_timeout: float = DEFAULT_SEND_TIMEOUT,
        client_id_length: int = DEFAULT_CLIENT_ID_LENGTH,
    ) -> None:
        """Initialize the room relay server."""
        self.host = host
        self.port = port
        self.server: Optional[Server] = None
        self.ping_interval = ping_interval
        self.max_message_size = max_message_size
        self.send_timeout = send_timeout

        self.connections = RoomRegistry(client_id_length=client_id_length)
        # Serializes every read-modify-write of the registry
        self._lock = asyncio.Lock()
        self._connection_semaphore = asyncio.Semaphore(max_connections)
        self._health_task: Optional[asyncio.Task] = None

        self.chat_handler = ChatMessageHandler(self.connections, logger, send_timeout)

    @classmethod
    def from_config(cls, config: RelayConfig) -> "RoomRelayServer":
        return cls(
            host=config.host,
            port=config.port,
            ping_interval=config.ping_interval,
            max_connections=config.max_connections,
            max_message_size=config.max_message_size,
            send_timeout=config.send_timeout,
            client_id_length=config.client_id_length,
        )

    async def start(self) -> bool:
        """Start the room relay server."""
        try:
            self.server = await serve(
                self._handle_connection,
                self.host,
                self.port,
                ping_interval=None,  # Health monitor pings instead
                max_size=self.max_message_size,
            )
            logger.info(f"Room relay server started on {self.host}:{self.bound_port}")
            if self.ping_interval > 0:
                self._health_task = asyncio.create_task(
                    ConnectionUtils.health_monitor(
                        self.connections,
                        self._lock,
                        self.ping_interval,
                        self.send_timeout,
                        logger,
                    )
                )
            return True
        except Exception as e:
            logger.error(f"Failed to start room relay server: {e}", exc_info=True)
            return False

    async def stop(self) -> None:
        """Stop the room relay server."""
        if self._health_task:
            self._health_task.cancel()
            try:
                await self._health_task
            except asyncio.CancelledError:
                pass
            self._health_task = None

        await ConnectionUtils.wait_for_pending_closes()

        if self.server:
            self.server.close()
            await self.server.wait_closed()
            self.server = None
            logger.info("Room relay server stopped")

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually bound, which differs from ``port`` when it was 0."""
        if self.server is None:
            return None
        for sock in self.server.sockets:
            return sock.getsockname()[1]
        return None

    # -------------------- Lifecycle callbacks -------------------- #

    async def on_open(self, websocket: ServerConnection) -> Optional[str]:
        """
        Register a new connection and send it its client id.

        Returns None when the welcome notice could not be delivered; the
        connection has then been dropped again.
        """
        async with self._lock:
            client_id = self.connections.register(websocket)
            logger.info(
                f"New connection {client_id} from {getattr(websocket, 'remote_address', None)}"
            )
            delivered = await ConnectionUtils.deliver(
                self.connections,
                websocket,
                server_notice(MSG_CONNECTED, "", client_id),
                self.send_timeout,
                logger,
            )
        return client_id if delivered else None

    async def on_message(
        self, websocket: ServerConnection, message: Union[str, bytes]
    ) -> None:
        """Handle one inbound frame."""
        async with self._lock:
            await self.chat_handler.process_chat_message(websocket, message)

    async def on_close(self, websocket: ServerConnection) -> None:
        """Clean up after a closed connection. Idempotent."""
        async with self._lock:
            await ConnectionUtils.cleanup_connection(
                self.connections, websocket, self.send_timeout, logger
            )

    async def on_error(self, websocket: ServerConnection, error: BaseException) -> None:
        """Report a transport error, then clean up like a close."""
        async with self._lock:
            client_id = self.connections.get_client_id(websocket) or UNKNOWN_CLIENT_ID
            logger.error(
                f"WebSocket error for client {client_id}: {error}", exc_info=error
            )
            await ConnectionUtils.cleanup_connection(
                self.connections, websocket, self.send_timeout, logger
            )

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        """Drive one connection through open, messages and close."""
        async with self._connection_semaphore:
            if await self.on_open(websocket) is None:
                return
            try:
                async for message in websocket:
                    await self.on_message(websocket, message)
            except ConnectionClosed as e:
                logger.info(f"Connection closed abnormally: {e}")
            except Exception as e:
                await self.on_error(websocket, e)
            finally:
                await self.on_close(websocket)

    def get_stats(self) -> Dict[str, Any]:
        """Get server statistics."""
        return {
            "server_running": self.server is not None,
            "registry_stats": self.connections.get_stats(),
        }


async def main(config: Optional[RelayConfig] = None) -> int:
    """Run the room relay server until cancelled."""
    if config is None:
        config = RelayConfigManager().get_config()
    logger.setLevel(config.log_level)

    server = RoomRelayServer.from_config(config)
    if not await server.start():
        return 1

    try:
        logger.info("Room relay server running. Press Ctrl+C to stop.")
        await asyncio.Future()  # Run forever
    finally:
        await server.stop()
    return 0


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except ConfigurationError as e:
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(2)
    except KeyboardInterrupt:
        logger.info("Shutting down room relay server...")


if __name__ == "__main__":
    run()
