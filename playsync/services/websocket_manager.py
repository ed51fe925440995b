from typing import Dict, List
from fastapi import WebSocket
from playsync.core.exceptions import BroadcastPublishException
from playsync.core.logging import get_logger
import json

logger = get_logger("WebSocketManager")


class WebSocketManager:
    """
    Pub/sub transport over WebSocket connections.
    Each connection subscribes to one channel; broadcasts go to every
    subscriber of that channel, at most once and best effort.
    """

    def __init__(self):
        # channel -> list of WebSocket connections
        self.active_connections: Dict[str, List[WebSocket]] = {}

    async def subscribe(self, websocket: WebSocket, channel: str):
        """
        Accept and store a new WebSocket connection for a channel.

        Args:
            websocket: WebSocket connection
            channel: Channel to subscribe to
        """
        await websocket.accept()
        self.active_connections.setdefault(channel, []).append(websocket)

    def unsubscribe(self, websocket: WebSocket, channel: str):
        """
        Remove a WebSocket connection from a channel.

        Args:
            websocket: WebSocket connection to remove
            channel: Channel to leave
        """
        connections = self.active_connections.get(channel)
        if connections is None:
            return

        if websocket in connections:
            connections.remove(websocket)

        if not connections:
            del self.active_connections[channel]

    async def broadcast(self, channel: str, message: dict) -> int:
        """
        Send a message to every subscriber of a channel.

        Args:
            channel: Channel to broadcast to
            message: Message dict to send (will be JSON serialized)

        Returns:
            Number of connections the message was handed to

        Raises:
            BroadcastPublishException: the channel has subscribers but none could be reached
        """
        connections = list(self.active_connections.get(channel, []))
        if not connections:
            return 0

        json_message = json.dumps(message)

        delivered = 0
        disconnected = []
        for connection in connections:
            try:
                await connection.send_text(json_message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Failed to send {message.get('event')} to subscriber of {channel}: {e}")
                disconnected.append(connection)

        for connection in disconnected:
            self.unsubscribe(connection, channel)

        if delivered == 0:
            raise BroadcastPublishException(channel)

        return delivered

    async def send_personal_message(self, websocket: WebSocket, message: dict):
        """
        Send a message to a single connection.

        Args:
            websocket: WebSocket connection
            message: Message dict to send (will be JSON serialized)
        """
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.error(f"Failed to send {message.get('event')} message: {e}", exc_info=True)

    def get_subscriber_count(self, channel: str) -> int:
        """
        Get number of active connections on a channel.

        Args:
            channel: Channel name

        Returns:
            Number of connections
        """
        return len(self.active_connections.get(channel, []))

    async def close_all(self, code: int = 1001, reason: str = "Server shutting down"):
        """Close every open connection and forget all channels"""
        for channel, connections in list(self.active_connections.items()):
            for connection in list(connections):
                try:
                    await connection.close(code=code, reason=reason)
                except Exception as e:
                    logger.debug(f"Error closing subscriber of {channel}: {e}")
        self.active_connections.clear()


# Global WebSocket manager instance
websocket_manager = WebSocketManager()
