"""
WebSocket connection manager and the game Transport built on it.
"""
from typing import Any, Dict, List, Optional, Tuple
from fastapi import WebSocket
import asyncio
import uuid

from .logging_config import get_logger
from .monitoring import game_errors_total, websocket_connections

logger = get_logger("websocket_manager")


class ConnectionManager:
    """Manages WebSocket connections by connection ID."""

    def __init__(self):
        # connection_id -> WebSocket
        self.active_connections: Dict[str, WebSocket] = {}
        # Lock for thread-safe operations
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> str:
        """Accept a WebSocket and return its connection ID."""
        await websocket.accept()
        connection_id = str(uuid.uuid4())

        async with self._lock:
            self.active_connections[connection_id] = websocket
        websocket_connections.inc()
        return connection_id

    async def disconnect(self, connection_id: str):
        """Forget a connection."""
        async with self._lock:
            if self.active_connections.pop(connection_id, None) is not None:
                websocket_connections.dec()

    async def send_personal_message(self, message: dict, connection_id: str):
        """Send a message to a specific connection."""
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            return
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.warning("send_failed", connection_id=connection_id, error=str(e))
            await self.disconnect(connection_id)

    async def close(self, connection_id: str):
        """Close a connection from the server side."""
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            return
        try:
            await websocket.close()
        except Exception as e:
            logger.warning("close_failed", connection_id=connection_id, error=str(e))
        await self.disconnect(connection_id)

    def get_connection_count(self) -> int:
        """Get the number of active connections."""
        return len(self.active_connections)


class BufferedTransport:
    """Game transport for one session.

    The engine is synchronous, so outbound traffic is queued while a message
    is applied and delivered afterwards with ``flush``, in order.
    """

    def __init__(self, manager: ConnectionManager, connections: List[str]):
        self.manager = manager
        self.connections = list(connections)
        self.outbox: List[Tuple[str, str, Optional[Dict[str, Any]]]] = []

    def send(self, connection_id: str, message: Dict[str, Any]) -> None:
        if message.get("message") == "error":
            game_errors_total.labels(error=message.get("error", "unknown")).inc()
        self.outbox.append(("send", connection_id, message))

    def broadcast(self, message: Dict[str, Any]) -> None:
        for connection_id in self.connections:
            self.send(connection_id, message)

    def close(self, connection_id: str) -> None:
        self.outbox.append(("close", connection_id, None))

    async def flush(self):
        """Deliver everything queued so far."""
        outbox, self.outbox = self.outbox, []
        for action, connection_id, message in outbox:
            if action == "send":
                await self.manager.send_personal_message(message, connection_id)
            else:
                await self.manager.close(connection_id)


# Global connection manager instance
connection_manager = ConnectionManager()
