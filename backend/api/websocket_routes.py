"""
WebSocket routes for real-time game communication.
"""
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState
from typing import Any, Optional
import json
import os

from engine.messages import MESSAGE_ALIASES, MESSAGE_TYPES
from engine.serialization import error_message
from engine.errors import MESSAGE

from .lobby import Lobby
from .websocket_manager import connection_manager
from .logging_config import activity_logger, bind_connection, get_logger
from .monitoring import game_messages_total, track_performance

logger = get_logger("websocket")

router = APIRouter()


def _seed_from_env() -> Optional[int]:
    value = os.getenv("CATAN_RNG_SEED")
    return int(value) if value else None


# Global lobby instance
lobby = Lobby(connection_manager, seed=_seed_from_env())


def _message_label(data: Any) -> str:
    """Metric label for an inbound payload, bounded to known names."""
    if isinstance(data, dict):
        name = data.get("message")
        if name in MESSAGE_TYPES or name in MESSAGE_ALIASES:
            return name
        return "unknown"
    return "malformed"


@router.get("/rooms")
async def list_rooms():
    """List running games."""
    return {
        "rooms": [room.to_dict() for room in lobby.list_rooms()],
        "waiting": len(lobby.waiting),
    }


@router.websocket("/ws")
async def websocket_game_endpoint(websocket: WebSocket):
    """WebSocket endpoint: wait in the lobby, then play."""
    connection_id = await connection_manager.connect(websocket)
    bind_connection(connection_id)
    logger.info("websocket_connected", connection_id=connection_id)
    activity_logger.log_websocket_event("connected", connection_id)

    try:
        room = lobby.join(connection_id)
        if room:
            logger.info("game_started", room_id=room.room_id, connections=room.connections)
            async with room.lock:
                await room.transport.flush()

        # Listen for messages
        while websocket.application_state == WebSocketState.CONNECTED:
            raw = await websocket.receive_text()
            await handle_message(connection_id, raw)

    except WebSocketDisconnect:
        logger.info("websocket_disconnected", connection_id=connection_id)
        activity_logger.log_websocket_event("disconnected", connection_id)
    finally:
        room = lobby.leave(connection_id)
        if room:
            async with room.lock:
                await room.transport.flush()
        await connection_manager.disconnect(connection_id)
        logger.info("websocket_cleanup", connection_id=connection_id)


@track_performance
async def handle_message(connection_id: str, raw: str):
    """Apply one inbound frame to the sender's game."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        # the session reports non-object payloads as malformed
        data = None

    game_messages_total.labels(message=_message_label(data)).inc()

    room = lobby.get_room(connection_id)
    if room is None:
        await connection_manager.send_personal_message(error_message(MESSAGE), connection_id)
        return

    bind_connection(connection_id, room.room_id)
    activity_logger.log_game_message(room.room_id, connection_id, _message_label(data))
    async with room.lock:
        room.session.on_message(connection_id, data)
        await room.transport.flush()
