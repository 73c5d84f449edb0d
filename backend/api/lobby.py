"""
Lobby and game room management.

Connections queue in the lobby; every time four are waiting they are seated
in a new game room with its own GameSession.
"""
from typing import Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime, timezone
import asyncio
import random
import uuid

from engine import GameSession
from engine.constants import PLAYER_COUNT

from .logging_config import get_logger
from .monitoring import active_games, lobby_waiting
from .websocket_manager import BufferedTransport, ConnectionManager

logger = get_logger("lobby")


@dataclass
class GameRoom:
    """A running game and the transport feeding its connections."""
    room_id: str
    session: GameSession
    transport: BufferedTransport
    # one inbound message is applied and flushed at a time
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def connections(self) -> List[str]:
        return self.session.connections

    def to_dict(self) -> dict:
        """Convert room to dictionary for JSON serialization."""
        return {
            "room_id": self.room_id,
            "connections": list(self.connections),
            "phase": self.session.phase.kind.value if self.session.phase else None,
            "turn": self.session.turn,
            "finished": self.session.finished,
            "created_at": self.created_at,
        }


class Lobby:
    """Seats waiting connections into four-player games."""

    def __init__(self, manager: ConnectionManager, seed: Optional[int] = None,
                 seats: int = PLAYER_COUNT):
        self.manager = manager
        self.seed = seed
        self.seats = seats
        self.waiting: List[str] = []
        # room_id -> GameRoom
        self.rooms: Dict[str, GameRoom] = {}
        # connection_id -> room_id
        self.connection_rooms: Dict[str, str] = {}
        self.games_started = 0

    def _make_rng(self) -> random.Random:
        if self.seed is None:
            return random.Random()
        return random.Random(self.seed + self.games_started)

    def join(self, connection_id: str) -> Optional[GameRoom]:
        """Queue a connection. Returns the new room once enough are waiting."""
        self.waiting.append(connection_id)
        lobby_waiting.set(len(self.waiting))
        logger.info("lobby_joined", connection_id=connection_id, waiting=len(self.waiting))

        if len(self.waiting) < self.seats:
            return None

        connections, self.waiting = self.waiting[:self.seats], self.waiting[self.seats:]
        lobby_waiting.set(len(self.waiting))

        room_id = str(uuid.uuid4())
        transport = BufferedTransport(self.manager, connections)
        session = GameSession(connections, transport, rng=self._make_rng(), session_id=room_id)
        self.games_started += 1

        room = GameRoom(room_id=room_id, session=session, transport=transport)
        self.rooms[room_id] = room
        for connection in connections:
            self.connection_rooms[connection] = room_id
        active_games.inc()

        session.start()
        return room

    def get_room(self, connection_id: str) -> Optional[GameRoom]:
        """Get the room a connection is seated in."""
        room_id = self.connection_rooms.get(connection_id)
        return self.rooms.get(room_id) if room_id else None

    def leave(self, connection_id: str) -> Optional[GameRoom]:
        """Remove a connection; a seated player leaving ends their game.

        Returns the ended room so its queued messages can be flushed.
        """
        if connection_id in self.waiting:
            self.waiting.remove(connection_id)
            lobby_waiting.set(len(self.waiting))
            logger.info("lobby_left", connection_id=connection_id, waiting=len(self.waiting))
            return None

        room = self.get_room(connection_id)
        if room is None:
            return None

        room.session.on_disconnect(connection_id)
        for connection in room.connections:
            self.connection_rooms.pop(connection, None)
        del self.rooms[room.room_id]
        active_games.dec()
        logger.info("game_ended", room_id=room.room_id, left=connection_id)
        return room

    def list_rooms(self) -> List[GameRoom]:
        return list(self.rooms.values())
