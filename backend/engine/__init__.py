"""
Rules engine for the four-player board game.
No web framework dependencies - pure Python game logic.
"""
from .board import Board, Building
from .constants import BuildType, DevCard, Resource, Terrain
from .errors import GameError
from .longest_road import longest_road, update_longest_road
from .messages import parse_message
from .player import PlayerAccount
from .serialization import serialize_account, serialize_board
from .session import (
    GameSession,
    PhaseKind,
    PlayPhase,
    RobberPhase,
    SetupPhase,
    TradePhase,
    Transport,
)

__all__ = [
    "Board",
    "Building",
    "BuildType",
    "DevCard",
    "Resource",
    "Terrain",
    "GameError",
    "longest_road",
    "update_longest_road",
    "parse_message",
    "PlayerAccount",
    "serialize_account",
    "serialize_board",
    "GameSession",
    "PhaseKind",
    "PlayPhase",
    "RobberPhase",
    "SetupPhase",
    "TradePhase",
    "Transport",
]
