"""
Tests for inbound message parsing and outbound serialization.
"""
import random

import pytest

from engine import Board, BuildType, DevCard, GameError, Resource, parse_message
from engine.messages import BuildMessage, DevelopMessage, DiscardMessage, RobberMessage
from engine.serialization import error_message, serialize_board, turn_message


def test_parse_build():
    message = parse_message({"message": "build", "type": "road", "x": 2, "y": 3, "d": 1})
    assert isinstance(message, BuildMessage)
    assert message.type is BuildType.ROAD
    assert (message.x, message.y, message.d) == (2, 3, 1)


def test_parse_ignores_extra_fields():
    """Unknown keys are dropped rather than rejected."""
    message = parse_message({"message": "robber", "x": 1, "y": 2, "player": 3})
    assert isinstance(message, RobberMessage)


def test_parse_aliases():
    """Older message names map onto the current ones."""
    message = parse_message({"message": "discardResources", "resources": {"ore": 1}})
    assert isinstance(message, DiscardMessage)
    assert message.message == "discard"
    assert message.resources == {Resource.ORE: 1}
    assert isinstance(parse_message({"message": "moveRobber", "x": 1, "y": 1}), RobberMessage)


def test_parse_develop_variants():
    message = parse_message({"message": "develop", "card": "monopoly", "resource": "grain"})
    assert isinstance(message, DevelopMessage)
    assert message.card is DevCard.MONOPOLY
    assert message.resource is Resource.GRAIN

    message = parse_message({"message": "develop", "card": "year_of_plenty",
                             "resources": ["wood", "wood"]})
    assert message.resources == [Resource.WOOD, Resource.WOOD]


@pytest.mark.parametrize("data", [
    None,
    [],
    "build",
    {"type": "road"},
    {"message": 5},
    {"message": "build", "type": "road", "x": 1, "y": 1},
    {"message": "build", "type": "tower", "x": 1, "y": 1, "d": 0},
    {"message": "develop", "card": "joker"},
    {"message": "discard", "resources": {"gold": 1}},
    {"message": "offer", "offer": {"wool": -2}},
])
def test_malformed(data):
    """Payloads that do not validate are malformedMessage."""
    with pytest.raises(GameError) as exc_info:
        parse_message(data)
    assert exc_info.value.reason == "malformedMessage"


def test_unknown_message():
    """A well-formed but unknown name is a message error."""
    with pytest.raises(GameError) as exc_info:
        parse_message({"message": "trade_with_bank"})
    assert exc_info.value.reason == "message"


def test_board_snapshot():
    """The board snapshot is plain JSON data."""
    board = Board.generate(random.Random(5))
    data = serialize_board(board)
    assert data["size"] == 7
    assert len(data["tiles"]) == 7
    assert data["tiles"][3][3] in {"desert", "ore", "wood", "wool", "grain", "brick"}
    assert data["tiles"][3][0] == "ocean"
    assert data["roads"][0][0] == [None, None, None]
    assert data["longestRoad"] == {"player": None, "length": 4}
    assert data["largestArmy"] == {"player": None, "size": 2}
    assert sum(len(tiles) for tiles in data["hit"].values()) == 18


def test_small_messages():
    assert error_message("turn") == {"message": "error", "error": "turn"}
    assert turn_message(2, 8) == {"message": "turn", "player": 2, "dice": 8, "start": False}
    assert turn_message(1, None, setup=True)["setup"] is True
