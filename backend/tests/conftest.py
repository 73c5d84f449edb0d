"""
Pytest configuration: a recording transport, rigged dice and a small
hand-laid board so session tests can predict every payout.
"""
import random
import pytest

from engine import Board, GameSession, Terrain
from engine.constants import BOARD_SIZE, LAND_RINGS, LEFT, WEST, BuildType
from engine.geometry import ring


CONNECTIONS = ["conn-0", "conn-1", "conn-2", "conn-3"]

# Snake-order setup sites, one per step: settlement on (x, y, LEFT) and
# road on (x, y, WEST). LEFT vertices are never adjacent to each other.
SETUP_SITES = [
    (3, 3), (4, 3), (3, 2), (4, 2),
    (5, 2), (2, 4), (3, 4), (4, 4),
]
SETUP_ORDER = [0, 1, 2, 3, 3, 2, 1, 0]

ROBBER_TILE = (1, 3)


class RecordingTransport:
    """Transport that keeps every outbound message for inspection."""

    def __init__(self, connections):
        self.connections = list(connections)
        self.sent = []
        self.closed = []

    def send(self, connection_id, message):
        self.sent.append((connection_id, message))

    def broadcast(self, message):
        for connection_id in self.connections:
            self.send(connection_id, message)

    def close(self, connection_id):
        self.closed.append(connection_id)

    def messages(self, connection_id, name=None):
        return [
            message for target, message in self.sent
            if target == connection_id and (name is None or message["message"] == name)
        ]

    def last(self, connection_id, name=None):
        messages = self.messages(connection_id, name)
        return messages[-1] if messages else None

    def clear(self):
        self.sent.clear()
        self.closed.clear()


class FixedDice(random.Random):
    """Random whose randint answers come from a queue of rigged dice sums."""

    def __init__(self, seed=0):
        super().__init__(seed)
        self.queue = []

    def rig(self, *totals):
        for total in totals:
            first = min(6, total - 1)
            self.queue.extend([first, total - first])

    def randint(self, a, b):
        if self.queue:
            return self.queue.pop(0)
        return super().randint(a, b)


def make_test_board() -> Board:
    """Reference-shaped board with a known layout.

    (3,3) grain 6, (2,3) brick 8, (2,4) wood 5, (4,3) ore 9, (3,4) wool 10,
    desert with the robber on (1,3), every other land tile wool 12.
    """
    board = Board(BOARD_SIZE)
    cx = cy = BOARD_SIZE // 2
    special = {
        (3, 3): (Terrain.GRAIN, 6),
        (2, 3): (Terrain.BRICK, 8),
        (2, 4): (Terrain.WOOD, 5),
        (4, 3): (Terrain.ORE, 9),
        (3, 4): (Terrain.WOOL, 10),
        ROBBER_TILE: (Terrain.DESERT, None),
    }
    for radius in range(LAND_RINGS + 1):
        for tile in ring(cx, cy, radius):
            terrain, chit = special.get(tile, (Terrain.WOOL, 12))
            board.set_tile(*tile, terrain, chit)
    for tile in ring(cx, cy, LAND_RINGS + 1):
        board.set_tile(*tile, Terrain.OCEAN)
    board.robber = ROBBER_TILE
    return board


def build(kind, x, y, d):
    return {"message": "build", "type": kind.value, "x": x, "y": y, "d": d}


def run_setup(session, first_roll=6):
    """Play the whole setup draft; the opening roll of play is rigged."""
    session.rng.rig(first_roll)
    for step, player in enumerate(SETUP_ORDER):
        x, y = SETUP_SITES[step]
        connection = CONNECTIONS[player]
        session.on_message(connection, build(BuildType.SETTLEMENT, x, y, LEFT))
        session.on_message(connection, build(BuildType.ROAD, x, y, WEST))


@pytest.fixture
def transport():
    return RecordingTransport(CONNECTIONS)


@pytest.fixture
def dice():
    return FixedDice()


@pytest.fixture
def new_session(transport, dice):
    """A started session; player 0 opens the setup draft."""
    dice.rig(12, 2, 3, 4)
    session = GameSession(CONNECTIONS, transport, rng=dice, board=make_test_board())
    session.start()
    return session


@pytest.fixture
def session(new_session, transport):
    """A session past setup, in play, player 0 to act after rolling 6."""
    run_setup(new_session)
    transport.clear()
    return new_session
