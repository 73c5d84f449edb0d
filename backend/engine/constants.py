"""
Enums and fixed tables for the board game rules.
"""
from enum import Enum
from typing import Dict, List, Optional


class Resource(Enum):
    """Resource types, in wire/tally order."""
    ORE = "ore"
    WOOD = "wood"
    WOOL = "wool"
    GRAIN = "grain"
    BRICK = "brick"


class Terrain(Enum):
    """Terrain of a board tile."""
    DESERT = "desert"
    ORE = "ore"
    WOOD = "wood"
    WOOL = "wool"
    GRAIN = "grain"
    BRICK = "brick"
    OCEAN = "ocean"

    @property
    def is_land(self) -> bool:
        return self is not Terrain.OCEAN

    @property
    def resource(self) -> Optional[Resource]:
        """Resource produced by this terrain, None for desert and ocean."""
        if self in (Terrain.DESERT, Terrain.OCEAN):
            return None
        return Resource(self.value)


class BuildType(Enum):
    """Pieces a player can place on the board."""
    ROAD = "road"
    SETTLEMENT = "settlement"
    CITY = "city"


class DevCard(Enum):
    """Development card kinds."""
    KNIGHT = "knight"
    YEAR_OF_PLENTY = "year_of_plenty"
    MONOPOLY = "monopoly"
    VICTORY_POINT = "victory_point"
    ROAD_BUILDING = "road_building"


# Vertex and edge slot directions
LEFT, RIGHT = 0, 1
WEST, NORTH, EAST = 0, 1, 2

VERTEX_SLOTS = 2
EDGE_SLOTS = 3

# Reference board: 7x7 grid, two land rings around the centre, ocean on ring 3
BOARD_SIZE = 7
LAND_RINGS = 2

# Ring walk directions (dx, dy)
DIRECTIONS = [(0, 1), (1, 0), (1, -1), (0, -1), (-1, 0), (-1, 1)]

TERRAIN_COUNTS = {
    Terrain.DESERT: 1,
    Terrain.ORE: 3,
    Terrain.BRICK: 3,
    Terrain.WOOD: 4,
    Terrain.GRAIN: 4,
    Terrain.WOOL: 4,
}

CHIT_POOL = [5, 2, 6, 3, 8, 10, 9, 12, 11, 4, 8, 10, 9, 4, 5, 6, 3, 11]

DEV_CARD_COUNTS = {
    DevCard.KNIGHT: 14,
    DevCard.VICTORY_POINT: 5,
    DevCard.YEAR_OF_PLENTY: 2,
    DevCard.MONOPOLY: 2,
    DevCard.ROAD_BUILDING: 2,
}

BUILD_COSTS: Dict[BuildType, Dict[Resource, int]] = {
    BuildType.ROAD: {Resource.WOOD: 1, Resource.BRICK: 1},
    BuildType.SETTLEMENT: {
        Resource.WOOD: 1,
        Resource.BRICK: 1,
        Resource.GRAIN: 1,
        Resource.WOOL: 1,
    },
    BuildType.CITY: {Resource.GRAIN: 2, Resource.ORE: 3},
}

DEV_CARD_COST = {Resource.GRAIN: 1, Resource.WOOL: 1, Resource.ORE: 1}

PIECE_COUNTS = {
    BuildType.ROAD: 15,
    BuildType.SETTLEMENT: 5,
    BuildType.CITY: 4,
}

# Largest Army needs 3 knights, Longest Road 5 segments
INITIAL_MAX_ARMY = 2
INITIAL_MAX_ROAD = 4

DISCARD_THRESHOLD = 7
ROBBER_ROLL = 7

PLAYER_COUNT = 4
CHAT_MAX_LENGTH = 256


def terrain_pool() -> List[Terrain]:
    """Unshuffled land terrain multiset for the reference board."""
    pool = []
    for terrain, count in TERRAIN_COUNTS.items():
        pool.extend([terrain] * count)
    return pool


def development_deck() -> List[DevCard]:
    """Unshuffled development card multiset."""
    deck = []
    for card, count in DEV_CARD_COUNTS.items():
        deck.extend([card] * count)
    return deck
