"""
Board state: terrain grid, chit index, occupancy grids, robber and bonus records.

The board is the single source of truth for piece placement. Every placement
is validated first and only then applied, so a rejected build leaves the
board untouched.
"""
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from .constants import (
    BOARD_SIZE,
    LAND_RINGS,
    CHIT_POOL,
    EDGE_SLOTS,
    VERTEX_SLOTS,
    INITIAL_MAX_ARMY,
    INITIAL_MAX_ROAD,
    BuildType,
    Terrain,
    terrain_pool,
)
from .errors import GameError, BUILD, ROBBER
from .geometry import (
    Tile,
    Vertex,
    corner_vertices,
    endpoint_vertices,
    protrude_edges,
    adjacent_vertices,
    joining_tiles,
    touches_tiles,
    ring,
)


@dataclass(frozen=True)
class Building:
    """A settlement or city on a vertex."""
    owner: int
    kind: BuildType


class Board:
    """Tile grid plus building/road occupancy for one game."""

    def __init__(self, size: int = BOARD_SIZE):
        self.size = size
        # All grids are indexed [y][x]
        self.tiles: List[List[Optional[Terrain]]] = [[None] * size for _ in range(size)]
        self.chits: List[List[Optional[int]]] = [[None] * size for _ in range(size)]
        self.hit: Dict[int, List[Tile]] = {}
        self.buildings: List[List[List[Optional[Building]]]] = [
            [[None] * VERTEX_SLOTS for _ in range(size)] for _ in range(size)
        ]
        self.roads: List[List[List[Optional[int]]]] = [
            [[None] * EDGE_SLOTS for _ in range(size)] for _ in range(size)
        ]
        self.robber: Optional[Tile] = None
        self.max_road_length = INITIAL_MAX_ROAD
        self.max_road_owner: Optional[int] = None
        self.max_army_size = INITIAL_MAX_ARMY
        self.max_army_owner: Optional[int] = None

    @classmethod
    def generate(cls, rng: Optional[random.Random] = None, size: int = BOARD_SIZE,
                 land_rings: int = LAND_RINGS) -> "Board":
        """Create a randomized board.

        Land fills the centre and the first ``land_rings`` rings, ocean the
        ring after that. Terrains are shuffled; chits are rotated by a random
        offset and handed out in ring order, skipping the desert.
        """
        rng = rng or random.Random()
        board = cls(size)
        cx = cy = size // 2

        land = []
        for radius in range(land_rings + 1):
            land.extend(ring(cx, cy, radius))

        terrains = terrain_pool()
        if len(land) != len(terrains):
            raise ValueError(
                f"Board with {land_rings} land rings has {len(land)} land tiles, "
                f"terrain pool has {len(terrains)}"
            )
        rng.shuffle(terrains)

        offset = rng.randrange(len(CHIT_POOL))
        chits = CHIT_POOL[offset:] + CHIT_POOL[:offset]

        for x, y in land:
            terrain = terrains.pop()
            if terrain is Terrain.DESERT:
                board.set_tile(x, y, terrain)
                board.robber = (x, y)
            else:
                board.set_tile(x, y, terrain, chits.pop())

        for x, y in ring(cx, cy, land_rings + 1):
            board.set_tile(x, y, Terrain.OCEAN)

        return board

    def set_tile(self, x: int, y: int, terrain: Terrain, chit: Optional[int] = None):
        """Place a tile and index its chit."""
        self.tiles[y][x] = terrain
        self.chits[y][x] = chit
        if chit is not None:
            self.hit.setdefault(chit, []).append((x, y))

    # Lookups

    def has_tile(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def terrain_at(self, x: int, y: int) -> Optional[Terrain]:
        if not self.has_tile(x, y):
            return None
        return self.tiles[y][x]

    def is_land(self, x: int, y: int) -> bool:
        terrain = self.terrain_at(x, y)
        return terrain is not None and terrain.is_land

    def has_vertex(self, x: int, y: int, d: int) -> bool:
        return self.has_tile(x, y) and 0 <= d < VERTEX_SLOTS

    def has_edge(self, x: int, y: int, d: int) -> bool:
        return self.has_tile(x, y) and 0 <= d < EDGE_SLOTS

    def building_at(self, x: int, y: int, d: int) -> Optional[Building]:
        if not self.has_vertex(x, y, d):
            return None
        return self.buildings[y][x][d]

    def road_at(self, x: int, y: int, d: int) -> Optional[int]:
        if not self.has_edge(x, y, d):
            return None
        return self.roads[y][x][d]

    def land_tiles(self) -> List[Tile]:
        return [
            (x, y)
            for y in range(self.size)
            for x in range(self.size)
            if self.is_land(x, y)
        ]

    def hit_tiles(self, roll: int) -> List[Tile]:
        """Tiles whose chit matches a dice sum."""
        return list(self.hit.get(roll, []))

    def corner_buildings(self, x: int, y: int) -> List[Building]:
        """Buildings on the corners of a tile, one entry per building."""
        buildings = []
        for vx, vy, vd in corner_vertices(x, y):
            building = self.building_at(vx, vy, vd)
            if building:
                buildings.append(building)
        return buildings

    # Placement validation

    def check_road(self, x: int, y: int, d: int, player: int, setup: bool = False,
                   anchor: Optional[Vertex] = None):
        """Raise GameError unless ``player`` may place a road on edge (x, y, d)."""
        if not self.has_edge(x, y, d):
            raise GameError(BUILD, f"Edge {(x, y, d)} is off the board")
        if self.roads[y][x][d] is not None:
            raise GameError(BUILD, f"Edge {(x, y, d)} already holds a road")
        if not any(self.is_land(tx, ty) for tx, ty in joining_tiles(x, y, d)):
            raise GameError(BUILD, f"Edge {(x, y, d)} does not border land")

        endpoints = endpoint_vertices(x, y, d)
        if setup:
            if anchor is None or tuple(anchor) not in endpoints:
                raise GameError(BUILD, "Setup road must touch the settlement just placed")
            return

        for ex, ey, ed in endpoints:
            building = self.building_at(ex, ey, ed)
            if building and building.owner == player:
                return
            for px, py, pd in protrude_edges(ex, ey, ed):
                if self.road_at(px, py, pd) == player:
                    return
        raise GameError(BUILD, f"Edge {(x, y, d)} is not connected to player {player}")

    def check_settlement(self, x: int, y: int, d: int, player: int, setup: bool = False):
        """Raise GameError unless ``player`` may place a settlement on vertex (x, y, d)."""
        if not self.has_vertex(x, y, d):
            raise GameError(BUILD, f"Vertex {(x, y, d)} is off the board")
        if self.buildings[y][x][d] is not None:
            raise GameError(BUILD, f"Vertex {(x, y, d)} is occupied")
        if not any(self.is_land(tx, ty) for tx, ty in touches_tiles(x, y, d)):
            raise GameError(BUILD, f"Vertex {(x, y, d)} does not touch land")
        for ax, ay, ad in adjacent_vertices(x, y, d):
            if self.building_at(ax, ay, ad) is not None:
                raise GameError(BUILD, f"Vertex {(x, y, d)} is next to another building")
        if setup:
            return
        if not any(self.road_at(px, py, pd) == player for px, py, pd in protrude_edges(x, y, d)):
            raise GameError(BUILD, f"Vertex {(x, y, d)} is not on a road of player {player}")

    def check_city(self, x: int, y: int, d: int, player: int):
        """Raise GameError unless ``player`` owns a settlement on vertex (x, y, d)."""
        building = self.building_at(x, y, d)
        if building is None or building.owner != player or building.kind is not BuildType.SETTLEMENT:
            raise GameError(BUILD, f"No settlement of player {player} at {(x, y, d)}")

    def check(self, kind: BuildType, x: int, y: int, d: int, player: int,
              setup: bool = False, anchor: Optional[Vertex] = None):
        if kind is BuildType.ROAD:
            self.check_road(x, y, d, player, setup, anchor)
        elif kind is BuildType.SETTLEMENT:
            self.check_settlement(x, y, d, player, setup)
        elif kind is BuildType.CITY:
            if setup:
                raise GameError(BUILD, "Cities cannot be placed during setup")
            self.check_city(x, y, d, player)
        else:
            raise GameError(BUILD, f"Unknown build type {kind}")

    # Mutation

    def build(self, kind: BuildType, x: int, y: int, d: int, player: int,
              setup: bool = False, anchor: Optional[Vertex] = None):
        """Validate and place a piece. Raises GameError and changes nothing on failure."""
        self.check(kind, x, y, d, player, setup, anchor)
        if kind is BuildType.ROAD:
            self.roads[y][x][d] = player
        else:
            self.buildings[y][x][d] = Building(owner=player, kind=kind)

    def build_road(self, x: int, y: int, d: int, player: int, setup: bool = False,
                   anchor: Optional[Vertex] = None):
        self.build(BuildType.ROAD, x, y, d, player, setup, anchor)

    def build_settlement(self, x: int, y: int, d: int, player: int, setup: bool = False):
        self.build(BuildType.SETTLEMENT, x, y, d, player, setup)

    def build_city(self, x: int, y: int, d: int, player: int):
        self.build(BuildType.CITY, x, y, d, player)

    # Robber

    def check_robber(self, x: int, y: int):
        if not self.is_land(x, y):
            raise GameError(ROBBER, f"Tile {(x, y)} is not land")
        if self.robber == (x, y):
            raise GameError(ROBBER, f"Robber is already on {(x, y)}")

    def move_robber(self, x: int, y: int):
        self.check_robber(x, y)
        self.robber = (x, y)

    def robber_targets(self, x: int, y: int, exclude: Optional[int] = None) -> Set[int]:
        """Distinct owners of buildings on the tile's corners, minus ``exclude``."""
        return {
            building.owner
            for building in self.corner_buildings(x, y)
            if building.owner != exclude
        }

    # Bonus records

    def record_road(self, player: int, length: int) -> bool:
        """Claim Longest Road if ``length`` strictly beats the record."""
        if length <= self.max_road_length:
            return False
        self.max_road_length = length
        self.max_road_owner = player
        return True

    def record_army(self, player: int, size: int) -> bool:
        """Claim Largest Army if ``size`` strictly beats the record."""
        if size <= self.max_army_size:
            return False
        self.max_army_size = size
        self.max_army_owner = player
        return True
