"""
Hex mesh adjacency on the square tile grid.

Tiles are addressed by (x, y). Each physical vertex has exactly one canonical
(x, y, d) with d in {LEFT, RIGHT}, and each physical edge exactly one
canonical (x, y, d) with d in {WEST, NORTH, EAST}. All relations are fixed
offsets; nothing here checks grid bounds.
"""
from typing import List, Tuple

from .constants import DIRECTIONS, LEFT, RIGHT, WEST, NORTH, EAST

Tile = Tuple[int, int]
Vertex = Tuple[int, int, int]
Edge = Tuple[int, int, int]


def corner_vertices(x: int, y: int) -> List[Vertex]:
    """The six corner vertices of a tile."""
    return [
        (x, y, RIGHT), (x + 1, y, LEFT), (x - 1, y + 1, RIGHT),
        (x, y, LEFT), (x - 1, y, RIGHT), (x + 1, y - 1, LEFT),
    ]


def endpoint_vertices(x: int, y: int, d: int) -> List[Vertex]:
    """The two vertices at the ends of an edge."""
    if d == WEST:
        return [(x - 1, y + 1, RIGHT), (x, y, LEFT)]
    if d == NORTH:
        return [(x + 1, y, LEFT), (x - 1, y + 1, RIGHT)]
    if d == EAST:
        return [(x, y, RIGHT), (x + 1, y, LEFT)]
    raise ValueError(f"Invalid edge direction {d}")


def protrude_edges(x: int, y: int, d: int) -> List[Edge]:
    """The three edges meeting at a vertex."""
    if d == LEFT:
        return [(x, y, WEST), (x - 1, y, EAST), (x - 1, y, NORTH)]
    if d == RIGHT:
        return [(x + 1, y - 1, NORTH), (x + 1, y - 1, WEST), (x, y, EAST)]
    raise ValueError(f"Invalid vertex direction {d}")


def adjacent_vertices(x: int, y: int, d: int) -> List[Vertex]:
    """The three vertices one edge away from a vertex."""
    if d == LEFT:
        return [(x - 1, y + 1, RIGHT), (x - 1, y, RIGHT), (x - 2, y + 1, RIGHT)]
    if d == RIGHT:
        return [(x + 2, y - 1, LEFT), (x + 1, y - 1, LEFT), (x + 1, y, LEFT)]
    raise ValueError(f"Invalid vertex direction {d}")


def joining_tiles(x: int, y: int, d: int) -> List[Tile]:
    """The two tiles on either side of an edge."""
    if d == WEST:
        return [(x, y), (x - 1, y + 1)]
    if d == NORTH:
        return [(x, y + 1), (x, y)]
    if d == EAST:
        return [(x + 1, y), (x, y)]
    raise ValueError(f"Invalid edge direction {d}")


def touches_tiles(x: int, y: int, d: int) -> List[Tile]:
    """The three tiles meeting at a vertex."""
    if d == LEFT:
        return [(x, y), (x - 1, y), (x - 1, y + 1)]
    if d == RIGHT:
        return [(x + 1, y), (x + 1, y - 1), (x, y)]
    raise ValueError(f"Invalid vertex direction {d}")


def ring(cx: int, cy: int, radius: int) -> List[Tile]:
    """Tiles at a given distance from a centre, in walk order."""
    if radius == 0:
        return [(cx, cy)]
    dx0, dy0 = DIRECTIONS[4]
    tx, ty = cx + dx0 * radius, cy + dy0 * radius
    tiles = []
    for dx, dy in DIRECTIONS:
        for _ in range(radius):
            tiles.append((tx, ty))
            tx += dx
            ty += dy
    return tiles
