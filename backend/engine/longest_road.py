"""
Longest road computation over one player's road network.

Roads are nodes, keyed by their canonical edge; two roads are neighbours when
they share an endpoint vertex. A first traversal from the newly built road
collects the terminal roads of its network, then a backtracking search from
each terminal measures the longest chain of connected roads.
"""
from typing import List, Set

from .board import Board
from .constants import PIECE_COUNTS, BuildType
from .geometry import Edge, endpoint_vertices, protrude_edges

# A chain can never be longer than the road supply
MAX_SEARCH_DEPTH = PIECE_COUNTS[BuildType.ROAD]


def road_neighbors(board: Board, edge: Edge, player: int) -> List[Edge]:
    """Roads of ``player`` sharing an endpoint with ``edge``."""
    neighbors = []
    for vertex in endpoint_vertices(*edge):
        for other in protrude_edges(*vertex):
            if other != edge and other not in neighbors and board.road_at(*other) == player:
                neighbors.append(other)
    return neighbors


def find_end_roads(board: Board, start: Edge, player: int) -> Set[Edge]:
    """Roads where a depth-first walk from ``start`` could go no further."""
    visited: Set[Edge] = set()
    ends: Set[Edge] = set()

    def visit(edge: Edge):
        visited.add(edge)
        advanced = False
        for other in road_neighbors(board, edge, player):
            if other not in visited:
                advanced = True
                visit(other)
        if not advanced:
            ends.add(edge)

    visit(start)
    return ends


def chain_length_from(board: Board, start: Edge, player: int) -> int:
    """Longest chain of roads beginning with ``start``."""
    visited = {start}

    def extend(edge: Edge, depth: int) -> int:
        if depth >= MAX_SEARCH_DEPTH:
            return depth
        best = depth
        for other in road_neighbors(board, edge, player):
            if other in visited:
                continue
            visited.add(other)
            best = max(best, extend(other, depth + 1))
            visited.remove(other)
        return best

    return extend(start, 1)


def longest_road(board: Board, edge: Edge, player: int) -> int:
    """Length of the longest chain in the network containing ``edge``."""
    if board.road_at(*edge) != player:
        return 0
    ends = find_end_roads(board, edge, player) or {edge}
    return max(chain_length_from(board, end, player) for end in ends)


def update_longest_road(board: Board, edge: Edge, player: int) -> bool:
    """Recompute after a road build; True when the Longest Road record moved."""
    return board.record_road(player, longest_road(board, edge, player))
