"""
Outbound wire messages.

Every message is a JSON-serializable dict with a ``message`` discriminator.
Tallies are always emitted in enum declaration order.
"""
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .board import Board, Building
from .constants import BuildType, DevCard, Resource
from .player import PlayerAccount


def serialize_bundle(bundle: Mapping[Resource, int]) -> Dict[str, int]:
    """Resource bundle keyed by resource name."""
    return {resource.value: bundle.get(resource, 0) for resource in Resource}


def serialize_building(building: Optional[Building]) -> Optional[Dict[str, Any]]:
    if building is None:
        return None
    return {"player": building.owner, "type": building.kind.value}


def serialize_board(board: Board) -> Dict[str, Any]:
    """Full board snapshot, grids indexed [y][x]."""
    return {
        "size": board.size,
        "tiles": [
            [terrain.value if terrain else None for terrain in row]
            for row in board.tiles
        ],
        "chits": [list(row) for row in board.chits],
        "hit": {
            str(roll): [list(tile) for tile in tiles]
            for roll, tiles in sorted(board.hit.items())
        },
        "buildings": [
            [[serialize_building(b) for b in slots] for slots in row]
            for row in board.buildings
        ],
        "roads": [[list(slots) for slots in row] for row in board.roads],
        "robber": list(board.robber) if board.robber else None,
        "longestRoad": {"player": board.max_road_owner, "length": board.max_road_length},
        "largestArmy": {"player": board.max_army_owner, "size": board.max_army_size},
    }


def serialize_account(account: PlayerAccount) -> Dict[str, Any]:
    return {
        "resources": serialize_bundle(account.resources),
        "pieces": {kind.value: account.pieces[kind] for kind in BuildType},
        "cards": {card.value: count for card, count in account.card_counts().items()},
        "knights": account.knights,
    }


def start_message(board: Board, player: int, rolls: List[int]) -> Dict[str, Any]:
    return {
        "message": "start",
        "board": serialize_board(board),
        "player": player,
        "rolls": rolls,
    }


def turn_message(player: int, dice: Optional[int], start: bool = False,
                 setup: bool = False) -> Dict[str, Any]:
    message = {"message": "turn", "player": player, "dice": dice, "start": start}
    if setup:
        message["setup"] = True
    return message


def resources_message(account: PlayerAccount) -> Dict[str, Any]:
    return {"message": "resources", **serialize_account(account)}


def build_message(kind: BuildType, x: int, y: int, d: int, player: int) -> Dict[str, Any]:
    return {"message": "build", "type": kind.value, "x": x, "y": y, "d": d, "player": player}


def offer_message(offer: Mapping[Resource, int], player: int) -> Dict[str, Any]:
    return {"message": "offer", "offer": serialize_bundle(offer), "player": player}


def confirm_message(player: int) -> Dict[str, Any]:
    return {"message": "confirm", "player": player}


def develop_message(player: int, card: DevCard) -> Dict[str, Any]:
    return {"message": "develop", "player": player, "card": card.value}


def cancel_message() -> Dict[str, Any]:
    return {"message": "cancel"}


def discard_message(amount: int) -> Dict[str, Any]:
    return {"message": "discard", "amount": amount}


def robber_message(x: int, y: int, targets: Optional[Iterable[int]] = None) -> Dict[str, Any]:
    message = {"message": "robber", "x": x, "y": y}
    if targets is not None:
        message["targets"] = sorted(targets)
    return message


def steal_message(player: int, target: int) -> Dict[str, Any]:
    return {"message": "steal", "player": player, "target": target}


def records_message(board: Board) -> Dict[str, Any]:
    return {
        "message": "records",
        "longestRoad": {"player": board.max_road_owner, "length": board.max_road_length},
        "largestArmy": {"player": board.max_army_owner, "size": board.max_army_size},
    }


def chat_message(player: int, text: str) -> Dict[str, Any]:
    return {"message": "chat", "player": player, "text": text}


def error_message(reason: str) -> Dict[str, Any]:
    return {"message": "error", "error": reason}


def end_message() -> Dict[str, Any]:
    return {"message": "end"}
