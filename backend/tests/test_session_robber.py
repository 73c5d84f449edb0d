"""
Tests for the robber: discards on a 7, moving the robber, stealing.
"""
import pytest

from engine import PhaseKind, Resource

from conftest import ROBBER_TILE


def give(account, **amounts):
    for resource in Resource:
        account.resources[resource] = amounts.get(resource.value, 0)


@pytest.fixture
def robbed(session):
    """Player 0 ends the turn and player 1 rolls a 7.

    Player 2 holds 9 cards and owes 4, player 3 holds 8 and owes 4,
    player 0 holds 7 and owes nothing.
    """
    give(session.players[0], wool=7)
    give(session.players[1], grain=1)
    give(session.players[2], wool=5, ore=4)
    give(session.players[3], brick=8)
    session.rng.rig(7)
    session.on_message("conn-0", {"message": "turn"})
    return session


def test_seven_opens_robber_phase(robbed, transport):
    """A 7 pays nothing and asks the large hands to discard half."""
    assert robbed.turn == 1
    assert robbed.phase.kind is PhaseKind.ROBBER
    assert robbed.phase.discards == {2: 4, 3: 4}
    assert transport.last("conn-2", "discard") == {"message": "discard", "amount": 4}
    assert transport.last("conn-0", "discard") is None
    assert transport.last("conn-0", "turn")["dice"] == 7


def test_discard_must_match_exactly(robbed, transport):
    """Too few cards are rejected and nothing is removed."""
    robbed.on_message("conn-2", {"message": "discard", "resources": {"wool": 3}})
    assert transport.last("conn-2") == {"message": "error", "error": "discard"}
    assert robbed.players[2].resource_count() == 9
    assert robbed.phase.discards[2] == 4


def test_discard_clears_only_that_player(robbed, transport):
    """A correct discard settles that seat and leaves the others pending."""
    robbed.on_message("conn-2", {"message": "discard", "resources": {"wool": 2, "ore": 2}})
    assert robbed.players[2].resource_count() == 5
    assert robbed.phase.discards == {2: 0, 3: 4}
    assert transport.last("conn-2", "discard") == {"message": "discard", "amount": 0}


def test_discard_alias_and_holdings(robbed, transport):
    """The old message name works; cards not held cannot be discarded."""
    robbed.on_message("conn-3", {"message": "discardResources", "resources": {"ore": 4}})
    assert transport.last("conn-3") == {"message": "error", "error": "discard"}
    robbed.on_message("conn-3", {"message": "discardResources", "resources": {"brick": 4}})
    assert robbed.players[3].resources[Resource.BRICK] == 4


def test_discard_from_player_who_owes_nothing(robbed, transport):
    robbed.on_message("conn-0", {"message": "discard", "resources": {"wool": 3}})
    assert transport.last("conn-0") == {"message": "error", "error": "discard"}


def test_robber_waits_for_discards(robbed, transport):
    """The robber cannot move while discards are outstanding."""
    robbed.on_message("conn-1", {"message": "robber", "x": 3, "y": 3})
    assert transport.last("conn-1") == {"message": "error", "error": "robber"}
    assert robbed.board.robber == ROBBER_TILE


def discard_all(session):
    session.on_message("conn-2", {"message": "discard", "resources": {"wool": 4}})
    session.on_message("conn-3", {"message": "discard", "resources": {"brick": 4}})


def test_only_current_player_moves_robber(robbed, transport):
    discard_all(robbed)
    robbed.on_message("conn-2", {"message": "robber", "x": 3, "y": 3})
    assert transport.last("conn-2") == {"message": "error", "error": "turn"}


def test_robber_must_move(robbed, transport):
    """The robber has to leave its tile, and only onto land."""
    discard_all(robbed)
    robbed.on_message("conn-1", {"message": "robber", "x": ROBBER_TILE[0], "y": ROBBER_TILE[1]})
    assert transport.last("conn-1") == {"message": "error", "error": "robber"}
    robbed.on_message("conn-1", {"message": "robber", "x": 0, "y": 3})
    assert transport.last("conn-1") == {"message": "error", "error": "robber"}


def test_move_and_steal(robbed, transport):
    """The mover picks a target among the tile's other owners with cards."""
    discard_all(robbed)
    robbed.on_message("conn-1", {"message": "moveRobber", "x": 3, "y": 3})
    assert robbed.board.robber == (3, 3)
    # corners of (3,3): player 0 (3,3,L), player 1 (4,3,L), player 3 (4,2,L)
    assert transport.last("conn-1", "robber")["targets"] == [0, 3]
    assert robbed.phase.kind is PhaseKind.ROBBER

    robbed.on_message("conn-1", {"message": "steal", "player": 2})
    assert transport.last("conn-1") == {"message": "error", "error": "steal"}

    robbed.on_message("conn-1", {"message": "steal", "player": 0})
    assert robbed.players[0].resources[Resource.WOOL] == 6
    assert robbed.players[1].resources[Resource.WOOL] == 1
    assert robbed.phase.kind is PhaseKind.PLAY


def test_empty_hands_are_not_targets(robbed, transport):
    """Players without cards cannot be robbed."""
    discard_all(robbed)
    give(robbed.players[0])
    robbed.on_message("conn-1", {"message": "robber", "x": 3, "y": 3})
    assert transport.last("conn-1", "robber")["targets"] == [3]


def test_no_target_resolves_immediately(robbed, transport):
    """Moving onto a tile with no one to rob ends the robber phase."""
    discard_all(robbed)
    robbed.on_message("conn-1", {"message": "robber", "x": 5, "y": 1})
    assert transport.last("conn-1", "robber")["targets"] == []
    assert robbed.phase.kind is PhaseKind.PLAY


def test_own_building_only_resolves_without_steal(robbed, transport):
    """The mover is never their own target, so the steal step is skipped."""
    discard_all(robbed)
    # player 1's (3, 4, LEFT) is the only building around (2, 5)
    owners = [building.owner for building in robbed.board.corner_buildings(2, 5)]
    assert owners == [1]
    assert robbed.players[1].resource_count() > 0

    robbed.on_message("conn-1", {"message": "robber", "x": 2, "y": 5})
    assert robbed.board.robber == (2, 5)
    assert transport.last("conn-1", "robber")["targets"] == []
    assert transport.last("conn-0", "robber") == {"message": "robber", "x": 2, "y": 5}
    assert robbed.phase.kind is PhaseKind.PLAY
    assert transport.last("conn-0", "steal") is None

    robbed.on_message("conn-1", {"message": "steal", "player": 1})
    assert transport.last("conn-1") == {"message": "error", "error": "message"}
    assert robbed.phase.kind is PhaseKind.PLAY


def test_steal_before_move(robbed, transport):
    discard_all(robbed)
    robbed.on_message("conn-1", {"message": "steal", "player": 0})
    assert transport.last("conn-1") == {"message": "error", "error": "steal"}


def test_turn_waits_for_robber(robbed, transport):
    """Ending the turn is not accepted until the robber phase resolves."""
    robbed.on_message("conn-1", {"message": "turn"})
    assert transport.last("conn-1") == {"message": "error", "error": "message"}
    assert robbed.turn == 1
