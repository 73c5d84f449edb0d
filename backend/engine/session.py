"""
Turn protocol for one four-player game.

A GameSession owns the Board and the PlayerAccounts and consumes one inbound
message at a time. The active phase is one of four variants:

    SetupPhase -> PlayPhase <-> {TradePhase, RobberPhase}

Each variant carries only its own state; a transition replaces the active
variant. Every handler validates before it mutates, so a rejected message
(reported as ``error{error: reason}`` to its sender) leaves no trace.
"""
import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Protocol, Sequence, Set, Union

import structlog

from .board import Board
from .constants import (
    CHAT_MAX_LENGTH,
    DISCARD_THRESHOLD,
    PLAYER_COUNT,
    ROBBER_ROLL,
    BuildType,
    DevCard,
    Resource,
    development_deck,
)
from .errors import (
    GameError,
    BUILD,
    BUY_DEVELOP,
    CANCEL,
    CONFIRM,
    DEVELOP,
    DISCARD,
    MALFORMED,
    MESSAGE,
    OFFER,
    ROBBER,
    STEAL,
    TURN,
)
from .geometry import Edge, Vertex, touches_tiles
from .longest_road import update_longest_road
from .messages import (
    BuildMessage,
    BuyDevelopMessage,
    CancelMessage,
    ChatMessage,
    ConfirmMessage,
    DevelopMessage,
    DiscardMessage,
    InboundMessage,
    OfferMessage,
    RobberMessage,
    StealMessage,
    TurnMessage,
    parse_message,
)
from .player import PlayerAccount, count_resources, empty_hand
from .serialization import (
    build_message,
    cancel_message,
    chat_message,
    confirm_message,
    develop_message,
    discard_message,
    end_message,
    error_message,
    offer_message,
    records_message,
    resources_message,
    robber_message,
    start_message,
    steal_message,
    turn_message,
)

logger = structlog.get_logger("engine.session")


class Transport(Protocol):
    """Outbound side of the connection layer."""

    def send(self, connection_id: str, message: Dict[str, Any]) -> None:
        ...

    def broadcast(self, message: Dict[str, Any]) -> None:
        ...

    def close(self, connection_id: str) -> None:
        ...


class PhaseKind(Enum):
    SETUP = "setup"
    PLAY = "play"
    TRADE = "trade"
    ROBBER = "robber"


@dataclass
class SetupPhase:
    """Snake-order draft: each seat places a settlement, then a road next to it."""
    kind: ClassVar[PhaseKind] = PhaseKind.SETUP
    order: List[int]
    step: int = 0
    # settlement placed this step, the road must touch it
    anchor: Optional[Vertex] = None

    @property
    def current(self) -> int:
        return self.order[self.step]

    @property
    def second_round(self) -> bool:
        return self.step >= len(self.order) // 2


@dataclass
class PlayPhase:
    kind: ClassVar[PhaseKind] = PhaseKind.PLAY


@dataclass
class TradePhase:
    """Open offers keyed by the offering seat."""
    kind: ClassVar[PhaseKind] = PhaseKind.TRADE
    offers: Dict[int, Dict[Resource, int]] = field(default_factory=dict)


@dataclass
class RobberPhase:
    """Discards, then the robber move, then an optional steal."""
    kind: ClassVar[PhaseKind] = PhaseKind.ROBBER
    discards: Dict[int, int] = field(default_factory=dict)
    moved: bool = False
    stolen: bool = False
    targets: Set[int] = field(default_factory=set)

    @property
    def pending_discards(self) -> int:
        return sum(self.discards.values())

    @property
    def resolved(self) -> bool:
        return self.pending_discards == 0 and self.moved and self.stolen


Phase = Union[SetupPhase, PlayPhase, TradePhase, RobberPhase]


@dataclass
class TurnState:
    """Allowances that reset when the turn passes."""
    developed: bool = False
    free_roads: int = 0


class GameSession:
    """Rules engine and message dispatch for one game."""

    def __init__(
        self,
        connections: Sequence[str],
        transport: Transport,
        rng: Optional[random.Random] = None,
        board: Optional[Board] = None,
        session_id: Optional[str] = None,
    ):
        if len(connections) != PLAYER_COUNT:
            raise ValueError(f"A game needs exactly {PLAYER_COUNT} players, got {len(connections)}")

        self.session_id = session_id or str(uuid.uuid4())
        self.connections = list(connections)
        self.transport = transport
        self.rng = rng or random.Random()
        self.board = board or Board.generate(self.rng)
        self.players = [PlayerAccount() for _ in self.connections]
        self.deck: List[DevCard] = development_deck()
        self.rng.shuffle(self.deck)

        self.turn = 0
        self.dice: Optional[int] = None
        self.turn_state = TurnState()
        self.phase: Optional[Phase] = None
        self.finished = False

    # Lifecycle

    def start(self):
        """Send the board to every seat and open the setup draft."""
        rolls = [self.roll_dice() for _ in self.players]
        first = rolls.index(max(rolls))
        count = len(self.players)
        forward = [(first + i) % count for i in range(count)]

        self.phase = SetupPhase(order=forward + forward[::-1])
        self.turn = first

        for player, connection in enumerate(self.connections):
            self.transport.send(connection, start_message(self.board, player, rolls))
        self.transport.broadcast(turn_message(first, None, setup=True))
        logger.info("session_started", session_id=self.session_id, first_player=first, rolls=rolls)

    def on_message(self, connection_id: str, data: Any):
        """Apply one inbound message, or report why it was rejected."""
        if self.finished:
            return
        if connection_id not in self.connections:
            logger.warning("unknown_connection", session_id=self.session_id, connection_id=connection_id)
            return

        player = self.connections.index(connection_id)
        try:
            message = parse_message(data)
            self._dispatch(player, message)
        except GameError as e:
            logger.debug(
                "message_rejected",
                session_id=self.session_id,
                player=player,
                reason=e.reason,
                detail=e.detail,
            )
            self.transport.send(connection_id, error_message(e.reason))

    def on_disconnect(self, connection_id: str):
        """A seat left: every other seat is told the game is over and closed."""
        if self.finished:
            return
        logger.info("player_disconnected", session_id=self.session_id, connection_id=connection_id)
        self.finished = True
        for connection in self.connections:
            if connection == connection_id:
                continue
            self.transport.send(connection, end_message())
            self.transport.close(connection)

    def end(self):
        if self.finished:
            return
        self.finished = True
        self.transport.broadcast(end_message())
        for connection in self.connections:
            self.transport.close(connection)
        logger.info("session_ended", session_id=self.session_id)

    # Helpers

    def roll_dice(self) -> int:
        return self.rng.randint(1, 6) + self.rng.randint(1, 6)

    def _send(self, player: int, message: Dict[str, Any]):
        self.transport.send(self.connections[player], message)

    def _send_resources(self, *players: int):
        for player in players:
            self._send(player, resources_message(self.players[player]))

    def _after_road(self, player: int, edge: Edge):
        if update_longest_road(self.board, edge, player):
            self.transport.broadcast(records_message(self.board))

    def _validate_offer(self, player: int, offer: Mapping[Resource, int]) -> Dict[Resource, int]:
        bundle = empty_hand()
        bundle.update(offer)
        if count_resources(bundle) == 0:
            raise GameError(OFFER, "Offer is empty")
        if not self.players[player].has_resources(bundle):
            raise GameError(OFFER, f"Player {player} cannot cover the offer")
        return bundle

    # Dispatch

    def _dispatch(self, player: int, message: InboundMessage):
        if isinstance(message, ChatMessage):
            self._handle_chat(player, message)
            return

        kind = self.phase.kind if self.phase else None
        if kind is PhaseKind.SETUP:
            self._handle_setup(self.phase, player, message)
        elif kind is PhaseKind.PLAY:
            self._handle_play(player, message)
        elif kind is PhaseKind.TRADE:
            self._handle_trade(self.phase, player, message)
        elif kind is PhaseKind.ROBBER:
            self._handle_robber(self.phase, player, message)
        else:
            raise GameError(MESSAGE, "Game has not started")

    def _handle_chat(self, player: int, message: ChatMessage):
        self.transport.broadcast(chat_message(player, message.text[:CHAT_MAX_LENGTH]))

    # Setup

    def _handle_setup(self, phase: SetupPhase, player: int, message: InboundMessage):
        if not isinstance(message, BuildMessage):
            raise GameError(MESSAGE, "Only builds are accepted during setup")
        if player != phase.current:
            raise GameError(TURN, f"Setup turn belongs to player {phase.current}")

        kind = message.type
        expected = BuildType.ROAD if phase.anchor else BuildType.SETTLEMENT
        if kind is not expected:
            raise GameError(BUILD, f"Expected a {expected.value} during setup")

        account = self.players[player]
        if not account.has_piece(kind):
            raise GameError(BUILD, f"No {kind.value} pieces left")

        x, y, d = message.x, message.y, message.d
        self.board.build(kind, x, y, d, player, setup=True, anchor=phase.anchor)
        account.build(kind, free=True)
        self.transport.broadcast(build_message(kind, x, y, d, player))

        if kind is BuildType.SETTLEMENT:
            phase.anchor = (x, y, d)
            if phase.second_round:
                for tx, ty in touches_tiles(x, y, d):
                    terrain = self.board.terrain_at(tx, ty)
                    if terrain and terrain.resource:
                        account.resources[terrain.resource] += 1
            self._send_resources(player)
            return

        phase.anchor = None
        self._after_road(player, (x, y, d))
        self._send_resources(player)

        phase.step += 1
        if phase.step == len(phase.order):
            self._begin_play(phase.order[-1])
        else:
            self.turn = phase.current
            self.transport.broadcast(turn_message(phase.current, None, setup=True))

    def _begin_play(self, first: int):
        logger.info("setup_complete", session_id=self.session_id, first_player=first)
        self.phase = PlayPhase()
        self.turn = first
        self._start_turn(start=True)

    # Play

    def _start_turn(self, start: bool = False):
        self.turn_state = TurnState()
        self.dice = self.roll_dice()
        if self.dice != ROBBER_ROLL:
            self._distribute(self.dice)

        self.transport.broadcast(turn_message(self.turn, self.dice, start=start))
        self._send_resources(*range(len(self.players)))

        if self.dice == ROBBER_ROLL:
            discards = {
                player: account.resource_count() // 2
                for player, account in enumerate(self.players)
                if account.resource_count() > DISCARD_THRESHOLD
            }
            self.phase = RobberPhase(discards=discards)
            for player, amount in discards.items():
                self._send(player, discard_message(amount))

    def _distribute(self, roll: int):
        """Pay out every building on the hit tiles, except the robber's tile."""
        for x, y in self.board.hit_tiles(roll):
            if self.board.robber == (x, y):
                continue
            resource = self.board.terrain_at(x, y).resource
            if resource is None:
                continue
            for building in self.board.corner_buildings(x, y):
                amount = 2 if building.kind is BuildType.CITY else 1
                self.players[building.owner].resources[resource] += amount

    def _handle_play(self, player: int, message: InboundMessage):
        if not isinstance(message, (BuildMessage, BuyDevelopMessage, DevelopMessage, TurnMessage, OfferMessage)):
            raise GameError(MESSAGE, f"'{message.message}' is not accepted during play")
        if player != self.turn:
            raise GameError(TURN, f"Turn belongs to player {self.turn}")

        if isinstance(message, BuildMessage):
            self._handle_build(player, message)
        elif isinstance(message, BuyDevelopMessage):
            self._handle_buy_develop(player)
        elif isinstance(message, DevelopMessage):
            self._handle_develop(player, message)
        elif isinstance(message, OfferMessage):
            offer = self._validate_offer(player, message.offer)
            self.phase = TradePhase(offers={player: offer})
            self.transport.broadcast(offer_message(offer, player))
        else:
            self._handle_end_turn(player)

    def _handle_build(self, player: int, message: BuildMessage):
        kind = message.type
        account = self.players[player]
        free = kind is BuildType.ROAD and self.turn_state.free_roads > 0

        if free:
            if not account.has_piece(kind):
                raise GameError(BUILD, "No road pieces left")
        elif not account.can_afford(kind):
            raise GameError(BUILD, f"Player {player} cannot afford a {kind.value}")

        x, y, d = message.x, message.y, message.d
        self.board.build(kind, x, y, d, player)
        account.build(kind, free=free)
        if free:
            self.turn_state.free_roads -= 1

        self.transport.broadcast(build_message(kind, x, y, d, player))
        self._send_resources(player)
        if kind is BuildType.ROAD:
            self._after_road(player, (x, y, d))

    def _handle_buy_develop(self, player: int):
        account = self.players[player]
        if not self.deck:
            raise GameError(BUY_DEVELOP, "Development deck is empty")
        if not account.can_afford_card():
            raise GameError(BUY_DEVELOP, f"Player {player} cannot afford a development card")

        account.buy_card(self.deck.pop())
        self._send_resources(player)

    def _handle_develop(self, player: int, message: DevelopMessage):
        account = self.players[player]
        card = message.card

        if self.turn_state.developed:
            raise GameError(DEVELOP, "A development card was already played this turn")
        if card is DevCard.VICTORY_POINT:
            raise GameError(DEVELOP, "Victory point cards are not played")
        if not account.has_card(card):
            raise GameError(DEVELOP, f"Player {player} has no playable {card.value} card")
        if card is DevCard.YEAR_OF_PLENTY and not message.resources:
            raise GameError(MALFORMED, "year_of_plenty needs two resources")
        if card is DevCard.MONOPOLY and message.resource is None:
            raise GameError(MALFORMED, "monopoly needs a resource")

        account.play_card(card)
        self.turn_state.developed = True
        self.transport.broadcast(develop_message(player, card))

        if card is DevCard.KNIGHT:
            if self.board.record_army(player, account.knights):
                self.transport.broadcast(records_message(self.board))
            self.phase = RobberPhase()
        elif card is DevCard.YEAR_OF_PLENTY:
            for resource in message.resources:
                account.resources[resource] += 1
        elif card is DevCard.MONOPOLY:
            resource = message.resource
            for other, other_account in enumerate(self.players):
                if other == player:
                    continue
                account.resources[resource] += other_account.resources[resource]
                other_account.resources[resource] = 0
                self._send_resources(other)
        elif card is DevCard.ROAD_BUILDING:
            self.turn_state.free_roads += 2

        self._send_resources(player)

    def _handle_end_turn(self, player: int):
        self.players[player].mature_cards()
        self.turn = (self.turn + 1) % len(self.players)
        self._start_turn()

    # Trade

    def _handle_trade(self, phase: TradePhase, player: int, message: InboundMessage):
        if isinstance(message, OfferMessage):
            offer = self._validate_offer(player, message.offer)
            phase.offers[player] = offer
            self.transport.broadcast(offer_message(offer, player))

        elif isinstance(message, ConfirmMessage):
            if player != self.turn:
                raise GameError(CONFIRM, "Only the current player may confirm")
            other = message.player
            if other == self.turn or other not in phase.offers or self.turn not in phase.offers:
                raise GameError(CONFIRM, f"No offer from player {other} to confirm")

            mine, theirs = phase.offers[self.turn], phase.offers[other]
            if not self.players[self.turn].has_resources(mine) or not self.players[other].has_resources(theirs):
                raise GameError(CONFIRM, "Offer can no longer be covered")

            for resource in Resource:
                delta = theirs[resource] - mine[resource]
                self.players[self.turn].resources[resource] += delta
                self.players[other].resources[resource] -= delta

            self._send_resources(self.turn, other)
            self.transport.broadcast(confirm_message(other))
            self.phase = PlayPhase()

        elif isinstance(message, CancelMessage):
            if player != self.turn:
                raise GameError(CANCEL, "Only the current player may cancel")
            self.transport.broadcast(cancel_message())
            self.phase = PlayPhase()

        else:
            raise GameError(MESSAGE, f"'{message.message}' is not accepted during a trade")

    # Robber

    def _handle_robber(self, phase: RobberPhase, player: int, message: InboundMessage):
        if isinstance(message, DiscardMessage):
            self._handle_discard(phase, player, message)
        elif isinstance(message, RobberMessage):
            self._handle_move_robber(phase, player, message)
        elif isinstance(message, StealMessage):
            self._handle_steal(phase, player, message)
        else:
            raise GameError(MESSAGE, f"'{message.message}' is not accepted while the robber moves")

        if phase.resolved:
            self.phase = PlayPhase()

    def _handle_discard(self, phase: RobberPhase, player: int, message: DiscardMessage):
        owed = phase.discards.get(player, 0)
        account = self.players[player]
        if owed == 0:
            raise GameError(DISCARD, f"Player {player} owes no discard")
        if count_resources(message.resources) != owed:
            raise GameError(DISCARD, f"Player {player} must discard exactly {owed}")
        if not account.has_resources(message.resources):
            raise GameError(DISCARD, f"Player {player} does not hold the discarded cards")

        account.spend_resources(message.resources)
        phase.discards[player] = 0
        self._send(player, discard_message(0))
        self._send_resources(player)

    def _handle_move_robber(self, phase: RobberPhase, player: int, message: RobberMessage):
        if player != self.turn:
            raise GameError(TURN, f"Turn belongs to player {self.turn}")
        if phase.pending_discards:
            raise GameError(ROBBER, "Discards are still outstanding")
        if phase.moved:
            raise GameError(ROBBER, "Robber already moved")

        x, y = message.x, message.y
        self.board.move_robber(x, y)
        phase.moved = True
        phase.targets = {
            target
            for target in self.board.robber_targets(x, y, exclude=player)
            if self.players[target].resource_count() > 0
        }
        if not phase.targets:
            phase.stolen = True

        for other in range(len(self.players)):
            if other == player:
                self._send(other, robber_message(x, y, phase.targets))
            else:
                self._send(other, robber_message(x, y))

    def _handle_steal(self, phase: RobberPhase, player: int, message: StealMessage):
        if player != self.turn:
            raise GameError(TURN, f"Turn belongs to player {self.turn}")
        if not phase.moved or phase.stolen:
            raise GameError(STEAL, "Nothing to steal right now")
        target = message.player
        if target not in phase.targets:
            raise GameError(STEAL, f"Player {target} cannot be robbed")

        victim = self.players[target]
        cards = [
            resource
            for resource in Resource
            for _ in range(victim.resources[resource])
        ]
        resource = self.rng.choice(cards)
        victim.resources[resource] -= 1
        self.players[player].resources[resource] += 1
        phase.stolen = True

        self.transport.broadcast(steal_message(player, target))
        self._send_resources(player, target)
