"""
Per-player bookkeeping: resource cards, remaining pieces and development cards.
"""
from dataclasses import dataclass, field
from typing import Dict, Mapping

from .constants import (
    BUILD_COSTS,
    DEV_CARD_COST,
    PIECE_COUNTS,
    BuildType,
    DevCard,
    Resource,
)


def empty_hand() -> Dict[Resource, int]:
    return {resource: 0 for resource in Resource}


def count_resources(hand: Mapping[Resource, int]) -> int:
    """Total number of cards in a resource bundle."""
    return sum(hand.values())


@dataclass
class PlayerAccount:
    """Resource, piece and card tallies for one seat."""
    resources: Dict[Resource, int] = field(default_factory=empty_hand)
    pieces: Dict[BuildType, int] = field(default_factory=lambda: dict(PIECE_COUNTS))
    cards: Dict[DevCard, int] = field(default_factory=lambda: {card: 0 for card in DevCard})
    new_cards: Dict[DevCard, int] = field(default_factory=lambda: {card: 0 for card in DevCard})
    knights: int = 0

    def resource_count(self) -> int:
        return count_resources(self.resources)

    def has_resources(self, bundle: Mapping[Resource, int]) -> bool:
        """Whether the player holds at least ``bundle``."""
        return all(
            amount >= 0 and self.resources[resource] >= amount
            for resource, amount in bundle.items()
        )

    def spend_resources(self, bundle: Mapping[Resource, int]):
        if not self.has_resources(bundle):
            raise ValueError("Insufficient resources")
        for resource, amount in bundle.items():
            self.resources[resource] -= amount

    def add_resources(self, bundle: Mapping[Resource, int]):
        for resource, amount in bundle.items():
            self.resources[resource] += amount

    def has_piece(self, kind: BuildType) -> bool:
        return self.pieces[kind] > 0

    def can_afford(self, kind: BuildType) -> bool:
        """Whether the player has both the piece and the resources for ``kind``."""
        return self.has_piece(kind) and self.has_resources(BUILD_COSTS[kind])

    def build(self, kind: BuildType, free: bool = False):
        """Pay for and take a piece. ``free`` skips the resource cost."""
        if not self.has_piece(kind):
            raise ValueError(f"No {kind.value} pieces left")
        if not free:
            self.spend_resources(BUILD_COSTS[kind])
        self.pieces[kind] -= 1
        if kind is BuildType.CITY:
            # the upgraded settlement goes back to the supply
            self.pieces[BuildType.SETTLEMENT] += 1

    def can_afford_card(self) -> bool:
        return self.has_resources(DEV_CARD_COST)

    def buy_card(self, card: DevCard):
        """Pay for a development card. It becomes playable next turn."""
        self.spend_resources(DEV_CARD_COST)
        self.new_cards[card] += 1

    def has_card(self, card: DevCard) -> bool:
        return self.cards[card] > 0

    def play_card(self, card: DevCard):
        if not self.has_card(card):
            raise ValueError(f"No playable {card.value} card")
        self.cards[card] -= 1
        if card is DevCard.KNIGHT:
            self.knights += 1

    def mature_cards(self):
        """Make cards bought on an earlier turn playable."""
        for card, count in self.new_cards.items():
            self.cards[card] += count
            self.new_cards[card] = 0

    def card_counts(self) -> Dict[DevCard, int]:
        """Held cards, playable or not."""
        return {card: self.cards[card] + self.new_cards[card] for card in DevCard}
