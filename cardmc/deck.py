"""
The sample space: a standard 52-card deck.

Ranks and suits are enumerations, so an invalid card cannot be built:
``Rank("1")`` fails with ``ValueError`` before any statistics run.

Card encoding:
    rank order  A, 2, ..., 10, J, Q, K   (rank_value 1..13)
    suit order  ♠️, ♥️, ♦️, ♣️
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Tuple, Union


class Rank(Enum):
    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"


class Suit(Enum):
    SPADES = "♠️"
    HEARTS = "♥️"
    DIAMONDS = "♦️"
    CLUBS = "♣️"


class Origin(Enum):
    """Which proposal of a mixture produced a sample."""
    FACE = "face"
    RED = "red"


RANKS: Tuple[Rank, ...] = tuple(Rank)
SUITS: Tuple[Suit, ...] = tuple(Suit)

FACE_RANKS = frozenset({Rank.JACK, Rank.QUEEN, Rank.KING})
RED_SUITS = frozenset({Suit.HEARTS, Suit.DIAMONDS})

_RANK_VALUES = {rank: i + 1 for i, rank in enumerate(RANKS)}


def rank_value(rank: Rank) -> int:
    """A=1, numerals at face value, J=11, Q=12, K=13."""
    return _RANK_VALUES[rank]


def poker_rank_value(rank: Rank) -> int:
    """Ace-high value (A=14) for straights in the poker demo."""
    return 14 if rank is Rank.ACE else _RANK_VALUES[rank]


def is_face_card(rank: Rank) -> bool:
    return rank in FACE_RANKS


def is_red(suit: Suit) -> bool:
    return suit in RED_SUITS


@dataclass(frozen=True)
class Card:
    rank: Rank
    suit: Suit

    @property
    def value(self) -> int:
        return rank_value(self.rank)

    @property
    def is_face(self) -> bool:
        return is_face_card(self.rank)

    @property
    def is_red(self) -> bool:
        return is_red(self.suit)

    def __str__(self) -> str:
        return format_card(self)


@dataclass(frozen=True)
class TaggedCard:
    """
    A card plus the proposal that generated it.

    The origin is provenance metadata only; ``card`` is the identity.
    """
    card: Card
    origin: Origin = field(compare=False)

    @property
    def rank(self) -> Rank:
        return self.card.rank

    @property
    def suit(self) -> Suit:
        return self.card.suit

    def __str__(self) -> str:
        return format_card(self)


Sample = Union[Card, TaggedCard]

FULL_DECK: Tuple[Card, ...] = tuple(Card(rank, suit) for rank in RANKS for suit in SUITS)
DECK_SIZE = len(FULL_DECK)


def card_of(sample: Sample) -> Card:
    """Strip the provenance tag, if any."""
    if isinstance(sample, TaggedCard):
        return sample.card
    return sample


def origin_of(sample: Sample) -> Optional[Origin]:
    if isinstance(sample, TaggedCard):
        return sample.origin
    return None


def format_card(sample: Sample) -> str:
    """Render as ``"{rank}{suit}"``, e.g. ``"K♠️"``."""
    card = card_of(sample)
    return f"{card.rank.value}{card.suit.value}"


def format_hand(cards: Iterable[Sample]) -> str:
    return " ".join(format_card(c) for c in cards)
