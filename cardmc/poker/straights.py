"""
Rare-event demo: how often do both players hold a five-card straight?

With uniformly dealt hands a straight shows up about 0.35% of the time, so
"both players have one" is close to a one-in-100,000 event. The demo deals
matchups from three proposals that oversample straights:

    straight-heavy  p = 0.4        both hands straight-biased
    mixed           p = 0.6 * 0.7  player A straight-biased, B uniform
    uniform         p = 0.6 * 0.3  both hands uniform

Winner resolution is a placeholder: a fair coin decides between two
straights. No poker hand ranking is implemented.
"""

from dataclasses import dataclass
from enum import Enum
from math import comb
from typing import List, Optional, Sequence, Tuple

from ..deck import RANKS, SUITS, Card, format_hand, poker_rank_value
from ..errors import ConfigurationError
from ..sampling.random_source import RandomLike, RandomSource, as_random_source

HAND_SIZE = 5
STRAIGHT_PROBABILITY = 0.3
LOWEST_STRAIGHT_START = 2
HIGHEST_STRAIGHT_START = 10

Hand = Tuple[Card, ...]


class HandProposal(Enum):
    STRAIGHT_HEAVY = "straight-heavy"
    MIXED = "mixed"
    UNIFORM = "uniform"


PROPOSAL_PROBABILITIES = {
    HandProposal.STRAIGHT_HEAVY: 0.4,
    HandProposal.MIXED: 0.6 * 0.7,
    HandProposal.UNIFORM: 0.6 * 0.3,
}

_RANK_BY_POKER_VALUE = {poker_rank_value(rank): rank for rank in RANKS}


def deal_uniform_hand(rng: RandomLike = None, size: int = HAND_SIZE) -> Hand:
    """Distinct cards, each rank and suit uniform; duplicates are redrawn."""
    rng = as_random_source(rng)
    if not 0 < size <= len(RANKS) * len(SUITS):
        raise ConfigurationError(f"Hand size must be in 1..52, got {size}")
    hand: List[Card] = []
    seen = set()
    while len(hand) < size:
        card = Card(RANKS[rng.index(len(RANKS))], SUITS[rng.index(len(SUITS))])
        if card not in seen:
            seen.add(card)
            hand.append(card)
    return tuple(hand)


def deal_straight_biased_hand(rng: RandomLike = None, straight_probability: float = STRAIGHT_PROBABILITY) -> Hand:
    """With ``straight_probability`` deal a straight (2-6 up to 10-A), else a uniform hand."""
    rng = as_random_source(rng)
    if rng.random() < straight_probability:
        span = HIGHEST_STRAIGHT_START - LOWEST_STRAIGHT_START + 1
        start = LOWEST_STRAIGHT_START + rng.index(span)
        return tuple(
            Card(_RANK_BY_POKER_VALUE[start + i], SUITS[rng.index(len(SUITS))])
            for i in range(HAND_SIZE)
        )
    return deal_uniform_hand(rng)


def has_straight(hand: Sequence[Card]) -> bool:
    """Ace-high consecutive ranks. The wheel (A-2-3-4-5) does not count."""
    values = sorted(poker_rank_value(card.rank) for card in hand)
    return all(b - a == 1 for a, b in zip(values, values[1:]))


def uniform_straight_probability() -> float:
    """Exact chance a uniform 5-card hand is an ace-high straight (any suits)."""
    n_sequences = HIGHEST_STRAIGHT_START - LOWEST_STRAIGHT_START + 1
    return n_sequences * len(SUITS) ** HAND_SIZE / comb(len(RANKS) * len(SUITS), HAND_SIZE)


def straight_biased_probability(straight_probability: float = STRAIGHT_PROBABILITY) -> float:
    return straight_probability + (1 - straight_probability) * uniform_straight_probability()


@dataclass(frozen=True)
class Matchup:
    player_a: Hand
    player_b: Hand
    proposal: HandProposal
    straight_a: bool
    straight_b: bool
    winner: Optional[str] = None

    @property
    def both_straights(self) -> bool:
        return self.straight_a and self.straight_b

    def __str__(self) -> str:
        result = f" -> {self.winner}" if self.winner else ""
        return f"A: {format_hand(self.player_a)} | B: {format_hand(self.player_b)}{result}"


def deal_matchup(rng: RandomLike = None) -> Matchup:
    rng = as_random_source(rng)

    if rng.random() < 0.4:
        player_a, player_b = deal_straight_biased_hand(rng), deal_straight_biased_hand(rng)
        proposal = HandProposal.STRAIGHT_HEAVY
    elif rng.random() < 0.7:
        player_a, player_b = deal_straight_biased_hand(rng), deal_uniform_hand(rng)
        proposal = HandProposal.MIXED
    else:
        player_a, player_b = deal_uniform_hand(rng), deal_uniform_hand(rng)
        proposal = HandProposal.UNIFORM

    straight_a, straight_b = has_straight(player_a), has_straight(player_b)
    winner = None
    if straight_a and straight_b:
        # Placeholder: no straight ranking, a coin decides
        winner = "A" if rng.random() < 0.5 else "B"

    return Matchup(player_a, player_b, proposal, straight_a, straight_b, winner)


@dataclass(frozen=True)
class PokerTally:
    hands_dealt: int
    both_straights: int
    player_a_wins: int
    recent: Tuple[Matchup, ...]

    @property
    def win_rate(self) -> float:
        """P(A wins | both hold straights); 0 before any such hand."""
        if self.both_straights == 0:
            return 0.0
        return self.player_a_wins / self.both_straights


def tally(matchups: Sequence[Matchup], recent: int = 5) -> PokerTally:
    both = [m for m in matchups if m.both_straights]
    return PokerTally(
        hands_dealt=len(matchups),
        both_straights=len(both),
        player_a_wins=sum(1 for m in both if m.winner == "A"),
        recent=tuple(both[-recent:]) if recent > 0 else (),
    )


class PokerDriver:
    """Deal matchups in batches of 20 up to 10,000, re-tallying after each batch."""

    def __init__(self, rng: RandomLike = None, batch_size: int = 20, sample_limit: int = 10000):
        if batch_size <= 0 or sample_limit <= 0:
            raise ConfigurationError("batch_size and sample_limit must be positive")
        self.rng = as_random_source(rng)
        self.batch_size = batch_size
        self.sample_limit = sample_limit
        self.matchups: List[Matchup] = []
        self.current = tally(self.matchups)

    @property
    def finished(self) -> bool:
        return len(self.matchups) >= self.sample_limit

    def step(self) -> Optional[PokerTally]:
        if self.finished:
            return None
        n = min(self.batch_size, self.sample_limit - len(self.matchups))
        self.matchups.extend(deal_matchup(self.rng) for _ in range(n))
        self.current = tally(self.matchups)
        return self.current

    def run(self) -> PokerTally:
        while self.step() is not None:
            pass
        return self.current

    def reset(self):
        self.matchups.clear()
        self.current = tally(self.matchups)


def demonstrate_straights(seed: int = 7, n_matchups: int = 10000):
    rng = RandomSource(seed)
    driver = PokerDriver(rng, sample_limit=n_matchups)
    result = driver.run()

    print("\n" + "=" * 72)
    print("RARE EVENT: BOTH PLAYERS HOLD A STRAIGHT")
    print("=" * 72)
    print(f"Uniform straight probability:  {uniform_straight_probability():.5f}")
    print(f"Biased straight probability:   {straight_biased_probability():.5f}")
    print(f"Hands dealt:                   {result.hands_dealt}")
    print(f"Both straights:                {result.both_straights}")
    print(f"Player A wins:                 {result.player_a_wins}")
    print(f"Win rate:                      {result.win_rate * 100:.1f}%")
    for matchup in result.recent[-3:]:
        print(f"  {matchup}")
    print("=" * 72)


if __name__ == "__main__":
    demonstrate_straights()
