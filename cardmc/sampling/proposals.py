"""
Proposal distributions over the 52-card deck.

Each proposal pairs a sampler with a closed-form probability mass function.
The sampler is the ground truth: ``probability(card)`` is the exact law the
sampler follows, computed from its slot pools. ``pmf(card)`` is the value
used as the importance-weight denominator, under one of two conventions:

    LEGACY      pmf = rank_slots * suit_slots / 52
                (face 3/52, red 2/52, everything else 1/52)
    NORMALIZED  pmf = probability(card)
                (face-biased 3/76 or 1/76, red-biased 1/39 or 1/78)

LEGACY keeps the historical demo constants. Those are densities
relative to the uniform deck, so face-biased sums to 76/52 and red-biased
to 78/52. Self-normalized estimates do not depend on a constant scale, so
single-proposal results are identical under both conventions.
"""

import math
import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..deck import (
    DECK_SIZE,
    FULL_DECK,
    RANKS,
    SUITS,
    Card,
    Origin,
    Rank,
    Sample,
    Suit,
    TaggedCard,
    card_of,
    format_card,
    is_face_card,
    is_red,
    rank_value,
)
from ..errors import ConfigurationError
from .random_source import RandomLike, RandomSource, as_random_source


MASS_TOLERANCE = 1e-9
PMF_TOLERANCE = 1e-12


class PmfConvention(Enum):
    LEGACY = "legacy"
    NORMALIZED = "normalized"


@dataclass
class MixingWeights:
    """Convex combination weights keyed by proposal origin."""

    weights: Dict[Origin, float] = field(default_factory=lambda: {Origin.FACE: 0.5, Origin.RED: 0.5})

    def __post_init__(self):
        if not self.weights:
            raise ConfigurationError("Mixing weights must name at least one proposal")
        for origin, w in self.weights.items():
            if not isinstance(origin, Origin):
                raise ConfigurationError(f"Mixing weight key must be an Origin, got {origin!r}")
            if not math.isfinite(w) or w < 0:
                raise ConfigurationError(f"Mixing weight for {origin.value} must be >= 0, got {w}")
        total = sum(self.weights.values())
        if abs(total - 1.0) > MASS_TOLERANCE:
            raise ConfigurationError(f"Mixing weights must sum to 1, got {total}")

    @classmethod
    def coerce(cls, weights) -> "MixingWeights":
        if weights is None:
            return cls()
        if isinstance(weights, MixingWeights):
            return weights
        coerced = {}
        for key, w in dict(weights).items():
            try:
                origin = key if isinstance(key, Origin) else Origin(key)
            except ValueError:
                raise ConfigurationError(f"Unknown proposal origin in mixing weights: {key!r}")
            coerced[origin] = float(w)
        return cls(coerced)

    @classmethod
    def even(cls, origins: Sequence[Origin]) -> "MixingWeights":
        return cls({origin: 1.0 / len(origins) for origin in origins})

    def __getitem__(self, origin: Origin) -> float:
        return self.weights[origin]

    def items(self):
        return self.weights.items()

    def origins(self) -> Tuple[Origin, ...]:
        return tuple(self.weights)


class Proposal:
    """
    A distribution over the deck that can be sampled and evaluated.

    Subclasses implement ``draw``, ``pmf`` and ``probability``; construction
    ends with ``_validate()`` so an inconsistent proposal never reaches a
    simulation.
    """

    name: str = "proposal"
    convention: Optional[PmfConvention] = None

    def draw(self, rng: RandomSource) -> Sample:
        raise NotImplementedError

    def pmf(self, card: Card) -> float:
        raise NotImplementedError

    def probability(self, card: Card) -> float:
        """Exact probability that ``draw`` returns ``card``."""
        raise NotImplementedError

    def total_mass(self) -> float:
        return sum(self.pmf(card) for card in FULL_DECK)

    def support(self) -> Tuple[Card, ...]:
        return tuple(card for card in FULL_DECK if self.probability(card) > 0)

    def expectation(self, fn: Callable[[Card], float]) -> float:
        """Exact E[fn(card)] under the sampling law."""
        return sum(self.probability(card) * fn(card) for card in FULL_DECK)

    def _validate(self):
        law_total = 0.0
        for card in FULL_DECK:
            p = self.pmf(card)
            q = self.probability(card)
            law_total += q
            if not math.isfinite(p) or p < 0:
                raise ConfigurationError(
                    f"{self.name}: pmf({format_card(card)}) = {p} is not a probability"
                )
            if p > 1.0 + PMF_TOLERANCE:
                raise ConfigurationError(f"{self.name}: pmf({format_card(card)}) = {p} exceeds 1")
            if q > 0 and p <= 0:
                raise ConfigurationError(
                    f"{self.name}: sampler can draw {format_card(card)} but its pmf is zero"
                )
            if self.convention is PmfConvention.NORMALIZED and abs(p - q) > PMF_TOLERANCE:
                raise ConfigurationError(
                    f"{self.name}: pmf({format_card(card)}) = {p} disagrees with "
                    f"sampling probability {q}"
                )
        if abs(law_total - 1.0) > MASS_TOLERANCE:
            raise ConfigurationError(f"{self.name}: sampling law sums to {law_total}, not 1")

    def __repr__(self) -> str:
        convention = self.convention.value if self.convention else "mixed"
        return f"{type(self).__name__}(name={self.name!r}, convention={convention})"


class DiscreteProposal(Proposal):
    """
    Independent rank and suit drawn from explicit slot pools.

    A rank with 3 slots is three times as likely as a rank with 1 slot.
    Each draw consumes the random source exactly twice (rank, then suit).
    """

    def __init__(
        self,
        name: str,
        rank_slots: Optional[Mapping[Rank, int]] = None,
        suit_slots: Optional[Mapping[Suit, int]] = None,
        convention: PmfConvention = PmfConvention.LEGACY,
        pmf: Optional[Callable[[Card], float]] = None
    ):
        """
        Args:
            name: Display name
            rank_slots: Slot count per rank (missing ranks default to 1)
            suit_slots: Slot count per suit (missing suits default to 1)
            convention: Which pmf to report, see module docstring
            pmf: Custom pmf overriding the convention
        """
        self.name = name
        self.convention = convention
        self.rank_slots = {rank: 1 for rank in RANKS}
        self.rank_slots.update(rank_slots or {})
        self.suit_slots = {suit: 1 for suit in SUITS}
        self.suit_slots.update(suit_slots or {})

        if len(self.rank_slots) != len(RANKS) or len(self.suit_slots) != len(SUITS):
            raise ConfigurationError(f"{name}: slot keys must be Rank and Suit members")
        for key, count in list(self.rank_slots.items()) + list(self.suit_slots.items()):
            if not isinstance(count, int) or count < 0:
                raise ConfigurationError(f"{name}: slot count for {key} must be a non-negative int")

        self._rank_pool = tuple(rank for rank in RANKS for _ in range(self.rank_slots[rank]))
        self._suit_pool = tuple(suit for suit in SUITS for _ in range(self.suit_slots[suit]))
        if not self._rank_pool or not self._suit_pool:
            raise ConfigurationError(f"{name}: empty rank or suit pool")

        self._custom_pmf = pmf
        self._validate()

    def _validate(self):
        super()._validate()
        # LEGACY may rescale the law but must stay proportional to it
        scale = None
        for card in FULL_DECK:
            q = self.probability(card)
            if q == 0:
                continue
            ratio = self.pmf(card) / q
            if scale is None:
                scale = ratio
            elif not math.isclose(ratio, scale, rel_tol=MASS_TOLERANCE):
                raise ConfigurationError(
                    f"{self.name}: pmf is not proportional to the sampling law "
                    f"(pmf/probability is {ratio:.6g} at {format_card(card)}, {scale:.6g} elsewhere)"
                )

    @property
    def rank_pool(self) -> Tuple[Rank, ...]:
        return self._rank_pool

    @property
    def suit_pool(self) -> Tuple[Suit, ...]:
        return self._suit_pool

    def draw(self, rng: RandomSource) -> Card:
        rank = self._rank_pool[rng.index(len(self._rank_pool))]
        suit = self._suit_pool[rng.index(len(self._suit_pool))]
        return Card(rank, suit)

    def probability(self, card: Card) -> float:
        card = card_of(card)
        return (self.rank_slots[card.rank] / len(self._rank_pool)) * (
            self.suit_slots[card.suit] / len(self._suit_pool)
        )

    def pmf(self, card: Card) -> float:
        card = card_of(card)
        if self._custom_pmf is not None:
            return float(self._custom_pmf(card))
        if self.convention is PmfConvention.NORMALIZED:
            return self.probability(card)
        return self.rank_slots[card.rank] * self.suit_slots[card.suit] / DECK_SIZE


class MixtureProposal(Proposal):
    """
    Pick a component proposal at random, then delegate the draw.

    Every draw is returned as a ``TaggedCard`` carrying the origin of the
    branch that actually fired. One ``rng.random()`` call selects the
    branch before the component consumes its own draws.
    """

    def __init__(
        self,
        components: Mapping[Origin, Proposal],
        mixing_weights=None,
        name: str = "multi"
    ):
        self.name = name
        self.components: Dict[Origin, Proposal] = dict(components)
        if not self.components:
            raise ConfigurationError("A mixture needs at least one component")
        if mixing_weights is None:
            mixing_weights = MixingWeights.even(tuple(self.components))
        self.mixing_weights = MixingWeights.coerce(mixing_weights)

        unknown = set(self.mixing_weights.origins()) ^ set(self.components)
        if unknown:
            raise ConfigurationError(
                f"Mixing weights and components disagree on origins: "
                f"{sorted(o.value for o in unknown)}"
            )

        self.convention = common_convention(self.components.values())
        self._validate()

    def draw(self, rng: RandomSource) -> TaggedCard:
        u = rng.random()
        cumulative = 0.0
        chosen = None
        for origin, w in self.mixing_weights.items():
            cumulative += w
            if w > 0 and u < cumulative:
                chosen = origin
                break
        if chosen is None:
            # u landed in floating-point slack above the last cumulative sum
            chosen = [o for o, w in self.mixing_weights.items() if w > 0][-1]
        return TaggedCard(card_of(self.components[chosen].draw(rng)), chosen)

    def pmf(self, card: Card) -> float:
        card = card_of(card)
        return sum(w * self.components[o].pmf(card) for o, w in self.mixing_weights.items())

    def probability(self, card: Card) -> float:
        card = card_of(card)
        return sum(w * self.components[o].probability(card) for o, w in self.mixing_weights.items())


def common_convention(proposals) -> Optional[PmfConvention]:
    conventions = {p.convention for p in proposals}
    if len(conventions) == 1:
        return conventions.pop()
    warnings.warn(
        "Combining LEGACY and NORMALIZED proposals: pmf values are on different scales, "
        "MIS weights will mix inconsistent denominators.",
        category=UserWarning
    )
    return None


def uniform_proposal(convention: PmfConvention = PmfConvention.LEGACY) -> DiscreteProposal:
    """Rank and suit uniform: every card has probability 1/52."""
    return DiscreteProposal("uniform", convention=convention)


def face_biased_proposal(convention: PmfConvention = PmfConvention.LEGACY) -> DiscreteProposal:
    """J, Q and K get 3 rank slots each: 19 rank slots in total."""
    return DiscreteProposal(
        "face-biased",
        rank_slots={rank: 3 if is_face_card(rank) else 1 for rank in RANKS},
        convention=convention
    )


def red_biased_proposal(convention: PmfConvention = PmfConvention.LEGACY) -> DiscreteProposal:
    """Hearts and diamonds get 2 suit slots each: 6 suit slots in total."""
    return DiscreteProposal(
        "red-biased",
        suit_slots={suit: 2 if is_red(suit) else 1 for suit in SUITS},
        convention=convention
    )


def multi_proposal(
    mixing_weights=None,
    convention: PmfConvention = PmfConvention.LEGACY
) -> MixtureProposal:
    """Face-biased or red-biased, chosen per draw (0.5/0.5 by default)."""
    return MixtureProposal(
        {
            Origin.FACE: face_biased_proposal(convention),
            Origin.RED: red_biased_proposal(convention),
        },
        mixing_weights=MixingWeights.coerce(mixing_weights),
    )


def draw_card(proposal: Proposal, rng: RandomLike = None) -> Sample:
    return proposal.draw(as_random_source(rng))


def draw_cards(proposal: Proposal, n: int, rng: RandomLike = None) -> List[Sample]:
    if n < 0:
        raise ValueError(f"Cannot draw a negative number of cards (n={n})")
    source = as_random_source(rng)
    return [proposal.draw(source) for _ in range(n)]


def pmf(proposal: Proposal, card: Sample) -> float:
    return proposal.pmf(card_of(card))


def demonstrate_proposals(seed: int = 0, n_samples: int = 20000):
    """Print pmf constants and empirical frequencies for each proposal."""
    rng = RandomSource(seed)

    print("\n" + "=" * 72)
    print("PROPOSAL DISTRIBUTIONS OVER A 52-CARD DECK")
    print("=" * 72)

    for proposal in (uniform_proposal(), face_biased_proposal(), red_biased_proposal(), multi_proposal()):
        samples = [card_of(s) for s in draw_cards(proposal, n_samples, rng)]
        face_share = sum(c.is_face for c in samples) / n_samples
        red_share = sum(c.is_red for c in samples) / n_samples
        mean_rank = sum(rank_value(c.rank) for c in samples) / n_samples

        print(f"\n{proposal.name}")
        print(f"  pmf(K♠️) = {proposal.pmf(Card(Rank.KING, Suit.SPADES)):.4f}   "
              f"pmf(2♥️) = {proposal.pmf(Card(Rank.TWO, Suit.HEARTS)):.4f}")
        print(f"  total pmf mass      {proposal.total_mass():.4f}")
        print(f"  face share          {face_share:.3f}  (exact {proposal.expectation(lambda c: c.is_face):.3f})")
        print(f"  red share           {red_share:.3f}  (exact {proposal.expectation(lambda c: c.is_red):.3f})")
        print(f"  mean rank           {mean_rank:.3f}  (exact {proposal.expectation(lambda c: c.value):.3f})")

    print("\n" + "=" * 72)


if __name__ == "__main__":
    demonstrate_proposals()
