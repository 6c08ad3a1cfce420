"""
Importance weights relative to the uniform target over the deck.

Every strategy computes

    w(x) = p_target(x) / denominator(x),    p_target(x) = 1/52

and differs only in the denominator:

    NaiveWeight             p_target(x)                (w = 1, no correction)
    ImportanceWeight        q(x) of the single proposal used
    MemoryWeight            q_origin(x), the proposal that actually fired
    BalanceHeuristicWeight  Σ_i c_i q_i(x), fixed mixing weights c_i

A denominator that is zero, negative or non-finite raises
UndefinedWeightError; weights are never silently inf or NaN.

References:
    [1] Veach & Guibas (1995). "Optimally Combining Sampling Techniques
        for Monte Carlo Rendering"
    [2] Owen (2013). "Monte Carlo theory, methods and examples", ch. 9
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional

import numpy as np

from ..deck import DECK_SIZE, Card, Origin, Sample, TaggedCard, card_of, format_card, origin_of
from ..errors import MissingOriginError, UndefinedWeightError
from .proposals import (
    MixingWeights,
    MixtureProposal,
    PmfConvention,
    Proposal,
    common_convention,
    face_biased_proposal,
    red_biased_proposal,
)


UNIFORM_TARGET_PMF = 1.0 / DECK_SIZE


@dataclass(frozen=True)
class WeightBreakdown:
    """One weight computation, term by term."""
    card: Card
    origin: Optional[Origin]
    target: float
    denominator: float
    weight: float


class WeightingStrategy:
    """Base class: subclasses supply ``denominator``."""

    name = "strategy"

    def target_pmf(self, card: Card) -> float:
        return UNIFORM_TARGET_PMF

    def denominator(self, sample: Sample) -> float:
        raise NotImplementedError

    def breakdown(self, sample: Sample) -> WeightBreakdown:
        card = card_of(sample)
        target = self.target_pmf(card)
        denominator = self.denominator(sample)
        if not math.isfinite(denominator) or denominator <= 0:
            raise UndefinedWeightError(
                f"{self.name}: denominator for {format_card(card)} is {denominator}; "
                f"the proposal cannot produce a card the target needs"
            )
        return WeightBreakdown(card, origin_of(sample), target, denominator, target / denominator)

    def __call__(self, sample: Sample) -> float:
        return self.breakdown(sample).weight

    def weights(self, samples: Iterable[Sample]) -> np.ndarray:
        return np.array([self(s) for s in samples], dtype=float)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NaiveWeight(WeightingStrategy):
    """No correction: every sample counts once."""

    name = "naive"

    def denominator(self, sample: Sample) -> float:
        return self.target_pmf(card_of(sample))


class ImportanceWeight(WeightingStrategy):
    """Single-proposal importance weight p(x) / q(x)."""

    name = "importance"

    def __init__(self, proposal: Proposal):
        self.proposal = proposal

    def denominator(self, sample: Sample) -> float:
        return self.proposal.pmf(card_of(sample))

    def __repr__(self) -> str:
        return f"ImportanceWeight(proposal={self.proposal.name!r})"


class MemoryWeight(WeightingStrategy):
    """
    MIS weight that remembers which proposal generated each sample.

    Requires tagged samples; the denominator is the pmf of the origin
    proposal alone, evaluated at the card.
    """

    name = "memory"

    def __init__(self, components: Mapping[Origin, Proposal]):
        self.components: Dict[Origin, Proposal] = dict(components)
        common_convention(self.components.values())

    @classmethod
    def for_mixture(cls, mixture: MixtureProposal) -> "MemoryWeight":
        return cls(mixture.components)

    def denominator(self, sample: Sample) -> float:
        origin = origin_of(sample)
        if origin is None:
            raise MissingOriginError(
                f"Memory-based weight needs a tagged sample, got untagged {format_card(sample)}"
            )
        if origin not in self.components:
            raise MissingOriginError(f"No proposal registered for origin {origin.value!r}")
        return self.components[origin].pmf(card_of(sample))

    def __repr__(self) -> str:
        return f"MemoryWeight(origins={[o.value for o in self.components]})"


class BalanceHeuristicWeight(WeightingStrategy):
    """
    Memoryless MIS weight (balance heuristic).

    The denominator is the fixed mixture Σ c_i q_i(x), computed from the
    card alone; the sample's origin tag, if any, is ignored.
    """

    name = "balance"

    def __init__(self, components: Mapping[Origin, Proposal], mixing_weights=None):
        self.components: Dict[Origin, Proposal] = dict(components)
        if mixing_weights is None:
            mixing_weights = MixingWeights.even(tuple(self.components))
        self.mixing_weights = MixingWeights.coerce(mixing_weights)
        missing = set(self.mixing_weights.origins()) - set(self.components)
        if missing:
            raise MissingOriginError(
                f"Mixing weights name unknown proposals: {sorted(o.value for o in missing)}"
            )
        common_convention(self.components.values())

    @classmethod
    def for_mixture(cls, mixture: MixtureProposal, mixing_weights=None) -> "BalanceHeuristicWeight":
        return cls(mixture.components, mixing_weights or mixture.mixing_weights)

    def denominator(self, sample: Sample) -> float:
        card = card_of(sample)
        return sum(c * self.components[o].pmf(card) for o, c in self.mixing_weights.items())

    def __repr__(self) -> str:
        mix = {o.value: c for o, c in self.mixing_weights.items()}
        return f"BalanceHeuristicWeight(mixing_weights={mix})"


def weight(strategy: WeightingStrategy, card: Sample, tag: Optional[Origin] = None) -> float:
    """Weight of one sample; ``tag`` attaches provenance to a bare card."""
    if tag is not None:
        card = TaggedCard(card_of(card), Origin(tag))
    return strategy(card)


def explain_weight(strategy: WeightingStrategy, sample: Sample) -> WeightBreakdown:
    return strategy.breakdown(sample)


def face_importance_weight(convention: PmfConvention = PmfConvention.LEGACY) -> ImportanceWeight:
    return ImportanceWeight(face_biased_proposal(convention))


def _default_components(convention: PmfConvention) -> Dict[Origin, Proposal]:
    return {
        Origin.FACE: face_biased_proposal(convention),
        Origin.RED: red_biased_proposal(convention),
    }


def memory_weight(convention: PmfConvention = PmfConvention.LEGACY) -> MemoryWeight:
    return MemoryWeight(_default_components(convention))


def balance_heuristic_weight(
    mixing_weights=None,
    convention: PmfConvention = PmfConvention.LEGACY
) -> BalanceHeuristicWeight:
    return BalanceHeuristicWeight(_default_components(convention), mixing_weights)
