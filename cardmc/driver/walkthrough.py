"""
Step-through walkthroughs over a fixed set of samples.

The weighted-average and MIS-comparison demos draw 50 cards once and let
the reader move a cursor over them, showing each card's weight terms and
the running estimate up to the cursor.
"""

from typing import Dict, Iterator, Sequence

from ..deck import Sample
from ..errors import ConfigurationError
from ..sampling.estimators import RunningStats, StrategySpec, as_strategy_map, recompute_stats
from ..sampling.proposals import PmfConvention, draw_cards, face_biased_proposal, multi_proposal
from ..sampling.random_source import RandomLike
from ..sampling.weighting import (
    WeightBreakdown,
    balance_heuristic_weight,
    face_importance_weight,
    memory_weight,
)

WALKTHROUGH_SIZE = 50


class StepThrough:
    """Cursor over a fixed sample sequence."""

    def __init__(self, samples: Sequence[Sample], strategies: StrategySpec = None):
        if not samples:
            raise ConfigurationError("A walkthrough needs at least one sample")
        self.samples = tuple(samples)
        self.strategies = as_strategy_map(strategies)
        self.index = 0

    @property
    def current(self) -> Sample:
        return self.samples[self.index]

    @property
    def at_start(self) -> bool:
        return self.index == 0

    @property
    def at_end(self) -> bool:
        return self.index >= len(self.samples) - 1

    def next(self) -> bool:
        if self.at_end:
            return False
        self.index += 1
        return True

    def previous(self) -> bool:
        if self.at_start:
            return False
        self.index -= 1
        return True

    def reset(self):
        self.index = 0

    def seek(self, index: int):
        if not 0 <= index < len(self.samples):
            raise IndexError(f"Index {index} outside 0..{len(self.samples) - 1}")
        self.index = index

    def running_stats(self) -> RunningStats:
        """Statistics over samples[0..index], inclusive."""
        return recompute_stats(self.samples[:self.index + 1], self.strategies)

    def breakdowns(self) -> Dict[str, WeightBreakdown]:
        return {name: s.breakdown(self.current) for name, s in self.strategies.items()}

    def play(self) -> Iterator[RunningStats]:
        """Advance to the end, yielding the running statistics at each stop."""
        yield self.running_stats()
        while self.next():
            yield self.running_stats()


def weighted_walkthrough(
    rng: RandomLike = None,
    n: int = WALKTHROUGH_SIZE,
    convention: PmfConvention = PmfConvention.LEGACY
) -> StepThrough:
    samples = draw_cards(face_biased_proposal(convention), n, rng)
    return StepThrough(samples, {'importance': face_importance_weight(convention)})


def mis_walkthrough(
    rng: RandomLike = None,
    n: int = WALKTHROUGH_SIZE,
    convention: PmfConvention = PmfConvention.LEGACY
) -> StepThrough:
    samples = draw_cards(multi_proposal(convention=convention), n, rng)
    return StepThrough(samples, {
        'memory': memory_weight(convention),
        'balance': balance_heuristic_weight(convention=convention),
    })
