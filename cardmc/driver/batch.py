"""
Batch driver for the convergence demos.

The engine has no notion of time. A driver owns the sample log and is
stepped by whatever cadence the caller chooses (a UI timer, a loop in a
script, a test). Each step draws one batch, recomputes the statistics over
the whole log and appends a history point for the convergence traces.

Preset settings:
    uniform               100 cards/step, ceiling 10,000
    face-biased            30 cards/step, ceiling  5,000
    weighted convergence   30 cards/step, ceiling  5,000
    MIS convergence        30 cards/step, ceiling  5,000
    recent-sample buffer   last 20 samples, 10 displayed
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..deck import Sample
from ..errors import ConfigurationError
from ..sampling.estimators import RunningStats, RunningSums, as_strategy_map, recompute_stats
from ..sampling.proposals import (
    PmfConvention,
    Proposal,
    draw_cards,
    face_biased_proposal,
    multi_proposal,
    uniform_proposal,
)
from ..sampling.random_source import RandomLike, as_random_source
from ..sampling.theory import expected_face_pct, expected_rank, target_rank_mean
from ..sampling.weighting import (
    WeightingStrategy,
    balance_heuristic_weight,
    face_importance_weight,
    memory_weight,
)


class SampleLog:
    """
    The full, ordered sample sequence of one run.

    Only ever appended to; cleared on reset. Statistics are derived from it
    by ``recompute_stats``, never stored inside it.
    """

    def __init__(self, samples: Optional[Sequence[Sample]] = None):
        self._samples: List[Sample] = list(samples or [])

    def extend(self, samples: Sequence[Sample]):
        self._samples.extend(samples)

    def prefix(self, n: int) -> Tuple[Sample, ...]:
        if n < 0 or n > len(self._samples):
            raise IndexError(f"Prefix length {n} outside 0..{len(self._samples)}")
        return tuple(self._samples[:n])

    @property
    def samples(self) -> Tuple[Sample, ...]:
        return tuple(self._samples)

    def clear(self):
        self._samples.clear()

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._samples)

    def __getitem__(self, i):
        return self._samples[i]


@dataclass(frozen=True)
class HistoryPoint:
    """Statistics snapshot after a batch, keyed by statistic name."""
    sample_count: int
    stats: Dict[str, float]

    def __getitem__(self, key: str) -> float:
        return self.stats[key]


@dataclass
class DemoConfig:
    """Driver settings for one convergence demo."""

    name: str
    proposal: Proposal
    strategies: Dict[str, WeightingStrategy] = field(default_factory=dict)
    batch_size: int = 30
    sample_limit: int = 5000
    recent_size: int = 20
    recent_display: int = 10
    expected: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        self.strategies = as_strategy_map(self.strategies)
        if self.batch_size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {self.batch_size}")
        if self.sample_limit <= 0:
            raise ConfigurationError(f"sample_limit must be positive, got {self.sample_limit}")
        if self.recent_size <= 0:
            raise ConfigurationError(f"recent_size must be positive, got {self.recent_size}")
        if not 0 < self.recent_display <= self.recent_size:
            raise ConfigurationError(
                f"recent_display must be in 1..{self.recent_size}, got {self.recent_display}"
            )


def uniform_demo(convention: PmfConvention = PmfConvention.LEGACY) -> DemoConfig:
    proposal = uniform_proposal(convention)
    return DemoConfig(
        name="uniform",
        proposal=proposal,
        batch_size=100,
        sample_limit=10000,
        expected={'avg_rank': expected_rank(proposal), 'face_card_pct': expected_face_pct(proposal)},
    )


def face_biased_demo(convention: PmfConvention = PmfConvention.LEGACY) -> DemoConfig:
    proposal = face_biased_proposal(convention)
    return DemoConfig(
        name="face_biased",
        proposal=proposal,
        expected={'avg_rank': expected_rank(proposal), 'face_card_pct': expected_face_pct(proposal)},
    )


def weighted_convergence_demo(convention: PmfConvention = PmfConvention.LEGACY) -> DemoConfig:
    proposal = face_biased_proposal(convention)
    return DemoConfig(
        name="weighted_convergence",
        proposal=proposal,
        strategies={'importance': face_importance_weight(convention)},
        expected={'naive_avg': expected_rank(proposal), 'weighted_avg': target_rank_mean()},
    )


def mis_convergence_demo(convention: PmfConvention = PmfConvention.LEGACY) -> DemoConfig:
    return DemoConfig(
        name="mis_convergence",
        proposal=multi_proposal(convention=convention),
        strategies={
            'memory': memory_weight(convention),
            'balance': balance_heuristic_weight(convention=convention),
        },
        expected={'memory_avg': target_rank_mean(), 'balance_avg': target_rank_mean()},
    )


DEMO_PRESETS: Dict[str, Callable[..., DemoConfig]] = {
    'uniform': uniform_demo,
    'face_biased': face_biased_demo,
    'weighted_convergence': weighted_convergence_demo,
    'mis_convergence': mis_convergence_demo,
}


def demo_config(name: str, convention: PmfConvention = PmfConvention.LEGACY) -> DemoConfig:
    try:
        factory = DEMO_PRESETS[name]
    except KeyError:
        raise ConfigurationError(f"Unknown demo {name!r}; choose from {sorted(DEMO_PRESETS)}")
    return factory(convention)


class BatchDriver:
    """
    Step a demo forward one batch at a time.

    With ``incremental=False`` (the default) each step recomputes over the
    whole log, so every history point equals ``recompute_stats`` of the
    matching prefix exactly. ``incremental=True`` keeps public running sums
    instead and agrees up to floating-point summation order.
    """

    def __init__(self, config: DemoConfig, rng: RandomLike = None, incremental: bool = False):
        self.config = config
        self.rng = as_random_source(rng)
        self.incremental = incremental
        self.log = SampleLog()
        self.history: List[HistoryPoint] = []
        self.recent = deque(maxlen=config.recent_size)
        self.sums = RunningSums(config.strategies) if incremental else None
        self.current_stats = recompute_stats([], config.strategies)

    @property
    def sample_count(self) -> int:
        return len(self.log)

    @property
    def finished(self) -> bool:
        return len(self.log) >= self.config.sample_limit

    @property
    def recent_display(self) -> List[Sample]:
        """The most recent samples, oldest first, as many as are displayed."""
        return list(self.recent)[-self.config.recent_display:]

    def step(self) -> Optional[HistoryPoint]:
        """Draw one batch; returns None once the sample ceiling is reached."""
        if self.finished:
            return None

        n = min(self.config.batch_size, self.config.sample_limit - len(self.log))
        batch = draw_cards(self.config.proposal, n, self.rng)
        self.log.extend(batch)
        self.recent.extend(batch)

        if self.sums is not None:
            stats = self.sums.extend(batch).snapshot()
        else:
            stats = recompute_stats(self.log, self.config.strategies)

        self.current_stats = stats
        point = HistoryPoint(stats.sample_count, dict(stats.values))
        self.history.append(point)
        return point

    def run(self, max_steps: Optional[int] = None) -> List[HistoryPoint]:
        """Step until the ceiling (or ``max_steps``); returns the new points."""
        points = []
        while max_steps is None or len(points) < max_steps:
            point = self.step()
            if point is None:
                break
            points.append(point)
        return points

    def reset(self):
        self.log.clear()
        self.history.clear()
        self.recent.clear()
        if self.sums is not None:
            self.sums.reset()
        self.current_stats = recompute_stats([], self.config.strategies)

    def trace(self, key: str) -> Tuple[np.ndarray, np.ndarray]:
        """(sample counts, values) of one statistic across the history."""
        counts = np.array([p.sample_count for p in self.history], dtype=int)
        values = np.array([p.stats[key] for p in self.history], dtype=float)
        return counts, values

    def recompute_history(self) -> List[RunningStats]:
        """Rebuild every history point from scratch out of the log."""
        return [
            recompute_stats(self.log.prefix(p.sample_count), self.config.strategies)
            for p in self.history
        ]
