"""
Running statistics for importance-sampled card streams.

Naive averaging of samples from a biased proposal estimates the wrong
quantity:
    avg = mean(rank(x_i))                  # estimates E_q, not E_p

The self-normalized importance sampling estimator corrects it:
    avg = Σ(w_i * rank(x_i)) / Σw_i        # estimates E_p
    where w_i = p_target(x_i) / q(x_i)

``recompute_stats`` is the reference: a pure function of the whole sample
sequence. ``RunningSums`` keeps the same sums incrementally, with every
accumulator public, and must agree with ``recompute_stats`` on any prefix.

References:
    [1] Owen (2013). "Monte Carlo theory, methods and examples"
    [2] Kong (1992). "A note on importance sampling using standardized weights"
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Sequence, Union

import numpy as np

from ..deck import Card, Rank, Sample, Suit, card_of, format_card, is_face_card, rank_value
from ..errors import ConfigurationError
from .proposals import PmfConvention, draw_cards, face_biased_proposal, multi_proposal, uniform_proposal
from .random_source import RandomSource
from .weighting import (
    WeightingStrategy,
    balance_heuristic_weight,
    face_importance_weight,
    memory_weight,
)


StrategySpec = Union[None, WeightingStrategy, Sequence[WeightingStrategy], Mapping[str, WeightingStrategy]]

BASE_STATS = ('avg_rank', 'naive_avg', 'face_card_pct')

# '{name}_avg' for these would overwrite naive_avg / weighted_avg
RESERVED_STRATEGY_NAMES = ('naive', 'weighted')


@dataclass
class RunningStats:
    """Statistic name -> value, plus the number of samples it reflects."""

    sample_count: int
    values: Dict[str, float] = field(default_factory=dict)

    def __getitem__(self, key: str) -> float:
        return self.values[key]

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def get(self, key: str, default: Optional[float] = None) -> Optional[float]:
        return self.values.get(key, default)

    def keys(self):
        return self.values.keys()

    def as_dict(self) -> Dict[str, float]:
        return {'sample_count': self.sample_count, **self.values}


def as_strategy_map(strategies: StrategySpec) -> Dict[str, WeightingStrategy]:
    """Normalize None / one strategy / a list / a mapping into name -> strategy."""
    if strategies is None:
        return {}
    if isinstance(strategies, WeightingStrategy):
        named = {strategies.name: strategies}
    elif isinstance(strategies, Mapping):
        named = dict(strategies)
    else:
        named = {}
        for strategy in strategies:
            if strategy.name in named:
                raise ValueError(f"Duplicate strategy name {strategy.name!r}; pass a mapping instead")
            named[strategy.name] = strategy

    for name in named:
        if name in RESERVED_STRATEGY_NAMES:
            raise ConfigurationError(
                f"Strategy name {name!r} would overwrite a built-in statistic; "
                f"pass a mapping with another name"
            )
    return named


def _empty_values(strategies: Mapping[str, WeightingStrategy]) -> Dict[str, float]:
    values = {key: 0.0 for key in BASE_STATS}
    for name in strategies:
        values[f'{name}_avg'] = 0.0
        values[f'{name}_weight_sum'] = 0.0
        values[f'{name}_ess'] = 0.0
    if strategies:
        values['weighted_avg'] = 0.0
    return values


def recompute_stats(samples: Iterable[Sample], strategies: StrategySpec = None) -> RunningStats:
    """
    Compute every statistic from scratch over the full sample sequence.

    Args:
        samples: Cards or tagged cards, in draw order
        strategies: Weighting strategies; each adds ``{name}_avg``,
            ``{name}_weight_sum`` and ``{name}_ess``. The first one is also
            reported as ``weighted_avg``.

    Returns:
        RunningStats; all zeros when there are no samples.
    """
    samples = list(samples)
    strategies = as_strategy_map(strategies)
    n = len(samples)

    if n == 0:
        return RunningStats(0, _empty_values(strategies))

    cards = [card_of(s) for s in samples]
    values = np.array([rank_value(c.rank) for c in cards], dtype=float)
    face = np.array([is_face_card(c.rank) for c in cards], dtype=float)

    naive = float(values.mean())
    stats = {
        'avg_rank': naive,
        'naive_avg': naive,
        'face_card_pct': float(face.mean() * 100.0),
    }

    for i, (name, strategy) in enumerate(strategies.items()):
        weights = strategy.weights(samples)
        estimate = float(SelfNormalizedEstimator.estimate(values, weights))
        stats[f'{name}_avg'] = estimate
        stats[f'{name}_weight_sum'] = float(weights.sum())
        stats[f'{name}_ess'] = EffectiveSampleSize.compute(weights)
        if i == 0:
            stats['weighted_avg'] = estimate

    return RunningStats(n, stats)


class RunningSums:
    """
    Incremental accumulator for the same statistics as ``recompute_stats``.

    All running sums are public attributes; nothing is hidden, so a
    snapshot can always be checked against a from-scratch recomputation.
    """

    def __init__(self, strategies: StrategySpec = None):
        self.strategies = as_strategy_map(strategies)
        self.reset()

    def reset(self):
        self.count = 0
        self.rank_sum = 0.0
        self.face_count = 0
        self.weighted_sums = {name: 0.0 for name in self.strategies}
        self.weight_sums = {name: 0.0 for name in self.strategies}
        self.weight_sq_sums = {name: 0.0 for name in self.strategies}

    def add(self, sample: Sample):
        card = card_of(sample)
        value = rank_value(card.rank)
        self.count += 1
        self.rank_sum += value
        self.face_count += is_face_card(card.rank)
        for name, strategy in self.strategies.items():
            w = strategy(sample)
            self.weighted_sums[name] += value * w
            self.weight_sums[name] += w
            self.weight_sq_sums[name] += w * w

    def extend(self, samples: Iterable[Sample]) -> "RunningSums":
        for sample in samples:
            self.add(sample)
        return self

    def snapshot(self) -> RunningStats:
        if self.count == 0:
            return RunningStats(0, _empty_values(self.strategies))

        naive = self.rank_sum / self.count
        stats = {
            'avg_rank': naive,
            'naive_avg': naive,
            'face_card_pct': 100.0 * self.face_count / self.count,
        }
        for i, name in enumerate(self.strategies):
            total = self.weight_sums[name]
            sq = self.weight_sq_sums[name]
            estimate = self.weighted_sums[name] / total if total > 0 else 0.0
            stats[f'{name}_avg'] = estimate
            stats[f'{name}_weight_sum'] = total
            stats[f'{name}_ess'] = total * total / sq if sq > 0 else 0.0
            if i == 0:
                stats['weighted_avg'] = estimate
        return RunningStats(self.count, stats)


class SelfNormalizedEstimator:
    """
    Self-normalized importance sampling estimator.

    Ê[f] = Σ(w_i * f(x_i)) / Σw_i

    Consistent but slightly biased for finite samples. Only the ratio of
    weights matters, so a constant scale on the proposal pmf cancels.
    """

    @staticmethod
    def estimate(
        values: np.ndarray,
        weights: np.ndarray,
        return_variance: bool = False
    ):
        """
        Compute the self-normalized estimate.

        Args:
            values: Function values f(x_i)
            weights: Importance weights w_i
            return_variance: Also return a delta-method variance estimate

        Returns:
            estimate (and variance if requested); 0 when Σw_i = 0
        """
        values = np.asarray(values, dtype=float)
        weights = np.asarray(weights, dtype=float)
        total = weights.sum()

        if values.size == 0 or total <= 0:
            return (0.0, 0.0) if return_variance else 0.0

        # Sum before dividing: unit weights give exactly the naive mean
        estimate = float((weights * values).sum() / total)
        weights_norm = weights / total

        if return_variance:
            # Delta method: Var ≈ Σ w̃_i² (f(x_i) - Ê)²
            variance = float((weights_norm ** 2 * (values - estimate) ** 2).sum())
            return estimate, variance

        return estimate


class EffectiveSampleSize:
    """
    Effective sample size of a set of importance weights.
    """

    @staticmethod
    def compute(weights) -> float:
        """
        Kish ESS = (Σw_i)² / Σw_i²

        Interpretation:
        - ESS = N: all weights equal (uniform proposal)
        - ESS << N: a few samples dominate the estimate
        """
        weights = np.asarray(weights, dtype=float)
        sq = float((weights ** 2).sum())
        if weights.size == 0 or sq <= 0:
            return 0.0
        return float(weights.sum() ** 2 / sq)

    @staticmethod
    def perplexity(weights) -> float:
        """
        Perplexity-based ESS: exp(-Σ w̃_i log w̃_i) with normalized weights.
        """
        weights = np.asarray(weights, dtype=float)
        total = weights.sum()
        if weights.size == 0 or total <= 0:
            return 0.0
        weights_norm = weights / total
        nonzero = weights_norm[weights_norm > 0]
        entropy = -(nonzero * np.log(nonzero)).sum()
        return float(np.exp(entropy))


def mis_stats(samples: Iterable[Sample], convention: PmfConvention = PmfConvention.LEGACY) -> RunningStats:
    """Memory-based and balance-heuristic averages over the same samples."""
    return recompute_stats(samples, {
        'memory': memory_weight(convention),
        'balance': balance_heuristic_weight(convention=convention),
    })


def demonstrate_importance_sampling(seed: int = 42, n_samples: int = 50000):
    """Show how importance weights undo a face-card bias."""

    print("\n" + "=" * 80)
    print("IMPORTANCE SAMPLING: Correcting a Face-Biased Deck")
    print("=" * 80)

    hand = [
        Card(Rank.KING, Suit.SPADES),
        Card(Rank.TWO, Suit.HEARTS),
        Card(Rank.KING, Suit.DIAMONDS),
        Card(Rank.SEVEN, Suit.CLUBS),
    ]
    strategy = face_importance_weight()
    print("\nFixed hand: " + " ".join(format_card(c) for c in hand))
    for card in hand:
        b = strategy.breakdown(card)
        print(f"  {format_card(card):>4}  rank={rank_value(card.rank):>2}  "
              f"w = {b.target:.4f} / {b.denominator:.4f} = {b.weight:.3f}")
    stats = recompute_stats(hand, strategy)
    print(f"  naive average    {stats['naive_avg']:.3f}")
    print(f"  weighted average {stats['weighted_avg']:.3f}")

    rng = RandomSource(seed)
    print(f"\n{n_samples} draws per proposal (target mean rank 7.0):")

    s = recompute_stats(draw_cards(uniform_proposal(), n_samples, rng), face_importance_weight())
    print(f"  {'uniform':<15} naive={s['naive_avg']:.3f}")

    s = recompute_stats(draw_cards(face_biased_proposal(), n_samples, rng), face_importance_weight())
    print(f"  {'face-biased':<15} naive={s['naive_avg']:.3f}  weighted={s['weighted_avg']:.3f}  "
          f"ESS={s['importance_ess']:.0f}")

    s = mis_stats(draw_cards(multi_proposal(), n_samples, rng))
    print(f"  {'multi-proposal':<15} naive={s['naive_avg']:.3f}  "
          f"memory={s['memory_avg']:.3f}  balance={s['balance_avg']:.3f}")

    print("\n" + "=" * 80)
    print("KEY INSIGHT: the naive average of face-biased draws converges to 8.58,")
    print("not 7.0. Weighting each face card by 1/3 recovers the deck's true mean.")
    print("=" * 80)


if __name__ == "__main__":
    demonstrate_importance_sampling()
