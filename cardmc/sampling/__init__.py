"""
Importance sampling over a 52-card deck.

This module provides the proposal distributions, importance weights and
self-normalized estimators that turn biased card draws into correct
estimates of the uniform deck's statistics.
"""

from .random_source import RandomSource, as_random_source
from .proposals import (
    PmfConvention,
    MixingWeights,
    Proposal,
    DiscreteProposal,
    MixtureProposal,
    uniform_proposal,
    face_biased_proposal,
    red_biased_proposal,
    multi_proposal,
    draw_card,
    draw_cards,
    pmf,
)
from .weighting import (
    UNIFORM_TARGET_PMF,
    WeightBreakdown,
    WeightingStrategy,
    NaiveWeight,
    ImportanceWeight,
    MemoryWeight,
    BalanceHeuristicWeight,
    weight,
    explain_weight,
    face_importance_weight,
    memory_weight,
    balance_heuristic_weight,
)
from .estimators import (
    RunningStats,
    RunningSums,
    SelfNormalizedEstimator,
    EffectiveSampleSize,
    recompute_stats,
    mis_stats,
)
from .theory import expected_rank, expected_face_pct, target_rank_mean, reference_targets

__all__ = [
    # Randomness
    'RandomSource',
    'as_random_source',
    # Proposals
    'PmfConvention',
    'MixingWeights',
    'Proposal',
    'DiscreteProposal',
    'MixtureProposal',
    'uniform_proposal',
    'face_biased_proposal',
    'red_biased_proposal',
    'multi_proposal',
    'draw_card',
    'draw_cards',
    'pmf',
    # Weights
    'UNIFORM_TARGET_PMF',
    'WeightBreakdown',
    'WeightingStrategy',
    'NaiveWeight',
    'ImportanceWeight',
    'MemoryWeight',
    'BalanceHeuristicWeight',
    'weight',
    'explain_weight',
    'face_importance_weight',
    'memory_weight',
    'balance_heuristic_weight',
    # Estimators
    'RunningStats',
    'RunningSums',
    'SelfNormalizedEstimator',
    'EffectiveSampleSize',
    'recompute_stats',
    'mis_stats',
    # Reference values
    'expected_rank',
    'expected_face_pct',
    'target_rank_mean',
    'reference_targets',
]
