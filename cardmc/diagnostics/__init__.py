"""
Convergence diagnostics for importance-sampled card estimates.

This module provides checks that a running estimate has reached its
known target and that the sampler behaves as its pmf claims.
"""

from .convergence import (
    ConvergenceResult,
    ConvergenceDiagnostics,
    EffectiveSampleSize,
    MonteCarloError,
    GewekeDiagnostic,
    sampler_consistency,
    pmf_consistent,
    quick_convergence_check,
)

__all__ = [
    'ConvergenceResult',
    'ConvergenceDiagnostics',
    'EffectiveSampleSize',
    'MonteCarloError',
    'GewekeDiagnostic',
    'sampler_consistency',
    'pmf_consistent',
    'quick_convergence_check',
]
