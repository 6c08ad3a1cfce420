"""
Convergence diagnostics for importance-sampled card estimates.

This module checks whether a running estimate has settled on the value it
should, and whether the draws behind it are trustworthy. Without these
checks a biased estimator that has converged (to the wrong value) looks
exactly like a correct one.

Key diagnostics:
- Effective Sample Size (ESS): how many equally weighted draws the
  importance weights are worth
- Monte Carlo standard error: batch means and self-normalized delta method
- Geweke diagnostic: stationarity of the per-sample contributions
- Sampler consistency: chi-square test of draws against the proposal law
"""

import numpy as np
from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass
import warnings
from scipy import stats

from ..deck import FULL_DECK, Sample, card_of, rank_value
from ..sampling.estimators import SelfNormalizedEstimator
from ..sampling.estimators import EffectiveSampleSize as KishESS
from ..sampling.proposals import Proposal
from ..sampling.random_source import RandomLike, as_random_source
from ..sampling.weighting import WeightingStrategy


@dataclass
class ConvergenceResult:
    """Results from convergence diagnostics."""
    converged: bool
    estimate: Optional[float] = None
    expected: Optional[float] = None
    standard_error: Optional[float] = None  # Delta-method MCSE
    ess: Optional[float] = None  # Kish effective sample size
    z_score: Optional[float] = None  # (estimate - expected) / standard_error
    confidence_interval: Optional[Tuple[float, float]] = None
    geweke_z: Optional[float] = None
    warnings: List[str] = None

    def __post_init__(self):
        if self.warnings is None:
            self.warnings = []


class EffectiveSampleSize:
    """
    Effective sample size of importance weights.

    ESS = (Σw_i)² / Σw_i². Equal weights give ESS = N; a proposal that
    misses the target concentrates the weight on a few draws and ESS << N.

    Reference:
        Kong (1992) "A note on importance sampling using standardized weights"
    """

    def __init__(self, min_fraction: float = 0.1):
        """
        Args:
            min_fraction: Minimum ESS / N for adequate sampling
        """
        self.min_fraction = min_fraction

    def compute(self, weights: np.ndarray) -> Tuple[float, bool]:
        """
        Returns:
            ess: Effective sample size
            adequate: Whether ESS >= min_fraction * N
        """
        weights = np.asarray(weights, dtype=float)
        ess = KishESS.compute(weights)
        adequate = weights.size > 0 and ess >= self.min_fraction * weights.size
        return ess, adequate


class MonteCarloError:
    """
    Monte Carlo standard error estimation.

    MCSE quantifies the uncertainty in an estimate due to finite sampling.
    """

    def compute_batch_means(self, x: np.ndarray, batch_size: Optional[int] = None) -> float:
        """
        Compute MCSE using batch means method.

        Args:
            x: Per-sample values
            batch_size: Size of batches (default: sqrt(n))

        Returns:
            Monte Carlo standard error
        """
        x = np.asarray(x, dtype=float)
        n = len(x)
        if n == 0:
            return 0.0

        if batch_size is None:
            batch_size = max(1, int(np.sqrt(n)))

        n_batches = n // batch_size

        if n_batches < 2:
            return float(np.std(x) / np.sqrt(n))

        x_batched = x[:n_batches * batch_size].reshape(n_batches, batch_size)
        batch_means = np.mean(x_batched, axis=1)

        return float(np.std(batch_means) / np.sqrt(n_batches))

    def compute_self_normalized(self, values: np.ndarray, weights: np.ndarray) -> float:
        """
        Delta-method standard error of the self-normalized estimate.
        """
        _, variance = SelfNormalizedEstimator.estimate(values, weights, return_variance=True)
        return float(np.sqrt(variance))


class GewekeDiagnostic:
    """
    Geweke convergence diagnostic.

    Tests whether the mean of the first portion of the sequence equals the
    mean of the last portion. For independent card draws this should pass;
    a failure means the sampler drifted during the run.

    Reference:
        Geweke (1992) "Evaluating the accuracy of sampling-based approaches"
    """

    def __init__(self, first_frac: float = 0.1, last_frac: float = 0.5):
        self.first_frac = first_frac
        self.last_frac = last_frac

    def compute(self, x: np.ndarray) -> Tuple[float, bool]:
        """
        Returns:
            z_score: Geweke statistic
            converged: Whether |z| < 1.96 (95% confidence)
        """
        x = np.asarray(x, dtype=float)
        n = len(x)

        n_first = int(self.first_frac * n)
        n_last = int(self.last_frac * n)

        if n_first < 2 or n_last < 2:
            return 0.0, True

        first_samples = x[:n_first]
        last_samples = x[-n_last:]

        se = np.sqrt(np.var(first_samples) / n_first + np.var(last_samples) / n_last)
        z_score = (np.mean(first_samples) - np.mean(last_samples)) / se if se > 0 else 0.0

        return float(z_score), abs(z_score) < 1.96


class ConvergenceDiagnostics:
    """
    Combined check of a weighted estimate against a known target.

    The estimate is considered converged when it lies within ``tolerance``
    of the expected value; ESS and Geweke results are reported alongside.
    """

    def __init__(
        self,
        tolerance: float = 0.1,
        confidence: float = 0.95,
        min_ess_fraction: float = 0.1
    ):
        """
        Args:
            tolerance: Allowed |estimate - expected|
            confidence: Level of the normal confidence interval
            min_ess_fraction: ESS / N below which a RuntimeWarning is raised
        """
        self.tolerance = tolerance
        self.confidence = confidence
        self.ess_calculator = EffectiveSampleSize(min_ess_fraction)
        self.mcse_calculator = MonteCarloError()
        self.geweke = GewekeDiagnostic()

    def diagnose(
        self,
        values: np.ndarray,
        weights: Optional[np.ndarray] = None,
        expected: Optional[float] = None
    ) -> ConvergenceResult:
        """
        Diagnose a (weighted) estimate of E[value].

        Args:
            values: Per-sample values (e.g. rank values)
            weights: Importance weights; None means all ones
            expected: Known target value, if any

        Returns:
            ConvergenceResult with diagnostic information
        """
        values = np.asarray(values, dtype=float)
        weights = np.ones_like(values) if weights is None else np.asarray(weights, dtype=float)
        if values.shape != weights.shape:
            raise ValueError(f"values and weights differ in shape: {values.shape} vs {weights.shape}")

        result = ConvergenceResult(converged=True)

        if values.size == 0:
            result.converged = False
            result.estimate = 0.0
            result.warnings.append("No samples")
            return result

        estimate, variance = SelfNormalizedEstimator.estimate(values, weights, return_variance=True)
        se = float(np.sqrt(variance))
        result.estimate = estimate
        result.standard_error = se

        ess, ess_adequate = self.ess_calculator.compute(weights)
        result.ess = ess
        if not ess_adequate:
            message = f"Low ESS: {ess:.1f} of {values.size} samples"
            result.warnings.append(message)
            warnings.warn(
                f"{message}. The proposal covers the target poorly; "
                "consider a proposal closer to the target or more samples.",
                category=RuntimeWarning
            )

        z_crit = stats.norm.ppf(0.5 + self.confidence / 2)
        result.confidence_interval = (estimate - z_crit * se, estimate + z_crit * se)

        # Contributions w_i f(x_i) / mean(w) average to the self-normalized estimate
        mean_w = weights.mean()
        contributions = weights * values / mean_w if mean_w > 0 else values
        z_geweke, geweke_passed = self.geweke.compute(contributions)
        result.geweke_z = z_geweke
        if not geweke_passed:
            result.warnings.append(f"Geweke test failed: |z|={abs(z_geweke):.2f} > 1.96")

        if expected is not None:
            result.expected = expected
            error = estimate - expected
            if se > 0:
                result.z_score = error / se
            else:
                result.z_score = 0.0 if error == 0 else float(np.sign(error) * np.inf)
            if abs(error) > self.tolerance:
                result.converged = False
                result.warnings.append(
                    f"Estimate {estimate:.3f} is {abs(error):.3f} from expected {expected:.3f}"
                )

        return result

    def diagnose_samples(
        self,
        samples: Sequence[Sample],
        strategy: Optional[WeightingStrategy] = None,
        expected: Optional[float] = None
    ) -> ConvergenceResult:
        """Diagnose the (weighted) mean rank of a card sequence."""
        values = np.array([rank_value(card_of(s).rank) for s in samples], dtype=float)
        weights = strategy.weights(samples) if strategy is not None else None
        return self.diagnose(values, weights, expected)

    def diagnose_history(
        self,
        history: Sequence,
        key: str,
        expected: float,
        tail_fraction: float = 0.2
    ) -> ConvergenceResult:
        """
        Check a history trace: final value near ``expected`` and a flat tail.

        Args:
            history: Points with ``sample_count`` and ``stats[key]``
            key: Statistic to check
            expected: Target value
            tail_fraction: Fraction of trailing points that must stay in tolerance
        """
        result = ConvergenceResult(converged=True, expected=expected)

        if len(history) < 2:
            warnings.warn(
                f"History for {key!r} has {len(history)} point(s); nothing to diagnose yet",
                category=RuntimeWarning
            )
            result.converged = False
            result.warnings.append("Too few history points")
            return result

        trace = np.array([p.stats[key] for p in history], dtype=float)
        result.estimate = float(trace[-1])

        n_tail = max(1, int(len(trace) * tail_fraction))
        tail = trace[-n_tail:]
        worst = float(np.max(np.abs(tail - expected)))
        if worst > self.tolerance:
            result.converged = False
            result.warnings.append(
                f"{key} left the ±{self.tolerance} band in the last {n_tail} points "
                f"(max deviation {worst:.3f})"
            )

        return result


def sampler_consistency(
    proposal: Proposal,
    n_samples: int = 20000,
    rng: RandomLike = None,
    alpha: float = 0.001
) -> Tuple[float, bool]:
    """
    Chi-square goodness of fit of the sampler against ``proposal.probability``.

    Returns:
        p_value: Chi-square p-value over the proposal's support
        consistent: Whether p_value >= alpha
    """
    source = as_random_source(rng)
    support = proposal.support()
    index = {card: i for i, card in enumerate(support)}

    observed = np.zeros(len(support))
    for _ in range(n_samples):
        card = card_of(proposal.draw(source))
        if card not in index:
            # Drew a card the proposal claims is impossible
            return 0.0, False
        observed[index[card]] += 1

    expected = np.array([proposal.probability(card) for card in support])
    expected = expected / expected.sum() * n_samples

    _, p_value = stats.chisquare(observed, expected)
    return float(p_value), bool(p_value >= alpha)


def pmf_consistent(proposal: Proposal, rtol: float = 1e-9) -> bool:
    """
    Whether pmf is proportional to the sampling law on the whole deck.

    True for every single proposal under both conventions; a LEGACY mixture
    is not proportional because its components carry different scales.
    """
    ratios = []
    for card in FULL_DECK:
        p, q = proposal.pmf(card), proposal.probability(card)
        if q == 0:
            continue
        ratios.append(p / q)
    return bool(np.allclose(ratios, ratios[0], rtol=rtol, atol=0.0))


def reference_report(diagnostics: ConvergenceDiagnostics, results: Dict[str, ConvergenceResult]) -> str:
    lines = ["=== Convergence Diagnostics ==="]
    for name, result in results.items():
        line = f"{name}: estimate={result.estimate:.3f}"
        if result.expected is not None:
            line += f" expected={result.expected:.3f}"
        if result.standard_error is not None:
            line += f" MCSE={result.standard_error:.4f}"
        if result.ess is not None:
            line += f" ESS={result.ess:.1f}"
        line += f" converged={result.converged}"
        lines.append(line)
        for warning in result.warnings:
            lines.append(f"  - {warning}")
    lines.append(f"(tolerance ±{diagnostics.tolerance})")
    return "\n".join(lines)


def quick_convergence_check(
    samples: Sequence[Sample],
    strategy: Optional[WeightingStrategy] = None,
    expected: float = 7.0,
    verbose: bool = True
) -> bool:
    """
    Quick convergence check with default parameters.

    Args:
        samples: Card draws
        strategy: Weighting strategy (None for the naive average)
        expected: Target mean rank
        verbose: Whether to print diagnostic information

    Returns:
        Whether the estimate is within tolerance of ``expected``
    """
    diagnostics = ConvergenceDiagnostics()
    result = diagnostics.diagnose_samples(samples, strategy, expected)

    if verbose:
        name = strategy.name if strategy is not None else "naive"
        print(reference_report(diagnostics, {name: result}))

    return result.converged
