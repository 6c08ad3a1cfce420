"""
Exact reference values the simulations should converge to.

Everything is computed by enumerating the 52-card deck under a proposal's
sampling law, so no constant here is typed in by hand.
"""

from ..deck import FULL_DECK, is_face_card, rank_value
from .proposals import Proposal, face_biased_proposal, uniform_proposal


def expected_rank(proposal: Proposal) -> float:
    """Mean rank value the naive average converges to under ``proposal``."""
    return proposal.expectation(lambda card: rank_value(card.rank))


def expected_face_pct(proposal: Proposal) -> float:
    return 100.0 * proposal.expectation(lambda card: is_face_card(card.rank))


def target_rank_mean() -> float:
    """Mean rank of the uniform deck: 7.0."""
    return sum(rank_value(card.rank) for card in FULL_DECK) / len(FULL_DECK)


def reference_targets() -> dict:
    """Convergence targets for the preset demos."""
    uniform = uniform_proposal()
    face = face_biased_proposal()
    return {
        'uniform_avg_rank': expected_rank(uniform),          # 7.0
        'uniform_face_pct': expected_face_pct(uniform),      # 23.08
        'face_biased_naive_avg': expected_rank(face),        # 163/19 ≈ 8.58
        'face_biased_face_pct': expected_face_pct(face),     # 47.37
        'weighted_avg': target_rank_mean(),                  # 7.0
    }
