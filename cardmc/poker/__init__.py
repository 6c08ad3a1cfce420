"""
Poker straight rare-event demo built on the deck model.
"""

from .straights import (
    HandProposal,
    Matchup,
    PokerTally,
    PokerDriver,
    PROPOSAL_PROBABILITIES,
    deal_uniform_hand,
    deal_straight_biased_hand,
    deal_matchup,
    has_straight,
    tally,
    uniform_straight_probability,
    straight_biased_probability,
)

__all__ = [
    'HandProposal',
    'Matchup',
    'PokerTally',
    'PokerDriver',
    'PROPOSAL_PROBABILITIES',
    'deal_uniform_hand',
    'deal_straight_biased_hand',
    'deal_matchup',
    'has_straight',
    'tally',
    'uniform_straight_probability',
    'straight_biased_probability',
]
