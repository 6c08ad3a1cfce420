"""
cardmc: Monte Carlo estimation over a 52-card deck.

Biased proposals, importance weights and multiple importance sampling,
with running statistics that converge to known targets.
"""

from .deck import (
    Rank,
    Suit,
    Origin,
    Card,
    TaggedCard,
    FULL_DECK,
    rank_value,
    is_face_card,
    is_red,
    card_of,
    origin_of,
    format_card,
)
from .errors import CardMCError, ConfigurationError, UndefinedWeightError, MissingOriginError
from .sampling import (
    RandomSource,
    PmfConvention,
    draw_card,
    pmf,
    weight,
    recompute_stats,
    RunningStats,
)

__version__ = "0.1.0"

__all__ = [
    'Rank',
    'Suit',
    'Origin',
    'Card',
    'TaggedCard',
    'FULL_DECK',
    'rank_value',
    'is_face_card',
    'is_red',
    'card_of',
    'origin_of',
    'format_card',
    'CardMCError',
    'ConfigurationError',
    'UndefinedWeightError',
    'MissingOriginError',
    'RandomSource',
    'PmfConvention',
    'draw_card',
    'pmf',
    'weight',
    'recompute_stats',
    'RunningStats',
]
