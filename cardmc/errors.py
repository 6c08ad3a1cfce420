"""
Exception types raised by the sampling engine.

Every failure here is a contract violation (bad configuration or a
proposal that cannot support the target), never a transient condition.
"""


class CardMCError(Exception):
    """Base class for engine errors."""


class ConfigurationError(CardMCError, ValueError):
    """Invalid mixing weights, driver settings or proposal definition."""


class UndefinedWeightError(CardMCError, ArithmeticError):
    """Importance weight with a zero (or non-finite) denominator."""


class MissingOriginError(CardMCError, KeyError):
    """Memory-based weighting needs to know which proposal fired."""
