"""
Exceptions raised by the lipid annotation engine.

Configuration problems (tolerances, chain cardinality) abort the whole call.
Chemistry problems (malformed formulas) are handled locally by the fragment
evaluator, which skips the offending rule and keeps going.
"""


class LipidAnnotationError(Exception):
    """Base class for all errors raised by this package."""


class InvalidToleranceRange(LipidAnnotationError, ValueError):
    """A tolerance window whose upper bound lies below its lower bound."""


class UnsupportedChainCardinality(LipidAnnotationError, ValueError):
    """A lipid class template with a number of chains other than 1, 2 or 3."""

    def __init__(self, cardinality: int):
        super().__init__(
            f"Lipid classes with {cardinality} chains are not supported. "
            "Chain templates must contain 1, 2 or 3 chains."
        )
        self.cardinality = cardinality


class ZeroIntensityDenominator(LipidAnnotationError, ZeroDivisionError):
    """The summed intensity of the comparison peaks is zero, so no score exists."""


class MalformedFormula(LipidAnnotationError, ValueError):
    """A molecular formula that cannot be parsed or has no mass data."""

    def __init__(self, formula, reason: str = ""):
        message = f"Malformed molecular formula: {formula!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.formula = formula
