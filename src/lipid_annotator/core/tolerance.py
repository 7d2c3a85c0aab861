"""
This module provides m/z tolerance windows combining an absolute and a
relative (ppm) component.
"""
from dataclasses import dataclass

from .errors import InvalidToleranceRange


@dataclass(frozen=True)
class ToleranceRange:
    """
    A closed m/z window [lower, upper].
    """
    lower: float
    upper: float

    def __post_init__(self):
        if self.upper < self.lower:
            raise InvalidToleranceRange(
                f"Upper bound {self.upper} is below lower bound {self.lower}."
            )

    def contains(self, mz: float) -> bool:
        return self.lower <= mz <= self.upper

    def __contains__(self, mz: float) -> bool:
        return self.contains(mz)


@dataclass(frozen=True)
class MZTolerance:
    """
    An m/z tolerance made of an absolute part (Da) and a relative part (ppm).

    The effective half-width at a given m/z is the wider of the two:
    ``max(absolute, mz * ppm / 1e6)``.
    """
    absolute: float
    ppm: float

    def __post_init__(self):
        if self.absolute < 0 or self.ppm < 0:
            raise InvalidToleranceRange(
                f"Tolerances must be non-negative (got {self.absolute} Da, {self.ppm} ppm)."
            )

    def get_mz_tolerance(self, mz: float) -> float:
        return max(self.absolute, abs(mz) * self.ppm / 1e6)

    def get_tolerance_range(self, mz: float) -> ToleranceRange:
        tolerance = self.get_mz_tolerance(mz)
        return ToleranceRange(mz - tolerance, mz + tolerance)

    def check_within_tolerance(self, mz: float, other_mz: float) -> bool:
        """True if ``other_mz`` lies in the window around ``mz``."""
        return self.get_tolerance_range(mz).contains(other_mz)

    def __str__(self) -> str:
        return f"{self.absolute} m/z or {self.ppm} ppm"
