from dataclasses import dataclass, field
from typing import Tuple

from .core.constants import (
    DEFAULT_MAX_CHAIN_LENGTH,
    DEFAULT_MAX_DBES,
    DEFAULT_MIN_CHAIN_LENGTH,
    DEFAULT_MIN_MSMS_SCORE,
    DEFAULT_MS1_TOLERANCE_ABSOLUTE,
    DEFAULT_MS1_TOLERANCE_PPM,
    DEFAULT_MSMS_TOLERANCE_ABSOLUTE,
    DEFAULT_MSMS_TOLERANCE_PPM,
)
from .core.ionization import IonizationType
from .core.tolerance import MZTolerance


@dataclass(frozen=True)
class ChainParams:
    """
    Bounds for the enumeration of fatty acid and hydrocarbon chain formulas.
    """
    min_chain_length: int = DEFAULT_MIN_CHAIN_LENGTH
    max_chain_length: int = DEFAULT_MAX_CHAIN_LENGTH
    max_dbes: int = DEFAULT_MAX_DBES

    def __post_init__(self):
        if self.min_chain_length < 1:
            raise ValueError("Minimum chain length must be at least 1.")
        if self.max_chain_length < self.min_chain_length:
            raise ValueError("Maximum chain length cannot be smaller than the minimum chain length.")
        if self.max_dbes < 0:
            raise ValueError("Maximum number of double bonds cannot be negative.")


@dataclass(frozen=True)
class LipidSearchConfig:
    """
    Configuration for an MS1 + MS/MS lipid search.
    """
    lipid_classes: Tuple = ()
    ionization_types: Tuple[IonizationType, ...] = (IonizationType.POSITIVE_HYDROGEN,)
    mz_tolerance_ms1: MZTolerance = field(
        default_factory=lambda: MZTolerance(DEFAULT_MS1_TOLERANCE_ABSOLUTE, DEFAULT_MS1_TOLERANCE_PPM)
    )
    mz_tolerance_msms: MZTolerance = field(
        default_factory=lambda: MZTolerance(DEFAULT_MSMS_TOLERANCE_ABSOLUTE, DEFAULT_MSMS_TOLERANCE_PPM)
    )
    min_msms_score: float = DEFAULT_MIN_MSMS_SCORE
    chain_params: ChainParams = field(default_factory=ChainParams)
    search_molecular_species: bool = True

    def __post_init__(self):
        if not 0.0 <= self.min_msms_score <= 100.0:
            raise ValueError("Minimum MS/MS score must be a percentage between 0 and 100.")
        for name in ("mz_tolerance_ms1", "mz_tolerance_msms"):
            if not isinstance(getattr(self, name), MZTolerance):
                raise TypeError(f"{name} must be an MZTolerance.")
        # Accept lists from callers but store tuples so the config stays hashable.
        object.__setattr__(self, "lipid_classes", tuple(self.lipid_classes))
        object.__setattr__(self, "ionization_types", tuple(self.ionization_types))


