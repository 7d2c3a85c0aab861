"""
This module defines the adduct types a precursor or fragment can carry.
"""
from enum import Enum

from .constants import PROTON_MASS


class IonizationType(Enum):
    """
    Adduct types with the mass they add to a neutral molecule.

    Each member carries:
        adduct_name: The conventional adduct notation.
        added_mass: Mass (Da) added to the neutral monoisotopic mass, electron included.
        polarity: "+" or "-".
        charge: The absolute charge of the ion.
    """
    POSITIVE_HYDROGEN = ("[M+H]+", PROTON_MASS, "+", 1)
    SODIUM = ("[M+Na]+", 22.989218, "+", 1)
    AMMONIUM = ("[M+NH4]+", 18.033823, "+", 1)
    POTASSIUM = ("[M+K]+", 38.963158, "+", 1)
    NEGATIVE_HYDROGEN = ("[M-H]-", -PROTON_MASS, "-", 1)
    CHLORIDE = ("[M+Cl]-", 34.969402, "-", 1)
    FORMATE = ("[M+HCOO]-", 44.998201, "-", 1)
    ACETATE = ("[M+CH3COO]-", 59.013851, "-", 1)

    def __init__(self, adduct_name: str, added_mass: float, polarity: str, charge: int):
        self.adduct_name = adduct_name
        self.added_mass = added_mass
        self.polarity = polarity
        self.charge = charge

    def ion_mz(self, neutral_mass: float) -> float:
        """Returns the m/z of a neutral molecule carrying this adduct."""
        return (neutral_mass + self.added_mass) / self.charge

    def __str__(self) -> str:
        return self.adduct_name
