"""
This module enumerates the candidate chain formulas that fragment rules are
tested against.

Enumeration order is ascending carbon count, then ascending number of double
bonds. The fragment evaluator reports the first chain inside the tolerance
window, so this order decides which chain wins an ambiguous window.
"""
import functools
from dataclasses import dataclass
from enum import Enum

from ..config import ChainParams
from .errors import MalformedFormula
from .formula import parse_formula


class LipidChainType(Enum):
    """Ester-linked (acyl) or ether-linked (alkyl) chains."""
    ACYL_CHAIN = "acyl"
    ALKYL_CHAIN = "alkyl"

    @property
    def sort_index(self) -> int:
        # Ether chains are written first in molecular species names (O-16:0_18:1).
        return 0 if self is LipidChainType.ALKYL_CHAIN else 1


@dataclass(frozen=True)
class ChainFormula:
    """
    One enumerated chain formula together with the chain it encodes.

    Attributes:
        formula: The free fatty acid (acyl) or hydrocarbon (alkyl) formula.
        chain_type: Acyl or alkyl.
        number_of_carbons: The chain length.
        number_of_dbes: The number of double bond equivalents of the chain.
    """
    formula: str
    chain_type: LipidChainType
    number_of_carbons: int
    number_of_dbes: int


def calculate_fatty_acid_formula(chain_length: int, number_of_dbes: int) -> str:
    return f"C{chain_length}H{2 * chain_length - 2 * number_of_dbes}O2"


def calculate_hydrocarbon_formula(chain_length: int, number_of_dbes: int) -> str:
    return f"C{chain_length}H{2 * chain_length + 2 - 2 * number_of_dbes}"


def chain_length_from_formula(formula: str) -> int:
    """Number of carbons of a fatty acid or hydrocarbon chain formula."""
    composition = parse_formula(formula)
    if composition['C'] < 1:
        raise MalformedFormula(formula, "no carbon atoms")
    return composition['C']


def number_of_dbes_from_formula(formula: str) -> int:
    """
    Number of double bond equivalents of a chain formula.

    Formulas with oxygen are read as free fatty acids C(n)H(2n-2d)O2, the
    others as hydrocarbons C(n)H(2n+2-2d).
    """
    composition = parse_formula(formula)
    carbons = chain_length_from_formula(formula)
    saturated_hydrogens = 2 * carbons if composition['O'] else 2 * carbons + 2
    missing_hydrogens = saturated_hydrogens - composition['H']
    if missing_hydrogens < 0 or missing_hydrogens % 2:
        raise MalformedFormula(formula, "hydrogen count does not fit a chain")
    return missing_hydrogens // 2


@functools.lru_cache(maxsize=32)
def _enumerate(chain_type: LipidChainType, min_length: int, max_length: int, max_dbes: int) -> tuple:
    build = (
        calculate_fatty_acid_formula
        if chain_type is LipidChainType.ACYL_CHAIN
        else calculate_hydrocarbon_formula
    )
    formulas = []
    for chain_length in range(max(1, min_length), max_length + 1):
        for number_of_dbes in range(0, min(max_dbes, chain_length - 1) + 1):
            formulas.append(
                ChainFormula(build(chain_length, number_of_dbes), chain_type, chain_length, number_of_dbes)
            )
    return tuple(formulas)


class ChainTools:
    """
    Enumerates fatty acid and hydrocarbon formulas within configured bounds.

    Instances hold no mutable state. The enumerated tuples are memoised per
    set of bounds and shared read-only between instances and threads.
    """

    def __init__(self, params: ChainParams | None = None):
        self.params = params or ChainParams()

    def fatty_acid_formulas(self) -> tuple[ChainFormula, ...]:
        """Free fatty acid formulas C(n)H(2n-2d)O2."""
        p = self.params
        return _enumerate(LipidChainType.ACYL_CHAIN, p.min_chain_length, p.max_chain_length, p.max_dbes)

    def hydrocarbon_formulas(self) -> tuple[ChainFormula, ...]:
        """Saturated or unsaturated hydrocarbon formulas C(n)H(2n+2-2d)."""
        p = self.params
        return _enumerate(LipidChainType.ALKYL_CHAIN, p.min_chain_length, p.max_chain_length, p.max_dbes)

    def formulas_for(self, chain_type: LipidChainType) -> tuple[ChainFormula, ...]:
        if chain_type is LipidChainType.ACYL_CHAIN:
            return self.fatty_acid_formulas()
        return self.hydrocarbon_formulas()

