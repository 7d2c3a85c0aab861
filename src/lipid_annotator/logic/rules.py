"""
This module defines lipid fragmentation rules and the fragments they produce.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..core.chains import LipidChainType
from ..core.constants import MZ_KEY_DECIMALS
from ..core.ionization import IonizationType
from ..core.types import Peak


class LipidFragmentationRuleType(Enum):
    HEADGROUP_FRAGMENT = "headgroup fragment"
    HEADGROUP_FRAGMENT_NL = "headgroup neutral loss"
    ACYLCHAIN_FRAGMENT = "acyl chain fragment"
    ACYLCHAIN_FRAGMENT_NL = "acyl chain neutral loss"
    ACYLCHAIN_MINUS_FORMULA_FRAGMENT = "acyl chain minus formula fragment"
    ACYLCHAIN_MINUS_FORMULA_FRAGMENT_NL = "acyl chain minus formula neutral loss"
    ACYLCHAIN_PLUS_FORMULA_FRAGMENT = "acyl chain plus formula fragment"
    ACYLCHAIN_PLUS_FORMULA_FRAGMENT_NL = "acyl chain plus formula neutral loss"
    TWO_ACYLCHAINS_PLUS_FORMULA_FRAGMENT = "two acyl chains plus formula fragment"
    ALKYLCHAIN_FRAGMENT = "alkyl chain fragment"
    ALKYLCHAIN_FRAGMENT_NL = "alkyl chain neutral loss"
    ALKYLCHAIN_MINUS_FORMULA_FRAGMENT = "alkyl chain minus formula fragment"
    ALKYLCHAIN_MINUS_FORMULA_FRAGMENT_NL = "alkyl chain minus formula neutral loss"
    ALKYLCHAIN_PLUS_FORMULA_FRAGMENT = "alkyl chain plus formula fragment"
    ALKYLCHAIN_PLUS_FORMULA_FRAGMENT_NL = "alkyl chain plus formula neutral loss"

    @property
    def requires_formula(self) -> bool:
        return self in _FORMULA_RULE_TYPES


# Rule kinds whose predicted mass depends on the rule's molecular formula.
_FORMULA_RULE_TYPES = frozenset({
    LipidFragmentationRuleType.HEADGROUP_FRAGMENT,
    LipidFragmentationRuleType.HEADGROUP_FRAGMENT_NL,
    LipidFragmentationRuleType.ACYLCHAIN_MINUS_FORMULA_FRAGMENT,
    LipidFragmentationRuleType.ACYLCHAIN_MINUS_FORMULA_FRAGMENT_NL,
    LipidFragmentationRuleType.ACYLCHAIN_PLUS_FORMULA_FRAGMENT,
    LipidFragmentationRuleType.ACYLCHAIN_PLUS_FORMULA_FRAGMENT_NL,
    LipidFragmentationRuleType.TWO_ACYLCHAINS_PLUS_FORMULA_FRAGMENT,
    LipidFragmentationRuleType.ALKYLCHAIN_MINUS_FORMULA_FRAGMENT,
    LipidFragmentationRuleType.ALKYLCHAIN_MINUS_FORMULA_FRAGMENT_NL,
    LipidFragmentationRuleType.ALKYLCHAIN_PLUS_FORMULA_FRAGMENT,
    LipidFragmentationRuleType.ALKYLCHAIN_PLUS_FORMULA_FRAGMENT_NL,
})


class LipidAnnotationLevel(Enum):
    """How much structural information a fragment or an annotation carries."""
    SPECIES_LEVEL = "species level"
    MOLECULAR_SPECIES_LEVEL = "molecular species level"


@dataclass(frozen=True)
class LipidFragmentationRule:
    """
    One entry of a lipid class' fragmentation catalog.

    Attributes:
        ionization_type: The precursor adduct this rule applies to.
        rule_type: The fragmentation pathway.
        information_level: The annotation level a matching fragment supports.
        molecular_formula: Headgroup, offset or neutral loss formula, for the
            rule kinds that need one.
    """
    ionization_type: IonizationType
    rule_type: LipidFragmentationRuleType
    information_level: LipidAnnotationLevel = LipidAnnotationLevel.SPECIES_LEVEL
    molecular_formula: Optional[str] = None

    def __post_init__(self):
        if self.rule_type.requires_formula and not self.molecular_formula:
            raise ValueError(f"Fragmentation rule {self.rule_type.name} requires a molecular formula.")

    def __str__(self) -> str:
        text = f"{self.ionization_type} {self.rule_type.value}"
        if self.molecular_formula:
            text += f" {self.molecular_formula}"
        return text


@dataclass(frozen=True)
class LipidFragment:
    """
    A peak explained by a fragmentation rule.

    Attributes:
        rule_type: The rule kind that explained the peak.
        information_level: The annotation level of that rule.
        mz_exact: The predicted exact m/z that fell inside the tolerance window.
        peak: The observed peak.
        lipid_class: The lipid class whose catalog contained the rule.
        chain_length: Carbons of the matched chain, for chain rules.
        number_of_dbes: Double bonds of the matched chain, for chain rules.
        chain_type: The chain type tag of the fragment.
        scan: Opaque reference to the MS/MS scan, owned by the caller.
    """
    rule_type: LipidFragmentationRuleType
    information_level: LipidAnnotationLevel
    mz_exact: float
    peak: Peak
    lipid_class: Any
    chain_length: Optional[int] = None
    number_of_dbes: Optional[int] = None
    chain_type: Optional[LipidChainType] = None
    scan: Any = field(default=None, compare=False)

    @property
    def has_chain(self) -> bool:
        return (
            self.chain_type is not None
            and self.chain_length is not None
            and self.number_of_dbes is not None
        )

    def sort_key(self) -> tuple:
        """Structural identity of the fragment, also used for ordering."""
        chain = (
            (self.chain_type.sort_index, self.chain_length, self.number_of_dbes)
            if self.has_chain else (-1, -1, -1)
        )
        return (
            self.peak.mz,
            self.peak.intensity,
            self.rule_type.name,
            self.information_level.name,
            round(self.mz_exact, MZ_KEY_DECIMALS),
            chain,
        )


def sorted_fragments(fragments) -> tuple[LipidFragment, ...]:
    """
    Returns the fragments deduplicated by structural identity and sorted.
    """
    unique = {}
    for fragment in fragments:
        unique.setdefault(fragment.sort_key(), fragment)
    return tuple(unique[key] for key in sorted(unique))
