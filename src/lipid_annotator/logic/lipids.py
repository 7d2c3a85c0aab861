"""
This module defines the lipid data structures: chains, lipid classes, species
and molecular species level annotations and matched lipids.
"""
from collections import Counter
from dataclasses import dataclass
from typing import Tuple

from ..core.chains import LipidChainType
from ..core.formula import calculate_exact_mass, parse_formula, to_formula
from ..core.ionization import IonizationType
from .rules import LipidAnnotationLevel, LipidFragment, LipidFragmentationRule


@dataclass(frozen=True)
class LipidChain:
    """
    A single acyl or alkyl chain.

    Attributes:
        chain_type: Acyl (ester-linked) or alkyl (ether-linked).
        number_of_carbons: The chain length.
        number_of_dbes: The number of double bond equivalents.
    """
    chain_type: LipidChainType
    number_of_carbons: int
    number_of_dbes: int

    def __post_init__(self):
        if self.number_of_carbons < 1:
            raise ValueError("A lipid chain needs at least one carbon atom.")
        if self.number_of_dbes < 0:
            raise ValueError("Number of double bonds cannot be negative.")

    def sort_key(self) -> tuple:
        return (self.chain_type.sort_index, self.number_of_carbons, self.number_of_dbes)

    @property
    def chain_annotation(self) -> str:
        prefix = "O-" if self.chain_type is LipidChainType.ALKYL_CHAIN else ""
        return f"{prefix}{self.number_of_carbons}:{self.number_of_dbes}"

    def __str__(self) -> str:
        return self.chain_annotation


def _chain_contribution(chain_type: LipidChainType, number_of_carbons: int, number_of_dbes: int) -> str:
    """
    Atoms a chain adds to the fully hydroxylated backbone. Esterification and
    etherification both release one water molecule, so an acyl chain adds the
    fatty acid minus H2O and an alkyl chain adds the fatty alcohol minus H2O.
    """
    if chain_type is LipidChainType.ACYL_CHAIN:
        return f"C{number_of_carbons}H{2 * number_of_carbons - 2 - 2 * number_of_dbes}O"
    return f"C{number_of_carbons}H{2 * number_of_carbons - 2 * number_of_dbes}"


@dataclass(frozen=True)
class LipidClass:
    """
    A lipid class with its chain template and fragmentation catalog.

    Attributes:
        name: The full class name, e.g. "Phosphatidylcholine".
        abbreviation: The short name used in annotations, e.g. "PC".
        backbone_formula: Formula of the backbone with free hydroxyl groups
            where the chains attach.
        chain_types: The ordered chain template, e.g. (ACYL, ACYL).
        fragmentation_rules: The ordered rule catalog. Order matters: the
            first matching rule explains a peak.
    """
    name: str
    abbreviation: str
    backbone_formula: str
    chain_types: Tuple[LipidChainType, ...]
    fragmentation_rules: Tuple[LipidFragmentationRule, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "chain_types", tuple(self.chain_types))
        object.__setattr__(self, "fragmentation_rules", tuple(self.fragmentation_rules))

    @property
    def number_of_chains(self) -> int:
        return len(self.chain_types)

    @property
    def is_ether_lipid(self) -> bool:
        return LipidChainType.ALKYL_CHAIN in self.chain_types

    def rules_for(self, ionization_type: IonizationType) -> Tuple[LipidFragmentationRule, ...]:
        return tuple(rule for rule in self.fragmentation_rules if rule.ionization_type is ionization_type)

    @property
    def ionization_types(self) -> Tuple[IonizationType, ...]:
        seen = []
        for rule in self.fragmentation_rules:
            if rule.ionization_type not in seen:
                seen.append(rule.ionization_type)
        return tuple(seen)

    def __str__(self) -> str:
        return self.abbreviation


@dataclass(frozen=True)
class SpeciesLevelAnnotation:
    """
    A lipid identified by its class and total carbons/double bonds, e.g. PC 34:1.
    """
    lipid_class: LipidClass
    number_of_carbons: int
    number_of_dbes: int

    level = LipidAnnotationLevel.SPECIES_LEVEL

    @property
    def annotation(self) -> str:
        prefix = "O-" if self.lipid_class.is_ether_lipid else ""
        return f"{self.lipid_class.abbreviation} {prefix}{self.number_of_carbons}:{self.number_of_dbes}"

    @property
    def molecular_formula(self) -> str:
        """
        Species formula from the class backbone and the chain totals. The chain
        contributions are linear in carbons and double bonds, so only the number
        of acyl chains matters besides the totals.
        """
        acyl_chains = self.lipid_class.chain_types.count(LipidChainType.ACYL_CHAIN)
        hydrogens = 2 * self.number_of_carbons - 2 * self.number_of_dbes - 2 * acyl_chains
        composition = parse_formula(self.lipid_class.backbone_formula)
        chains = f"C{self.number_of_carbons}H{hydrogens}" + (f"O{acyl_chains}" if acyl_chains else "")
        return to_formula(composition + parse_formula(chains))

    @property
    def exact_mass(self) -> float:
        return calculate_exact_mass(self.molecular_formula)

    def __str__(self) -> str:
        return self.annotation


@dataclass(frozen=True)
class MolecularSpeciesLevelAnnotation:
    """
    A lipid identified chain by chain, e.g. PC 16:0_18:1.

    Chains are kept in canonical order (ether chains first, then by carbons
    and double bonds), so the same composition always yields the same
    annotation regardless of the order the chains were found in.
    """
    lipid_class: LipidClass
    chains: Tuple[LipidChain, ...]

    level = LipidAnnotationLevel.MOLECULAR_SPECIES_LEVEL

    def __post_init__(self):
        object.__setattr__(self, "chains", tuple(sorted(self.chains, key=LipidChain.sort_key)))

    @property
    def number_of_carbons(self) -> int:
        return sum(chain.number_of_carbons for chain in self.chains)

    @property
    def number_of_dbes(self) -> int:
        return sum(chain.number_of_dbes for chain in self.chains)

    @property
    def annotation(self) -> str:
        return f"{self.lipid_class.abbreviation} " + "_".join(c.chain_annotation for c in self.chains)

    @property
    def molecular_formula(self) -> str:
        composition = parse_formula(self.lipid_class.backbone_formula)
        for chain in self.chains:
            composition = composition + parse_formula(
                _chain_contribution(chain.chain_type, chain.number_of_carbons, chain.number_of_dbes)
            )
        return to_formula(composition)

    @property
    def exact_mass(self) -> float:
        return calculate_exact_mass(self.molecular_formula)

    def __str__(self) -> str:
        return self.annotation


def build_molecular_species_level_lipid_from_chains(lipid_class: LipidClass, chains) -> MolecularSpeciesLevelAnnotation:
    return MolecularSpeciesLevelAnnotation(lipid_class=lipid_class, chains=tuple(chains))


def chain_types_fit_lipid_class(chains, lipid_class: LipidClass) -> bool:
    """True if the chains' type multiset equals the class template, in any order."""
    return Counter(chain.chain_type for chain in chains) == Counter(lipid_class.chain_types)


@dataclass(frozen=True)
class MatchedLipid:
    """
    An annotation supported by MS/MS evidence.

    Attributes:
        annotation: Species or molecular species level annotation.
        accurate_mz: The measured precursor m/z.
        ionization_type: The precursor adduct.
        fragments: The matched fragments, deduplicated and sorted.
        msms_score: Percentage of the MS/MS intensity explained.
    """
    annotation: object
    accurate_mz: float
    ionization_type: IonizationType
    fragments: Tuple[LipidFragment, ...]
    msms_score: float

    def sort_key(self) -> tuple:
        return (
            self.annotation.level.name != LipidAnnotationLevel.SPECIES_LEVEL.name,
            self.annotation.annotation,
            self.ionization_type.name,
            -self.msms_score,
        )

    def __str__(self) -> str:
        return f"{self.annotation} {self.ionization_type} ({self.msms_score:.1f} %)"
