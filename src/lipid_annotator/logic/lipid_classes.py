"""
A built-in catalog of common lipid classes and their MS/MS fragmentation rules.

Backbone formulas are the fully hydroxylated backbones (e.g.
glycerophosphocholine for PC); chains are attached by condensation. Rules
are listed per adduct in the order they are tried.
"""
from ..core.chains import LipidChainType
from ..core.ionization import IonizationType
from .lipids import LipidClass
from .rules import (
    LipidAnnotationLevel,
    LipidFragmentationRule,
    LipidFragmentationRuleType as RuleType,
)

ACYL = LipidChainType.ACYL_CHAIN
ALKYL = LipidChainType.ALKYL_CHAIN
SPECIES = LipidAnnotationLevel.SPECIES_LEVEL
MOLECULAR_SPECIES = LipidAnnotationLevel.MOLECULAR_SPECIES_LEVEL


def _rule(ionization_type, rule_type, level, formula=None):
    return LipidFragmentationRule(ionization_type, rule_type, level, formula)


PHOSPHATIDYLCHOLINE = LipidClass(
    name="Phosphatidylcholine",
    abbreviation="PC",
    backbone_formula="C8H20NO6P",
    chain_types=(ACYL, ACYL),
    fragmentation_rules=(
        _rule(IonizationType.POSITIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, SPECIES, "C5H15NO4P+"),
        _rule(IonizationType.SODIUM, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "C3H9N"),
        _rule(IonizationType.SODIUM, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "C5H14NO4P"),
        _rule(IonizationType.FORMATE, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "C2H4O2"),
        _rule(IonizationType.FORMATE, RuleType.ACYLCHAIN_FRAGMENT, MOLECULAR_SPECIES),
        _rule(IonizationType.ACETATE, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "C3H6O2"),
        _rule(IonizationType.ACETATE, RuleType.ACYLCHAIN_FRAGMENT, MOLECULAR_SPECIES),
    ),
)

PHOSPHATIDYLETHANOLAMINE = LipidClass(
    name="Phosphatidylethanolamine",
    abbreviation="PE",
    backbone_formula="C5H14NO6P",
    chain_types=(ACYL, ACYL),
    fragmentation_rules=(
        _rule(IonizationType.POSITIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "C2H8NO4P"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, SPECIES, "C2H7NO4P-"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.ACYLCHAIN_FRAGMENT, MOLECULAR_SPECIES),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.ACYLCHAIN_FRAGMENT_NL, MOLECULAR_SPECIES),
    ),
)

PHOSPHATIDYLGLYCEROL = LipidClass(
    name="Phosphatidylglycerol",
    abbreviation="PG",
    backbone_formula="C6H15O8P",
    chain_types=(ACYL, ACYL),
    fragmentation_rules=(
        _rule(IonizationType.AMMONIUM, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "C3H12NO6P"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, SPECIES, "C3H6O5P-"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.ACYLCHAIN_FRAGMENT, MOLECULAR_SPECIES),
    ),
)

PHOSPHATIDYLINOSITOL = LipidClass(
    name="Phosphatidylinositol",
    abbreviation="PI",
    backbone_formula="C9H19O11P",
    chain_types=(ACYL, ACYL),
    fragmentation_rules=(
        _rule(IonizationType.AMMONIUM, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "C6H16NO9P"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, SPECIES, "C6H10O8P-"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.ACYLCHAIN_FRAGMENT, MOLECULAR_SPECIES),
    ),
)

PHOSPHATIDYLSERINE = LipidClass(
    name="Phosphatidylserine",
    abbreviation="PS",
    backbone_formula="C6H14NO8P",
    chain_types=(ACYL, ACYL),
    fragmentation_rules=(
        _rule(IonizationType.POSITIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "C3H8NO6P"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "C3H5NO2"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.ACYLCHAIN_FRAGMENT, MOLECULAR_SPECIES),
    ),
)

PHOSPHATIDIC_ACID = LipidClass(
    name="Phosphatidic acid",
    abbreviation="PA",
    backbone_formula="C3H9O6P",
    chain_types=(ACYL, ACYL),
    fragmentation_rules=(
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, SPECIES, "C3H6O5P-"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.ACYLCHAIN_FRAGMENT, MOLECULAR_SPECIES),
    ),
)

LYSOPHOSPHATIDYLCHOLINE = LipidClass(
    name="Lysophosphatidylcholine",
    abbreviation="LPC",
    backbone_formula="C8H20NO6P",
    chain_types=(ACYL,),
    fragmentation_rules=(
        _rule(IonizationType.POSITIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, SPECIES, "C5H15NO4P+"),
        _rule(IonizationType.POSITIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "H2O"),
    ),
)

LYSOPHOSPHATIDYLETHANOLAMINE = LipidClass(
    name="Lysophosphatidylethanolamine",
    abbreviation="LPE",
    backbone_formula="C5H14NO6P",
    chain_types=(ACYL,),
    fragmentation_rules=(
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, SPECIES, "C2H7NO4P-"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.ACYLCHAIN_FRAGMENT, MOLECULAR_SPECIES),
    ),
)

DIACYLGLYCEROL = LipidClass(
    name="Diacylglycerol",
    abbreviation="DG",
    backbone_formula="C3H8O3",
    chain_types=(ACYL, ACYL),
    fragmentation_rules=(
        _rule(IonizationType.AMMONIUM, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "H5NO"),
        # Loss of NH3 and one fatty acid.
        _rule(IonizationType.AMMONIUM, RuleType.ACYLCHAIN_MINUS_FORMULA_FRAGMENT_NL, MOLECULAR_SPECIES, "NH4+"),
    ),
)

TRIACYLGLYCEROL = LipidClass(
    name="Triacylglycerol",
    abbreviation="TG",
    backbone_formula="C3H8O3",
    chain_types=(ACYL, ACYL, ACYL),
    fragmentation_rules=(
        _rule(IonizationType.AMMONIUM, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "NH3"),
        _rule(IonizationType.AMMONIUM, RuleType.ACYLCHAIN_MINUS_FORMULA_FRAGMENT_NL, MOLECULAR_SPECIES, "NH4+"),
        _rule(IonizationType.SODIUM, RuleType.ACYLCHAIN_FRAGMENT_NL, MOLECULAR_SPECIES),
    ),
)

ALKYL_PHOSPHATIDYLETHANOLAMINE = LipidClass(
    name="Alkyl-acyl phosphatidylethanolamine",
    abbreviation="PE",
    backbone_formula="C5H14NO6P",
    chain_types=(ALKYL, ACYL),
    fragmentation_rules=(
        _rule(IonizationType.POSITIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT_NL, SPECIES, "C2H8NO4P"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, SPECIES, "C2H7NO4P-"),
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.ACYLCHAIN_FRAGMENT, MOLECULAR_SPECIES),
        # Deprotonated alkyl-lysophosphatidylethanolamine.
        _rule(IonizationType.NEGATIVE_HYDROGEN, RuleType.ALKYLCHAIN_PLUS_FORMULA_FRAGMENT, MOLECULAR_SPECIES, "C5H12NO6P"),
    ),
)

LIPID_CLASSES = (
    PHOSPHATIDYLCHOLINE,
    PHOSPHATIDYLETHANOLAMINE,
    PHOSPHATIDYLGLYCEROL,
    PHOSPHATIDYLINOSITOL,
    PHOSPHATIDYLSERINE,
    PHOSPHATIDIC_ACID,
    LYSOPHOSPHATIDYLCHOLINE,
    LYSOPHOSPHATIDYLETHANOLAMINE,
    DIACYLGLYCEROL,
    TRIACYLGLYCEROL,
    ALKYL_PHOSPHATIDYLETHANOLAMINE,
)


def get_lipid_class(name: str) -> LipidClass:
    """
    Looks up a catalog class by full name or abbreviation (case-insensitive).
    Ether classes are addressed as e.g. "PE O-".
    """
    key = name.strip().lower()
    for lipid_class in LIPID_CLASSES:
        abbreviation = lipid_class.abbreviation + (" O-" if lipid_class.is_ether_lipid else "")
        if key in (lipid_class.name.lower(), abbreviation.lower()):
            return lipid_class
    raise KeyError(f"Unknown lipid class: {name}")
