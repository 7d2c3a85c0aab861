import logging

import pytest

from lipid_annotator.config import ChainParams
from lipid_annotator.core.chains import ChainTools, LipidChainType
from lipid_annotator.core.errors import MalformedFormula
from lipid_annotator.core.formula import calculate_exact_mass, ionize_formula
from lipid_annotator.core.ionization import IonizationType
from lipid_annotator.core.tolerance import MZTolerance
from lipid_annotator.core.types import Peak
from lipid_annotator.logic import fragmentation
from lipid_annotator.logic.fragmentation import (
    check_for_class_specific_fragment,
    check_for_specific_rule_type,
    ionized_chain_mass,
    iterate_two_chain_masses,
)
from lipid_annotator.logic.lipid_classes import PHOSPHATIDYLCHOLINE
from lipid_annotator.logic.lipids import SpeciesLevelAnnotation
from lipid_annotator.logic.rules import (
    LipidAnnotationLevel,
    LipidFragmentationRule,
    LipidFragmentationRuleType as RuleType,
)

ACYL = LipidChainType.ACYL_CHAIN
ALKYL = LipidChainType.ALKYL_CHAIN
NEG = IonizationType.NEGATIVE_HYDROGEN
TIGHT = MZTolerance(0.001, 0)


@pytest.fixture(scope="module")
def pc_34_1():
    return SpeciesLevelAnnotation(PHOSPHATIDYLCHOLINE, 34, 1)


@pytest.fixture(scope="module")
def chain_tools():
    return ChainTools()


def ionized(formula):
    return calculate_exact_mass(ionize_formula(formula, NEG))


def precursor(annotation, ionization_type=NEG):
    return calculate_exact_mass(annotation.molecular_formula) + ionization_type.added_mass


def evaluate(rule, mz, annotation, chain_tools):
    return check_for_specific_rule_type(rule, TIGHT.get_tolerance_range(mz), annotation, Peak(mz, 100.0), None, chain_tools)


def test_every_rule_type_has_an_evaluator():
    assert set(fragmentation._RULE_EVALUATORS) == set(RuleType)


def test_rule_without_required_formula_is_rejected():
    with pytest.raises(ValueError):
        LipidFragmentationRule(NEG, RuleType.ACYLCHAIN_MINUS_FORMULA_FRAGMENT)
    # Plain chain rules do not need one.
    LipidFragmentationRule(NEG, RuleType.ACYLCHAIN_FRAGMENT, LipidAnnotationLevel.MOLECULAR_SPECIES_LEVEL)


def test_headgroup_fragment(pc_34_1, chain_tools):
    rule = LipidFragmentationRule(IonizationType.POSITIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, LipidAnnotationLevel.SPECIES_LEVEL, "C5H15NO4P+")
    expected = calculate_exact_mass("C5H15NO4P+")
    fragment = evaluate(rule, 184.0733, pc_34_1, chain_tools)
    assert fragment is not None
    assert fragment.mz_exact == expected
    assert not fragment.has_chain
    assert fragment.lipid_class is PHOSPHATIDYLCHOLINE


def test_headgroup_neutral_loss_carries_no_chain(pc_34_1, chain_tools):
    rule = LipidFragmentationRule(IonizationType.SODIUM, RuleType.HEADGROUP_FRAGMENT_NL, LipidAnnotationLevel.SPECIES_LEVEL, "C3H9N")
    expected = precursor(pc_34_1, IonizationType.SODIUM) - calculate_exact_mass("C3H9N")
    fragment = evaluate(rule, expected, pc_34_1, chain_tools)
    assert fragment.mz_exact == pytest.approx(expected, abs=1e-9)
    assert fragment.chain_type is ACYL
    assert fragment.chain_length is None
    assert not fragment.has_chain


ACYL_PREDICTIONS = {
    RuleType.ACYLCHAIN_FRAGMENT: lambda p, fa, f: calculate_exact_mass(fa) + NEG.added_mass,
    RuleType.ACYLCHAIN_FRAGMENT_NL: lambda p, fa, f: p - calculate_exact_mass(fa),
    RuleType.ACYLCHAIN_MINUS_FORMULA_FRAGMENT: lambda p, fa, f: ionized(fa) - calculate_exact_mass(f),
    RuleType.ACYLCHAIN_MINUS_FORMULA_FRAGMENT_NL: lambda p, fa, f: p - ionized(fa) - calculate_exact_mass(f),
    RuleType.ACYLCHAIN_PLUS_FORMULA_FRAGMENT: lambda p, fa, f: ionized(fa) + calculate_exact_mass(f),
    RuleType.ACYLCHAIN_PLUS_FORMULA_FRAGMENT_NL: lambda p, fa, f: p - ionized(fa) + calculate_exact_mass(f),
}


@pytest.mark.parametrize("rule_type", list(ACYL_PREDICTIONS))
def test_acyl_chain_rules(rule_type, pc_34_1, chain_tools):
    formula = "C3H5O" if rule_type.requires_formula else None
    rule = LipidFragmentationRule(NEG, rule_type, LipidAnnotationLevel.MOLECULAR_SPECIES_LEVEL, formula)
    expected = ACYL_PREDICTIONS[rule_type](precursor(pc_34_1), "C18H34O2", formula)

    fragment = evaluate(rule, expected + 0.0004, pc_34_1, chain_tools)

    assert fragment is not None
    assert fragment.mz_exact == pytest.approx(expected, abs=1e-9)
    assert (fragment.chain_type, fragment.chain_length, fragment.number_of_dbes) == (ACYL, 18, 1)
    assert fragment.information_level is LipidAnnotationLevel.MOLECULAR_SPECIES_LEVEL


ALKYL_PREDICTIONS = {
    RuleType.ALKYLCHAIN_FRAGMENT: (lambda p, hc, f: calculate_exact_mass(hc) + NEG.added_mass, ALKYL),
    RuleType.ALKYLCHAIN_FRAGMENT_NL: (lambda p, hc, f: p - calculate_exact_mass(hc), ALKYL),
    RuleType.ALKYLCHAIN_MINUS_FORMULA_FRAGMENT: (lambda p, hc, f: ionized(hc) - calculate_exact_mass(f), ALKYL),
    RuleType.ALKYLCHAIN_MINUS_FORMULA_FRAGMENT_NL: (lambda p, hc, f: p - ionized(hc) - calculate_exact_mass(f), ACYL),
    RuleType.ALKYLCHAIN_PLUS_FORMULA_FRAGMENT: (lambda p, hc, f: ionized(hc) + calculate_exact_mass(f), ACYL),
    RuleType.ALKYLCHAIN_PLUS_FORMULA_FRAGMENT_NL: (lambda p, hc, f: p - ionized(hc) + calculate_exact_mass(f), ACYL),
}


@pytest.mark.parametrize("rule_type", list(ALKYL_PREDICTIONS))
def test_alkyl_chain_rules_and_their_chain_type_tags(rule_type, pc_34_1, chain_tools):
    formula = "C5H12NO6P" if rule_type.requires_formula else None
    rule = LipidFragmentationRule(NEG, rule_type, LipidAnnotationLevel.MOLECULAR_SPECIES_LEVEL, formula)
    predict, chain_type = ALKYL_PREDICTIONS[rule_type]
    expected = predict(precursor(pc_34_1), "C16H34", formula)

    fragment = evaluate(rule, expected, pc_34_1, chain_tools)

    assert fragment.mz_exact == pytest.approx(expected, abs=1e-9)
    assert (fragment.chain_length, fragment.number_of_dbes) == (16, 0)
    assert fragment.chain_type is chain_type


def test_two_acyl_chains_plus_formula(pc_34_1, chain_tools):
    rule = LipidFragmentationRule(NEG, RuleType.TWO_ACYLCHAINS_PLUS_FORMULA_FRAGMENT, LipidAnnotationLevel.MOLECULAR_SPECIES_LEVEL, "C3H5")
    expected = ionized("C16H32O2") + ionized("C18H34O2") + calculate_exact_mass("C3H5")

    fragment = evaluate(rule, expected, pc_34_1, chain_tools)

    assert fragment.mz_exact == pytest.approx(expected, abs=1e-9)
    assert not fragment.has_chain
    assert fragment.chain_type is None


def test_two_chain_masses_read_both_chains_from_first_list():
    tools = ChainTools(ChainParams(min_chain_length=2, max_chain_length=4, max_dbes=2))
    first = tools.fatty_acid_formulas()
    second = tools.hydrocarbon_formulas()
    assert len(first) == len(second)

    triples = list(iterate_two_chain_masses(first, second))

    assert [(i, j) for i, j, _ in triples] == [(i, j) for i in range(len(first)) for j in range(len(second))]
    for i, j, mass in triples:
        assert mass == pytest.approx(ionized_chain_mass(first[i]) + ionized_chain_mass(first[j]))
    i, j, mass = triples[1]
    independent = ionized_chain_mass(first[i]) + ionized_chain_mass(second[j])
    assert mass != pytest.approx(independent)


def test_two_chain_readings_agree_on_identical_lists():
    chains = ChainTools(ChainParams(min_chain_length=14, max_chain_length=18, max_dbes=1)).fatty_acid_formulas()
    for i, j, mass in iterate_two_chain_masses(chains, chains):
        assert mass == pytest.approx(ionized_chain_mass(chains[i]) + ionized_chain_mass(chains[j]))


def test_first_enumerated_chain_wins(pc_34_1, chain_tools):
    # The window covers both the 16:0 and the 16:1 fatty acid anions.
    rule = LipidFragmentationRule(NEG, RuleType.ACYLCHAIN_FRAGMENT, LipidAnnotationLevel.MOLECULAR_SPECIES_LEVEL)
    peak = Peak(ionized("C16H30O2"), 100.0)
    window = MZTolerance(1.2, 0).get_tolerance_range(254.3)

    fragment = check_for_specific_rule_type(rule, window, pc_34_1, peak, None, chain_tools)

    assert (fragment.chain_length, fragment.number_of_dbes) == (16, 0)


def test_no_match_returns_none(pc_34_1, chain_tools):
    rules = PHOSPHATIDYLCHOLINE.fragmentation_rules
    window = TIGHT.get_tolerance_range(123.4567)
    for ionization_type in PHOSPHATIDYLCHOLINE.ionization_types:
        assert check_for_class_specific_fragment(
            window, pc_34_1, ionization_type, rules, Peak(123.4567, 10.0), None, chain_tools
        ) is None


def test_first_rule_wins_and_is_deterministic(pc_34_1, chain_tools):
    charged = LipidFragmentationRule(IonizationType.POSITIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, LipidAnnotationLevel.SPECIES_LEVEL, "C5H15NO4P+")
    neutral = LipidFragmentationRule(IonizationType.POSITIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, LipidAnnotationLevel.SPECIES_LEVEL, "C5H15NO4P")
    window = MZTolerance(0.01, 0).get_tolerance_range(184.0735)
    peak = Peak(184.0735, 100.0)

    results = {
        check_for_class_specific_fragment(window, pc_34_1, IonizationType.POSITIVE_HYDROGEN, [charged, neutral], peak, None, chain_tools).mz_exact
        for _ in range(5)
    }
    assert results == {calculate_exact_mass("C5H15NO4P+")}

    swapped = check_for_class_specific_fragment(window, pc_34_1, IonizationType.POSITIVE_HYDROGEN, [neutral, charged], peak, None, chain_tools)
    assert swapped.mz_exact == calculate_exact_mass("C5H15NO4P")


def test_rules_of_other_ionization_types_are_skipped(pc_34_1, chain_tools):
    negative = LipidFragmentationRule(NEG, RuleType.HEADGROUP_FRAGMENT, LipidAnnotationLevel.SPECIES_LEVEL, "C5H15NO4P+")
    window = TIGHT.get_tolerance_range(184.0733)
    peak = Peak(184.0733, 100.0)

    assert check_for_class_specific_fragment(window, pc_34_1, IonizationType.POSITIVE_HYDROGEN, [negative], peak, None, chain_tools) is None
    assert check_for_class_specific_fragment(window, pc_34_1, NEG, [negative], peak, None, chain_tools) is not None


def test_malformed_rule_formula_is_skipped_and_logged(pc_34_1, chain_tools, caplog):
    broken = LipidFragmentationRule(IonizationType.POSITIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, LipidAnnotationLevel.SPECIES_LEVEL, "Xx5")
    valid = LipidFragmentationRule(IonizationType.POSITIVE_HYDROGEN, RuleType.HEADGROUP_FRAGMENT, LipidAnnotationLevel.SPECIES_LEVEL, "C5H15NO4P+")
    window = TIGHT.get_tolerance_range(184.0733)

    with caplog.at_level(logging.WARNING, logger="lipid_annotator.logic.fragmentation"):
        fragment = check_for_class_specific_fragment(
            window, pc_34_1, IonizationType.POSITIVE_HYDROGEN, [broken, valid], Peak(184.0733, 1.0), None, chain_tools
        )

    assert fragment.mz_exact == calculate_exact_mass("C5H15NO4P+")
    assert "Xx5" in caplog.text


def test_scan_is_passed_through(pc_34_1, chain_tools):
    rule = PHOSPHATIDYLCHOLINE.rules_for(IonizationType.POSITIVE_HYDROGEN)[0]
    window = TIGHT.get_tolerance_range(184.0733)
    fragment = check_for_specific_rule_type(rule, window, pc_34_1, Peak(184.0733, 1.0), scan=17, chain_tools=chain_tools)
    assert fragment.scan == 17


def test_malformed_chain_is_skipped_and_next_chain_matches(pc_34_1, chain_tools, monkeypatch, caplog):
    real_mass = fragmentation.ionized_chain_mass

    def mass_without_palmitate(chain):
        if chain.formula == "C16H32O2":
            raise MalformedFormula(chain.formula, "unusable")
        return real_mass(chain)

    monkeypatch.setattr(fragmentation, "ionized_chain_mass", mass_without_palmitate)
    rule = LipidFragmentationRule(NEG, RuleType.ACYLCHAIN_MINUS_FORMULA_FRAGMENT, LipidAnnotationLevel.MOLECULAR_SPECIES_LEVEL, "H2O")
    # Covers the 16:0 and 16:1 predictions; 16:0 comes first in enumeration order.
    window = MZTolerance(1.2, 0).get_tolerance_range(236.2)
    peak = Peak(ionized("C16H30O2") - calculate_exact_mass("H2O"), 100.0)

    with caplog.at_level(logging.WARNING, logger="lipid_annotator.logic.fragmentation"):
        fragment = check_for_specific_rule_type(rule, window, pc_34_1, peak, None, chain_tools)

    assert (fragment.chain_length, fragment.number_of_dbes) == (16, 1)
    assert "C16H32O2" in caplog.text


def test_chain_mass_cache_is_bounded():
    assert ionized_chain_mass.cache_info().maxsize == 1024
