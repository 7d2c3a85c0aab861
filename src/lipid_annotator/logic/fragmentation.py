"""
This module matches MS/MS peaks against lipid fragmentation rules.

Every rule kind predicts an exact m/z, either directly from the rule's formula
or by walking the enumerated chain formulas. A peak is explained by the first
rule (in catalog order) whose prediction falls inside the peak's tolerance
window, and for chain rules by the first enumerated chain that does.
"""
import functools
import logging
from typing import Callable, Iterator, Optional, Sequence, Tuple

from ..core.chains import ChainFormula, ChainTools, LipidChainType
from ..core.errors import MalformedFormula
from ..core.formula import calculate_exact_mass, ionize_formula
from ..core.ionization import IonizationType
from ..core.tolerance import ToleranceRange
from ..core.types import Peak
from .rules import LipidFragment, LipidFragmentationRule, LipidFragmentationRuleType as RuleType

logger = logging.getLogger(__name__)

ACYL = LipidChainType.ACYL_CHAIN
ALKYL = LipidChainType.ALKYL_CHAIN


class _RuleContext:
    """Inputs of a single rule evaluation."""

    def __init__(self, rule, tolerance_range, lipid_annotation, peak, scan, chain_tools):
        self.rule = rule
        self.tolerance_range = tolerance_range
        self.lipid_annotation = lipid_annotation
        self.peak = peak
        self.scan = scan
        self.chain_tools = chain_tools

    def fragment_mass(self) -> float:
        return calculate_exact_mass(self.rule.molecular_formula)

    def precursor_mz(self) -> float:
        """Exact m/z of the precursor, from the annotation formula and the rule's adduct."""
        return calculate_exact_mass(self.lipid_annotation.molecular_formula) + self.rule.ionization_type.added_mass

    def fragment(
        self,
        mz_exact: float,
        chain_length: Optional[int] = None,
        number_of_dbes: Optional[int] = None,
        chain_type: Optional[LipidChainType] = None,
    ) -> LipidFragment:
        return LipidFragment(
            rule_type=self.rule.rule_type,
            information_level=self.rule.information_level,
            mz_exact=mz_exact,
            peak=self.peak,
            lipid_class=self.lipid_annotation.lipid_class,
            chain_length=chain_length,
            number_of_dbes=number_of_dbes,
            chain_type=chain_type,
            scan=self.scan,
        )


@functools.lru_cache(maxsize=1024)
def ionized_chain_mass(chain: ChainFormula) -> float:
    """Exact mass of the deprotonated ([M-H]-) chain formula."""
    return calculate_exact_mass(ionize_formula(chain.formula, IonizationType.NEGATIVE_HYDROGEN))


def _first_chain_match(
    ctx: _RuleContext,
    chains: Sequence[ChainFormula],
    predict: Callable[[ChainFormula], float],
    chain_type: LipidChainType,
) -> Optional[LipidFragment]:
    """
    Returns a fragment for the first chain, in enumeration order, whose
    predicted m/z lies inside the window. Chains with unusable formulas are
    skipped.
    """
    for chain in chains:
        try:
            mz_exact = predict(chain)
        except MalformedFormula as e:
            logger.warning("Skipping chain %s for rule %s: %s", chain.formula, ctx.rule, e)
            continue
        if ctx.tolerance_range.contains(mz_exact):
            return ctx.fragment(mz_exact, chain.number_of_carbons, chain.number_of_dbes, chain_type)
    return None


# --- Headgroup rules ---

def _check_headgroup_fragment(ctx: _RuleContext) -> Optional[LipidFragment]:
    mz_exact = ctx.fragment_mass()
    if ctx.tolerance_range.contains(mz_exact):
        return ctx.fragment(mz_exact)
    return None


def _check_headgroup_fragment_nl(ctx: _RuleContext) -> Optional[LipidFragment]:
    mz_exact = ctx.precursor_mz() - ctx.fragment_mass()
    if ctx.tolerance_range.contains(mz_exact):
        # Tagged with a chain type but no chain, so it never yields a chain.
        return ctx.fragment(mz_exact, chain_type=ACYL)
    return None


# --- Acyl chain rules ---

def _check_acyl_chain_fragment(ctx: _RuleContext) -> Optional[LipidFragment]:
    added_mass = IonizationType.NEGATIVE_HYDROGEN.added_mass
    return _first_chain_match(
        ctx, ctx.chain_tools.fatty_acid_formulas(),
        lambda chain: calculate_exact_mass(chain.formula) + added_mass, ACYL,
    )


def _check_acyl_chain_fragment_nl(ctx: _RuleContext) -> Optional[LipidFragment]:
    precursor_mz = ctx.precursor_mz()
    return _first_chain_match(
        ctx, ctx.chain_tools.fatty_acid_formulas(),
        lambda chain: precursor_mz - calculate_exact_mass(chain.formula), ACYL,
    )


def _check_acyl_chain_minus_formula_fragment(ctx: _RuleContext) -> Optional[LipidFragment]:
    fragment_mass = ctx.fragment_mass()
    return _first_chain_match(
        ctx, ctx.chain_tools.fatty_acid_formulas(),
        lambda chain: ionized_chain_mass(chain) - fragment_mass, ACYL,
    )


def _check_acyl_chain_minus_formula_fragment_nl(ctx: _RuleContext) -> Optional[LipidFragment]:
    precursor_mz = ctx.precursor_mz()
    fragment_mass = ctx.fragment_mass()
    return _first_chain_match(
        ctx, ctx.chain_tools.fatty_acid_formulas(),
        lambda chain: precursor_mz - ionized_chain_mass(chain) - fragment_mass, ACYL,
    )


def _check_acyl_chain_plus_formula_fragment(ctx: _RuleContext) -> Optional[LipidFragment]:
    fragment_mass = ctx.fragment_mass()
    return _first_chain_match(
        ctx, ctx.chain_tools.fatty_acid_formulas(),
        lambda chain: ionized_chain_mass(chain) + fragment_mass, ACYL,
    )


def _check_acyl_chain_plus_formula_fragment_nl(ctx: _RuleContext) -> Optional[LipidFragment]:
    precursor_mz = ctx.precursor_mz()
    fragment_mass = ctx.fragment_mass()
    return _first_chain_match(
        ctx, ctx.chain_tools.fatty_acid_formulas(),
        lambda chain: precursor_mz - ionized_chain_mass(chain) + fragment_mass, ACYL,
    )


def iterate_two_chain_masses(
    first_chains: Sequence[ChainFormula],
    second_chains: Sequence[ChainFormula],
) -> Iterator[Tuple[int, int, float]]:
    """
    Yields (i, j, summed ionized chain mass) over both chain lists, outer loop
    first.

    The second chain's mass is read from ``first_chains[j]`` rather than
    ``second_chains[j]``; the inner list only bounds the loop. Both lists come
    from the same enumeration in practice, where the two readings agree.
    ``second_chains`` must not be longer than ``first_chains``.
    """
    first_masses = [ionized_chain_mass(chain) for chain in first_chains]
    for i, first_mass in enumerate(first_masses):
        for j in range(len(second_chains)):
            yield i, j, first_mass + first_masses[j]


def _check_two_acyl_chains_plus_formula_fragment(ctx: _RuleContext) -> Optional[LipidFragment]:
    fragment_mass = ctx.fragment_mass()
    chains = ctx.chain_tools.fatty_acid_formulas()
    for _, _, chain_masses in iterate_two_chain_masses(chains, chains):
        mz_exact = chain_masses + fragment_mass
        if ctx.tolerance_range.contains(mz_exact):
            return ctx.fragment(mz_exact)
    return None


# --- Alkyl chain rules ---
# The minus-formula NL and both plus-formula kinds tag their fragments as acyl.

def _check_alkyl_chain_fragment(ctx: _RuleContext) -> Optional[LipidFragment]:
    added_mass = IonizationType.NEGATIVE_HYDROGEN.added_mass
    return _first_chain_match(
        ctx, ctx.chain_tools.hydrocarbon_formulas(),
        lambda chain: calculate_exact_mass(chain.formula) + added_mass, ALKYL,
    )


def _check_alkyl_chain_fragment_nl(ctx: _RuleContext) -> Optional[LipidFragment]:
    precursor_mz = ctx.precursor_mz()
    return _first_chain_match(
        ctx, ctx.chain_tools.hydrocarbon_formulas(),
        lambda chain: precursor_mz - calculate_exact_mass(chain.formula), ALKYL,
    )


def _check_alkyl_chain_minus_formula_fragment(ctx: _RuleContext) -> Optional[LipidFragment]:
    fragment_mass = ctx.fragment_mass()
    return _first_chain_match(
        ctx, ctx.chain_tools.hydrocarbon_formulas(),
        lambda chain: ionized_chain_mass(chain) - fragment_mass, ALKYL,
    )


def _check_alkyl_chain_minus_formula_fragment_nl(ctx: _RuleContext) -> Optional[LipidFragment]:
    precursor_mz = ctx.precursor_mz()
    fragment_mass = ctx.fragment_mass()
    return _first_chain_match(
        ctx, ctx.chain_tools.hydrocarbon_formulas(),
        lambda chain: precursor_mz - ionized_chain_mass(chain) - fragment_mass, ACYL,
    )


def _check_alkyl_chain_plus_formula_fragment(ctx: _RuleContext) -> Optional[LipidFragment]:
    fragment_mass = ctx.fragment_mass()
    return _first_chain_match(
        ctx, ctx.chain_tools.hydrocarbon_formulas(),
        lambda chain: ionized_chain_mass(chain) + fragment_mass, ACYL,
    )


def _check_alkyl_chain_plus_formula_fragment_nl(ctx: _RuleContext) -> Optional[LipidFragment]:
    precursor_mz = ctx.precursor_mz()
    fragment_mass = ctx.fragment_mass()
    return _first_chain_match(
        ctx, ctx.chain_tools.hydrocarbon_formulas(),
        lambda chain: precursor_mz - ionized_chain_mass(chain) + fragment_mass, ACYL,
    )


_RULE_EVALUATORS = {
    RuleType.HEADGROUP_FRAGMENT: _check_headgroup_fragment,
    RuleType.HEADGROUP_FRAGMENT_NL: _check_headgroup_fragment_nl,
    RuleType.ACYLCHAIN_FRAGMENT: _check_acyl_chain_fragment,
    RuleType.ACYLCHAIN_FRAGMENT_NL: _check_acyl_chain_fragment_nl,
    RuleType.ACYLCHAIN_MINUS_FORMULA_FRAGMENT: _check_acyl_chain_minus_formula_fragment,
    RuleType.ACYLCHAIN_MINUS_FORMULA_FRAGMENT_NL: _check_acyl_chain_minus_formula_fragment_nl,
    RuleType.ACYLCHAIN_PLUS_FORMULA_FRAGMENT: _check_acyl_chain_plus_formula_fragment,
    RuleType.ACYLCHAIN_PLUS_FORMULA_FRAGMENT_NL: _check_acyl_chain_plus_formula_fragment_nl,
    RuleType.TWO_ACYLCHAINS_PLUS_FORMULA_FRAGMENT: _check_two_acyl_chains_plus_formula_fragment,
    RuleType.ALKYLCHAIN_FRAGMENT: _check_alkyl_chain_fragment,
    RuleType.ALKYLCHAIN_FRAGMENT_NL: _check_alkyl_chain_fragment_nl,
    RuleType.ALKYLCHAIN_MINUS_FORMULA_FRAGMENT: _check_alkyl_chain_minus_formula_fragment,
    RuleType.ALKYLCHAIN_MINUS_FORMULA_FRAGMENT_NL: _check_alkyl_chain_minus_formula_fragment_nl,
    RuleType.ALKYLCHAIN_PLUS_FORMULA_FRAGMENT: _check_alkyl_chain_plus_formula_fragment,
    RuleType.ALKYLCHAIN_PLUS_FORMULA_FRAGMENT_NL: _check_alkyl_chain_plus_formula_fragment_nl,
}

_unhandled = set(RuleType) - set(_RULE_EVALUATORS)
if _unhandled:
    raise RuntimeError(f"No evaluator for rule types: {sorted(r.name for r in _unhandled)}")


def check_for_specific_rule_type(
    rule: LipidFragmentationRule,
    tolerance_range: ToleranceRange,
    lipid_annotation,
    peak: Peak,
    scan=None,
    chain_tools: Optional[ChainTools] = None,
) -> Optional[LipidFragment]:
    """
    Evaluates one rule against one peak.

    Returns:
        The matching LipidFragment, or None if the rule does not explain the
        peak or its formulas cannot be evaluated.
    """
    ctx = _RuleContext(rule, tolerance_range, lipid_annotation, peak, scan, chain_tools or ChainTools())
    try:
        return _RULE_EVALUATORS[rule.rule_type](ctx)
    except MalformedFormula as e:
        logger.warning("Skipping rule %s for peak m/z %.4f: %s", rule, peak.mz, e)
        return None


def check_for_class_specific_fragment(
    tolerance_range: ToleranceRange,
    lipid_annotation,
    ionization_type: IonizationType,
    rules: Sequence[LipidFragmentationRule],
    peak: Peak,
    scan=None,
    chain_tools: Optional[ChainTools] = None,
) -> Optional[LipidFragment]:
    """
    Returns the fragment of the first rule, in catalog order, that explains
    the peak for the given ionization type, or None.
    """
    chain_tools = chain_tools or ChainTools()
    for rule in rules:
        if rule.ionization_type is not ionization_type:
            continue
        fragment = check_for_specific_rule_type(rule, tolerance_range, lipid_annotation, peak, scan, chain_tools)
        if fragment is not None:
            logger.debug(
                "Peak m/z %.4f explained by %s (predicted %.5f)", peak.mz, rule, fragment.mz_exact
            )
            return fragment
    return None
