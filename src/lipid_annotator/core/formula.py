"""
This module provides molecular formula handling for lipids and their fragments,
using pyteomics for elemental compositions and monoisotopic masses.

Formulas are plain Hill-style strings such as ``C16H32O2``. A trailing charge
(``C5H15NO4P+``, ``C3H6O5P-``, ``C2H2O4-2``) marks an ion; its exact mass is
corrected by the mass of the missing or extra electrons.
"""
import re

from pyteomics import mass
from pyteomics.auxiliary import PyteomicsError

from .constants import ELECTRON_MASS
from .errors import MalformedFormula

_CHARGED_FORMULA = re.compile(r'^(?P<body>.*?)(?P<sign>[+-])(?P<count>\d*)$')


def split_charge(formula: str) -> tuple[str, int]:
    """
    Splits a formula string into its neutral part and its charge.

    Returns:
        A tuple of (formula without charge, signed charge).
    """
    if not isinstance(formula, str):
        raise MalformedFormula(formula, "formula must be a string")
    formula = formula.strip()
    match = _CHARGED_FORMULA.match(formula)
    if match is None:
        return formula, 0
    count = int(match.group('count') or 1)
    charge = count if match.group('sign') == '+' else -count
    return match.group('body'), charge


def parse_formula(formula: str) -> mass.Composition:
    """
    Parses the neutral part of a formula into a pyteomics Composition.

    Raises:
        MalformedFormula: If the formula is empty, syntactically invalid or
            refers to elements without mass data.
    """
    body, _ = split_charge(formula)
    if not body:
        raise MalformedFormula(formula, "empty formula")
    try:
        composition = mass.Composition(formula=body)
    except PyteomicsError as e:
        raise MalformedFormula(formula, str(e)) from e
    unknown = [element for element in composition if element not in mass.nist_mass]
    if unknown:
        raise MalformedFormula(formula, f"unknown elements {', '.join(sorted(unknown))}")
    return composition


def calculate_exact_mass(formula) -> float:
    """
    Calculates the monoisotopic mass of a formula string or Composition.

    Charged formula strings lose (positive) or gain (negative) one electron
    mass per charge.
    """
    if isinstance(formula, mass.Composition):
        composition, charge = formula, 0
    else:
        composition = parse_formula(formula)
        _, charge = split_charge(formula)
    try:
        exact_mass = mass.calculate_mass(composition=composition)
    except (PyteomicsError, KeyError) as e:
        raise MalformedFormula(formula, str(e)) from e
    return exact_mass - charge * ELECTRON_MASS


def ionize_formula(formula: str, ionization_type, number_of_ions: int = 1) -> str:
    """
    Applies an adduct to a neutral formula and returns the charged formula.

    Only hydrogen (de)protonation and simple elemental adducts are supported:
    [M-H]- removes hydrogens, [M+H]+ adds them, all other adducts add the
    adduct's formula.
    """
    body, charge = split_charge(formula)
    if charge:
        raise MalformedFormula(formula, "formula is already charged")
    composition = parse_formula(body)
    adduct = mass.Composition(formula=_ADDUCT_FORMULAS[ionization_type.name])
    if ionization_type.name == 'NEGATIVE_HYDROGEN':
        composition = composition - adduct * number_of_ions
    else:
        composition = composition + adduct * number_of_ions
    sign = '+' if ionization_type.polarity == '+' else '-'
    total_charge = ionization_type.charge * number_of_ions
    return to_formula(composition) + sign + (str(total_charge) if total_charge > 1 else '')


def to_formula(composition: mass.Composition) -> str:
    """
    Writes a Composition as a Hill-notation formula string (C, H, then
    alphabetical).
    """
    negative = [element for element, count in composition.items() if count < 0]
    if negative:
        raise MalformedFormula(dict(composition), f"negative counts for {', '.join(sorted(negative))}")
    elements = [e for e, count in composition.items() if count > 0]
    if 'C' in elements:
        order = [e for e in ('C', 'H') if e in elements]
        order += sorted(e for e in elements if e not in ('C', 'H'))
    else:
        order = sorted(elements)
    return ''.join(
        element + (str(composition[element]) if composition[element] > 1 else '')
        for element in order
    )


# Elemental composition of each adduct, keyed by IonizationType member name.
_ADDUCT_FORMULAS = {
    'POSITIVE_HYDROGEN': 'H',
    'SODIUM': 'Na',
    'AMMONIUM': 'NH4',
    'POTASSIUM': 'K',
    'NEGATIVE_HYDROGEN': 'H',
    'CHLORIDE': 'Cl',
    'FORMATE': 'CHO2',
    'ACETATE': 'C2H3O2',
}
