"""
This module wires the annotation steps into a lipid search: MS1 candidate
generation, fragment matching over a whole MS/MS spectrum, species level
confirmation and molecular species level prediction.
"""
import logging
from typing import List, Optional, Tuple

from ..config import ChainParams, LipidSearchConfig
from ..core.chains import ChainTools
from ..core.ionization import IonizationType
from ..core.types import Spectrum
from .annotation import confirm_species_level_annotation, predict_molecular_species_level_annotations
from .fragmentation import check_for_class_specific_fragment
from .lipids import LipidClass, MatchedLipid, SpeciesLevelAnnotation
from .rules import LipidFragment, sorted_fragments

logger = logging.getLogger(__name__)


def enumerate_species_level_annotations(
    lipid_class: LipidClass, chain_params: Optional[ChainParams] = None
) -> List[SpeciesLevelAnnotation]:
    """
    Generates every species level annotation of a class within the chain bounds.

    Totals range from k * min to k * max carbons and from 0 to k * max double
    bonds, k being the number of chains of the class. Each chain can hold at
    most ``carbons - 1`` double bonds, which caps the total accordingly.
    """
    chain_params = chain_params or ChainParams()
    k = lipid_class.number_of_chains
    annotations = []
    for carbons in range(k * chain_params.min_chain_length, k * chain_params.max_chain_length + 1):
        max_dbes = min(k * chain_params.max_dbes, carbons - k)
        for dbes in range(0, max_dbes + 1):
            annotations.append(SpeciesLevelAnnotation(lipid_class, carbons, dbes))
    return annotations


def find_ms1_candidates(precursor_mz: float, config: LipidSearchConfig) -> List[Tuple[SpeciesLevelAnnotation, IonizationType]]:
    """
    Returns the (annotation, adduct) pairs whose theoretical m/z lies within
    the MS1 tolerance of ``precursor_mz``. Only adducts the class has rules
    for are considered.
    """
    window = config.mz_tolerance_ms1.get_tolerance_range(precursor_mz)
    candidates = []
    for lipid_class in config.lipid_classes:
        ionization_types = [i for i in config.ionization_types if i in lipid_class.ionization_types]
        if not ionization_types:
            continue
        for annotation in enumerate_species_level_annotations(lipid_class, config.chain_params):
            exact_mass = annotation.exact_mass
            for ionization_type in ionization_types:
                if window.contains(ionization_type.ion_mz(exact_mass)):
                    candidates.append((annotation, ionization_type))
    logger.debug("%d MS1 candidates for m/z %.4f", len(candidates), precursor_mz)
    return candidates


def match_fragments(
    lipid_annotation,
    ionization_type: IonizationType,
    spectrum: Spectrum,
    config: LipidSearchConfig,
    scan=None,
    chain_tools: Optional[ChainTools] = None,
) -> Tuple[LipidFragment, ...]:
    """
    Matches every peak of the spectrum against the class' rule catalog and
    returns the explained fragments, deduplicated and sorted.
    """
    chain_tools = chain_tools or ChainTools(config.chain_params)
    rules = lipid_annotation.lipid_class.fragmentation_rules
    fragments = []
    for peak in spectrum:
        tolerance_range = config.mz_tolerance_msms.get_tolerance_range(peak.mz)
        fragment = check_for_class_specific_fragment(
            tolerance_range, lipid_annotation, ionization_type, rules, peak, scan, chain_tools
        )
        if fragment is not None:
            fragments.append(fragment)
    return sorted_fragments(fragments)


def annotate_msms_spectrum(
    accurate_mz: float,
    lipid_annotation: SpeciesLevelAnnotation,
    ionization_type: IonizationType,
    spectrum: Spectrum,
    config: LipidSearchConfig,
    scan=None,
) -> List[MatchedLipid]:
    """
    Annotates one MS/MS spectrum for one species level candidate.

    Returns:
        An empty list if no fragment matched or the species level was not
        confirmed, else the species level match followed by the molecular
        species level matches (if requested in the config).
    """
    chain_tools = ChainTools(config.chain_params)
    fragments = match_fragments(lipid_annotation, ionization_type, spectrum, config, scan, chain_tools)
    if not fragments:
        return []

    species_match = confirm_species_level_annotation(
        accurate_mz, lipid_annotation, fragments, spectrum,
        config.min_msms_score, config.mz_tolerance_msms, ionization_type,
    )
    if species_match is None:
        return []

    results = [species_match]
    if config.search_molecular_species:
        results.extend(predict_molecular_species_level_annotations(
            fragments, lipid_annotation, accurate_mz, spectrum,
            config.min_msms_score, config.mz_tolerance_msms, ionization_type,
        ))
    logger.debug("%s: %d matches from %d fragments", lipid_annotation, len(results), len(fragments))
    return results


def search_lipids(precursor_mz: float, spectrum: Spectrum, config: LipidSearchConfig, scan=None) -> List[MatchedLipid]:
    """
    Runs the full search for one precursor: MS1 candidates, then MS/MS
    annotation of every candidate.
    """
    results = []
    for annotation, ionization_type in find_ms1_candidates(precursor_mz, config):
        results.extend(annotate_msms_spectrum(precursor_mz, annotation, ionization_type, spectrum, config, scan))
    return results
