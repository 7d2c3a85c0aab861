"""
This module turns matched MS/MS fragments into lipid annotations: it confirms
species level annotations and predicts molecular species level compositions
from the detected chain fragments.
"""
import itertools
import logging
from typing import List, Optional

from ..core.constants import SUPPORTED_CHAIN_CARDINALITIES
from ..core.errors import UnsupportedChainCardinality
from ..core.ionization import IonizationType
from ..core.tolerance import MZTolerance
from ..core.types import Spectrum
from .lipids import (
    LipidChain,
    MatchedLipid,
    SpeciesLevelAnnotation,
    build_molecular_species_level_lipid_from_chains,
    chain_types_fit_lipid_class,
)
from .rules import LipidAnnotationLevel, sorted_fragments
from .scoring import calculate_msms_score

logger = logging.getLogger(__name__)


def confirm_species_level_annotation(
    accurate_mz: float,
    lipid_annotation,
    fragments,
    spectrum: Spectrum,
    min_msms_score: float,
    mz_tolerance: MZTolerance,
    ionization_type: IonizationType,
) -> Optional[MatchedLipid]:
    """
    Accepts an annotation if its species level fragments explain at least
    ``min_msms_score`` percent of the spectrum.

    Only species level fragments enter the score; the returned MatchedLipid
    carries the full fragment set.
    """
    fragments = sorted_fragments(fragments)
    species_level_fragments = [
        f for f in fragments if f.information_level is LipidAnnotationLevel.SPECIES_LEVEL
    ]
    if not species_level_fragments:
        return None

    msms_score = calculate_msms_score(spectrum, species_level_fragments, accurate_mz, mz_tolerance)
    if msms_score >= min_msms_score:
        return MatchedLipid(lipid_annotation, accurate_mz, ionization_type, fragments, msms_score)
    logger.debug("Rejected %s: species level score %.1f below %.1f", lipid_annotation, msms_score, min_msms_score)
    return None


def get_chains_from_fragments(fragments) -> List[LipidChain]:
    """
    Returns the distinct chains carried by the fragments, in first-seen order.
    """
    chains = []
    for fragment in sorted_fragments(fragments):
        if not fragment.has_chain:
            continue
        chain = LipidChain(fragment.chain_type, fragment.chain_length, fragment.number_of_dbes)
        if chain not in chains:
            chains.append(chain)
    return chains


def predict_molecular_species_level_annotations(
    fragments,
    lipid_annotation: SpeciesLevelAnnotation,
    accurate_mz: float,
    spectrum: Spectrum,
    min_msms_score: float,
    mz_tolerance: MZTolerance,
    ionization_type: IonizationType,
) -> List[MatchedLipid]:
    """
    Reconstructs the chain compositions consistent with a species level
    annotation from the detected chain fragments.

    Every ordered selection of k detected chains is tried, k being the number
    of chains of the lipid class. A chain may fill several slots. A selection
    is kept when its carbons and double bonds add up exactly to the species
    totals, its chain types match the class template and the full fragment
    set scores at least ``min_msms_score``.

    Returns:
        The distinct molecular species level matches, sorted by annotation.

    Raises:
        UnsupportedChainCardinality: If the class has other than 1, 2 or 3 chains.
    """
    lipid_class = lipid_annotation.lipid_class
    chains_in_lipid = lipid_class.number_of_chains
    if chains_in_lipid not in SUPPORTED_CHAIN_CARDINALITIES:
        raise UnsupportedChainCardinality(chains_in_lipid)

    fragments = sorted_fragments(fragments)
    chains = get_chains_from_fragments(fragments)
    total_carbons = lipid_annotation.number_of_carbons
    total_dbes = lipid_annotation.number_of_dbes

    matches = {}
    for selection in itertools.product(range(len(chains)), repeat=chains_in_lipid):
        predicted_chains = [chains[i] for i in selection]
        if sum(c.number_of_carbons for c in predicted_chains) != total_carbons:
            continue
        if sum(c.number_of_dbes for c in predicted_chains) != total_dbes:
            continue
        if not chain_types_fit_lipid_class(predicted_chains, lipid_class):
            continue

        annotation = build_molecular_species_level_lipid_from_chains(lipid_class, predicted_chains)
        msms_score = calculate_msms_score(spectrum, fragments, accurate_mz, mz_tolerance)
        if msms_score < min_msms_score:
            logger.debug("Rejected %s: score %.1f below %.1f", annotation, msms_score, min_msms_score)
            continue
        match = MatchedLipid(annotation, accurate_mz, ionization_type, fragments, msms_score)
        matches.setdefault(match, match)

    return sorted(matches, key=MatchedLipid.sort_key)
