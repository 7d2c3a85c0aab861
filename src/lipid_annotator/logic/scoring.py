"""
This module scores how much of an MS/MS spectrum is explained by matched
lipid fragments.
"""
import numpy as np

from ..core.errors import ZeroIntensityDenominator
from ..core.tolerance import MZTolerance
from ..core.types import Spectrum


def calculate_msms_score(
    spectrum: Spectrum,
    fragments,
    precursor_mz: float,
    mz_tolerance: MZTolerance,
) -> float:
    """
    Calculates the explained intensity of the MS/MS spectrum in percent.

    The matched intensity counts every source peak once, even if several
    fragments cite it, and skips peaks in the precursor window. The comparison
    intensity is the summed intensity of all spectrum peaks except those
    within tolerance of the precursor m/z.

    Args:
        spectrum: The full fragment spectrum.
        fragments: The matched LipidFragments.
        precursor_mz: The precursor m/z, excluded from the comparison intensity.
        mz_tolerance: Tolerance used for the precursor exclusion.

    Returns:
        The score in [0, 100] for fragments drawn from the spectrum.

    Raises:
        ZeroIntensityDenominator: If the comparison intensity is zero.
    """
    window = mz_tolerance.get_tolerance_range(precursor_mz)
    outside_precursor = (spectrum.mz < window.lower) | (spectrum.mz > window.upper)
    intensity_all_signals = float(np.sum(spectrum.intensity[outside_precursor]))
    if intensity_all_signals == 0.0:
        raise ZeroIntensityDenominator(
            f"No fragment intensity outside the precursor window at m/z {precursor_mz:.4f}."
        )

    # Matched peaks inside the precursor window count on neither side.
    matched_peaks = {fragment.peak for fragment in fragments if not window.contains(fragment.peak.mz)}
    intensity_matched_signals = float(np.sum([peak.intensity for peak in sorted(matched_peaks)]))
    return intensity_matched_signals / intensity_all_signals * 100
