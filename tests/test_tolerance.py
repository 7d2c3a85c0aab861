import pytest

from lipid_annotator.core.errors import InvalidToleranceRange, LipidAnnotationError
from lipid_annotator.core.tolerance import MZTolerance, ToleranceRange


def test_ppm_dominates_at_high_mz():
    tolerance = MZTolerance(0.001, 10)
    assert tolerance.get_mz_tolerance(500.0) == pytest.approx(0.005)


def test_absolute_dominates_at_low_mz():
    tolerance = MZTolerance(0.001, 10)
    assert tolerance.get_mz_tolerance(50.0) == pytest.approx(0.001)


def test_tolerance_range_is_closed():
    window = ToleranceRange(100.0, 100.5)
    assert window.contains(100.0)
    assert window.contains(100.5)
    assert 100.25 in window
    assert not window.contains(100.5000001)


def test_get_tolerance_range_is_symmetric():
    window = MZTolerance(0.01, 0).get_tolerance_range(200.0)
    assert window.lower == pytest.approx(199.99)
    assert window.upper == pytest.approx(200.01)


def test_check_within_tolerance():
    tolerance = MZTolerance(0.005, 5)
    assert tolerance.check_within_tolerance(760.5851, 760.5880)
    assert not tolerance.check_within_tolerance(760.5851, 760.5951)


def test_inverted_range_raises():
    with pytest.raises(InvalidToleranceRange):
        ToleranceRange(2.0, 1.0)


@pytest.mark.parametrize("absolute, ppm", [(-0.1, 5), (0.01, -1)])
def test_negative_tolerance_raises(absolute, ppm):
    with pytest.raises(LipidAnnotationError):
        MZTolerance(absolute, ppm)


def test_zero_width_range_is_allowed():
    window = MZTolerance(0, 0).get_tolerance_range(300.0)
    assert window.contains(300.0)
