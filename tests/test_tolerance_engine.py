import pytest

from bioclock.core.tolerance_engine import (
    InvalidToleranceInput,
    estimate_equivalent_dose,
    tolerance_curve,
    tolerance_percent,
)


def test_fully_reset_after_two_weeks():
    assert estimate_equivalent_dose(100, 14) == 100
    assert estimate_equivalent_dose(100, 30) == 100
    assert tolerance_percent(20) == 100


def test_one_day_after():
    assert estimate_equivalent_dose(100, 1) == pytest.approx(280.059565)


def test_power_law_decay():
    expected = 150 * (280.059565 * 7 ** -0.412565956) / 100
    assert estimate_equivalent_dose(150, 7) == pytest.approx(expected)
    assert estimate_equivalent_dose(100, 2) > estimate_equivalent_dose(100, 3)


@pytest.mark.parametrize("days", [0, -1, -0.5])
def test_non_positive_days_rejected(days):
    with pytest.raises(InvalidToleranceInput):
        estimate_equivalent_dose(100, days)


@pytest.mark.parametrize("dose, days", [
    (100, float("nan")),
    (100, float("inf")),
    (float("inf"), 3),
    (float("nan"), 20),
])
def test_non_finite_input_rejected(dose, days):
    with pytest.raises(InvalidToleranceInput):
        estimate_equivalent_dose(dose, days)


def test_negative_dose_rejected():
    with pytest.raises(InvalidToleranceInput):
        estimate_equivalent_dose(-5, 3)


def test_tolerance_percent_rejects_nan():
    with pytest.raises(InvalidToleranceInput):
        tolerance_percent(float("nan"))


def test_error_is_value_error():
    assert issubclass(InvalidToleranceInput, ValueError)


def test_tolerance_curve():
    curve = tolerance_curve(100)
    assert [p["days"] for p in curve] == list(range(1, 15))
    assert curve[0]["equivalent_dose"] == pytest.approx(280.06)
    assert curve[-1]["equivalent_dose"] == 100
    # the fit dips just under baseline on day 13 before the reset
    decay = [p["equivalent_dose"] for p in curve[:13]]
    assert decay == sorted(decay, reverse=True)
