"""
Tolerance Engine: equivalent-dose estimate after a recent dose.

Power-law decay fitted to tryptamine cross-tolerance reports:
  tolerance_pct(d) = 280.059565 * d^-0.412565956     (d = days since last dose)
  equivalent_dose  = desired_dose * tolerance_pct / 100
Tolerance is treated as fully reset after 14 days.

d <= 0 has no meaning for the fit (d^-0.41 diverges at 0), so it is
rejected instead of returning a huge multiplier.
"""

import math

from bioclock.config import (
    TOLERANCE_COEFF,
    TOLERANCE_EXPONENT,
    TOLERANCE_RESET_DAYS,
)


class InvalidToleranceInput(ValueError):
    """Raised for inputs outside the domain of the tolerance model."""


def tolerance_percent(days_since_last: float) -> float:
    """Dose needed, as percent of baseline, to match the usual effect."""
    if not math.isfinite(days_since_last):
        raise InvalidToleranceInput("days_since_last must be a finite number")
    if days_since_last <= 0:
        raise InvalidToleranceInput("days_since_last must be greater than 0")
    if days_since_last >= TOLERANCE_RESET_DAYS:
        return 100.0
    return TOLERANCE_COEFF * days_since_last ** TOLERANCE_EXPONENT


def estimate_equivalent_dose(desired_dose: float, days_since_last: float) -> float:
    """
    Dose that feels like `desired_dose` would at zero tolerance.

    >= 14 days: desired_dose unchanged.
    """
    if not math.isfinite(days_since_last):
        raise InvalidToleranceInput("days_since_last must be a finite number")
    if not math.isfinite(desired_dose):
        raise InvalidToleranceInput("desired_dose must be a finite number")
    if desired_dose < 0:
        raise InvalidToleranceInput("desired_dose must not be negative")
    if days_since_last >= TOLERANCE_RESET_DAYS:
        return desired_dose
    return desired_dose * tolerance_percent(days_since_last) / 100


def tolerance_curve(desired_dose: float, max_days: int = int(TOLERANCE_RESET_DAYS)) -> list[dict]:
    """Equivalent dose for day 1..max_days, for charting."""
    return [
        {
            "days": day,
            "tolerance_pct": round(tolerance_percent(day), 1),
            "equivalent_dose": round(estimate_equivalent_dose(desired_dose, day), 2),
        }
        for day in range(1, max_days + 1)
    ]
