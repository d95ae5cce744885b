"""
Timeline Engine: onset/duration resolution and dose phase tracking.

Resolves how long a logged dose lasts from the substance reference data,
then classifies a dose into its lifecycle phase for the BioClock timer.

Resolution order (first hit wins):
  1. Route-class overrides   -- smoked/snorted onsets and known short
                                 durations (DMT, salvia, cocaine, ...)
  2. Raw text                -- formatted_<field> {value, _unit},
                                 else properties.<field> free text
  3. Range parsing           -- "2-4" -> 3, "45" -> 45, nothing -> defaults
  4. Unit normalization      -- hours x60, minutes as-is
  5. Ambiguous units         -- short-acting names stay minutes,
                                 <= 24 -> hours, > 24 -> minutes

Phases over elapsed minutes t (window = duration x 1.2 afterglow tail):
  t < onset     -> Come Up
  t < duration  -> Peak/Plateau
  t < window    -> Comedown
  else          -> Afterglow/Sober
"""

import re
from datetime import datetime
from typing import Optional

from bioclock.config import (
    AFTERGLOW_FACTOR,
    AMBIGUOUS_HOURS_MAX,
    DEFAULT_DURATION_MIN,
    DEFAULT_ONSET_MIN,
    SMOKED_ONSET_MIN,
    SNORTED_ONSET_MIN,
)
from bioclock.core.substances import find_substance

ONSET = "onset"
DURATION = "duration"

STAGE_COME_UP = "Come Up"
STAGE_PEAK = "Peak/Plateau"
STAGE_COMEDOWN = "Comedown"
STAGE_SOBER = "Afterglow/Sober"

ROUTE_SMOKED = "smoked"
ROUTE_SNORTED = "snorted"
ROUTE_OTHER = "other"

DEFAULT_MINUTES = {
    ONSET: DEFAULT_ONSET_MIN,
    DURATION: DEFAULT_DURATION_MIN,
}


# ── Lookup tables ────────────────────────────────────────────────────

# Route class -> substrings of the lowercased route
ROUTE_CLASSES = (
    (ROUTE_SMOKED, ("smoke", "vape", "vapor", "inhal")),
    (ROUTE_SNORTED, ("snort", "insuff")),
)

# Onset by route class, independent of substance
ONSET_OVERRIDES = {
    ROUTE_SMOKED: SMOKED_ONSET_MIN,
    ROUTE_SNORTED: SNORTED_ONSET_MIN,
}

# Duration by route class: ordered (name substrings, minutes)
DURATION_OVERRIDES = {
    ROUTE_SMOKED: (
        (("dmt", "dimethyltryptamine"), 20.0),
        (("salvia",), 15.0),
        (("5-meo",), 20.0),
        (("crack", "cocaine"), 45.0),
        (("cannabis", "thc", "weed"), 180.0),
    ),
    ROUTE_SNORTED: (
        (("cocaine",), 60.0),
        (("ketamine",), 75.0),
    ),
}

# Bare numbers for these are minutes, not hours
SHORT_ACTING_NAMES = ("salvia", "dmt", "nitrous", "k", "ketamine", "cocaine")

_RANGE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")
_WORD_RE = re.compile(r"[a-z]+")


# ── Text helpers ─────────────────────────────────────────────────────

def classify_route(route: str) -> str:
    """Map a free-form route ("Smoked", "insufflated", ...) to its route class."""
    route_lower = (route or "").lower()
    for route_class, tokens in ROUTE_CLASSES:
        if any(tok in route_lower for tok in tokens):
            return route_class
    return ROUTE_OTHER


def _name_matches(name: str, candidates) -> bool:
    """
    Substring match against a lowercased substance name.
    Single-letter candidates ("k") only match a whole word.
    """
    words = _WORD_RE.findall(name)
    for cand in candidates:
        if len(cand) == 1:
            if cand in words:
                return True
        elif cand in name:
            return True
    return False


def parse_time_range(text: str) -> Optional[float]:
    """
    Extract a single number from range text.
    "2-4 hours" -> 3.0, "45 minutes" -> 45.0, "unknown" -> None.
    """
    if not text:
        return None
    m = _RANGE_RE.search(text)
    if m:
        return (float(m.group(1)) + float(m.group(2))) / 2
    m = _NUMBER_RE.search(text)
    if m:
        return float(m.group(0))
    return None


def _unit_factor(unit: str) -> Optional[float]:
    """Minutes per unit, or None when the unit string names no time unit."""
    lower = (unit or "").lower()
    if "hour" in lower or "hr" in lower:
        return 60.0
    if "min" in lower or "m" in _WORD_RE.findall(lower):
        return 1.0
    return None


def _profile_name(profile: dict) -> str:
    return (profile.get("name") or profile.get("pretty_name") or "").lower()


def raw_field_text(profile: dict, field: str) -> tuple[str, str]:
    """
    Raw (value, unit) text for onset/duration.
    Free-text properties carry their unit inside the value itself.
    A formatted field wins whenever present, even with an empty value.
    """
    formatted = profile.get(f"formatted_{field}")
    if isinstance(formatted, dict):
        unit = formatted.get("_unit") or formatted.get("unit") or ""
        return str(formatted.get("value") or ""), str(unit)
    props = profile.get("properties") or {}
    text = props.get(field) or ""
    return str(text), str(text)


# ── Resolver ─────────────────────────────────────────────────────────

def route_override(profile: dict, field: str, route: str) -> Optional[float]:
    """Hard-coded minutes for the route class, if one applies."""
    route_class = classify_route(route)
    if field == ONSET:
        return ONSET_OVERRIDES.get(route_class)
    name = _profile_name(profile)
    for names, minutes in DURATION_OVERRIDES.get(route_class, ()):
        if _name_matches(name, names):
            return minutes
    return None


def resolve_minutes(profile: Optional[dict], field: str, route: str = "") -> float:
    """
    Resolve onset or total duration of a substance in minutes.

    Never raises on messy reference data: anything unparseable resolves
    to the global defaults (onset 30 min, duration 240 min).
    """
    if field not in DEFAULT_MINUTES:
        raise ValueError(f"Unknown timeline field: {field}")
    default = DEFAULT_MINUTES[field]
    if not profile:
        return default

    override = route_override(profile, field, route)
    if override is not None:
        return override

    value_text, unit_text = raw_field_text(profile, field)
    value = parse_time_range(value_text)
    if value is None:
        return default

    factor = _unit_factor(unit_text)
    if factor is not None:
        return value * factor

    # No unit anywhere in the text
    if field == ONSET:
        return value
    if _name_matches(_profile_name(profile), SHORT_ACTING_NAMES):
        return value
    if value <= AMBIGUOUS_HOURS_MAX:
        return value * 60
    return value


# ── Phase calculation ────────────────────────────────────────────────

def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def elapsed_minutes(dose_time, now: datetime) -> float:
    """Minutes since dose_time, clamped at 0. Naive times are read as local time."""
    start = _as_datetime(dose_time)
    if (start.tzinfo is None) != (now.tzinfo is None):
        start = start.astimezone()
        now = now.astimezone()
    return max(0.0, (now - start).total_seconds() / 60)


def phase_for_minutes(elapsed: float, onset_min: float, duration_min: float) -> dict:
    """Classify elapsed minutes against resolved onset/duration."""
    elapsed = max(0.0, elapsed)
    window = duration_min * AFTERGLOW_FACTOR
    percent = min(100.0, elapsed / window * 100) if window > 0 else 100.0

    if elapsed < onset_min:
        stage = STAGE_COME_UP
    elif elapsed < duration_min:
        stage = STAGE_PEAK
    elif elapsed < window:
        stage = STAGE_COMEDOWN
    else:
        stage = STAGE_SOBER

    return {
        "stage": stage,
        "percent_complete": percent,
        "onset_minutes": onset_min,
        "duration_minutes": duration_min,
        "elapsed_minutes": elapsed,
        "active": stage != STAGE_SOBER,
    }


def compute_phase(dose: dict, catalog: dict, now: datetime) -> dict:
    """
    Phase of a logged dose at `now`.
    Unknown substances fall back to the default onset/duration.
    """
    found = find_substance(catalog, dose.get("substance", ""))
    profile = found[1] if found else None
    route = dose.get("route") or ""
    onset = resolve_minutes(profile, ONSET, route)
    duration = resolve_minutes(profile, DURATION, route)
    return phase_for_minutes(elapsed_minutes(dose["doseTime"], now), onset, duration)


def build_timeline(doses: list[dict], catalog: dict, now: datetime,
                   active_only: bool = False) -> list[dict]:
    """Attach a phase to each dose, optionally dropping finished ones."""
    timeline = []
    for dose in doses:
        phase = compute_phase(dose, catalog, now)
        if active_only and not phase["active"]:
            continue
        timeline.append({**dose, "phase": phase})
    return timeline
