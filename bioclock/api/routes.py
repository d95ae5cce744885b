"""
FastAPI API routes for BioClock.
"""

import math
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from bioclock.core.database import (
    clear_doses,
    delete_dose,
    insert_dose,
    query_doses,
)
from bioclock.core.interactions import combo_source, interactions, load_combos
from bioclock.core.oracle import consult
from bioclock.core.substances import (
    find_substance,
    list_substances,
    load_catalog,
    substance_info,
)
from bioclock.core.timeline_engine import (
    DURATION,
    ONSET,
    build_timeline,
    resolve_minutes,
)
from bioclock.core.tolerance_engine import (
    InvalidToleranceInput,
    estimate_equivalent_dose,
    tolerance_curve,
    tolerance_percent,
)

router = APIRouter(prefix="/api")


# --- Models ---

class DoseRequest(BaseModel):
    # Required fields are checked by hand so a missing one is a 400, not a 422
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    substance: Optional[str] = None
    dose_time: Optional[str] = Field(None, alias="doseTime")
    route: Optional[str] = None
    quantity: Optional[str] = None
    unit: Optional[str] = None


def _parse_time(value: str, field: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field}: {value}")


# --- Dose log ---

@router.get("/doses")
def get_doses():
    """All logged doses, newest first."""
    return query_doses()


@router.post("/doses")
def log_dose(req: DoseRequest):
    """Log a dose. quantity/unit/route fall back to 1 / mg / Oral."""
    if not req.substance:
        raise HTTPException(status_code=400, detail="Missing required field: substance")
    if not req.dose_time:
        raise HTTPException(status_code=400, detail="Missing required field: doseTime")
    dose_time = _parse_time(req.dose_time, "doseTime")

    dose = insert_dose(
        req.substance, dose_time.isoformat(),
        quantity=req.quantity, unit=req.unit, route=req.route,
    )
    print(
        f"[bioclock-api] Dose logged: {dose['substance']} "
        f"{dose['quantity']}{dose['unit']} {dose['route']} (#{dose['id']})",
        flush=True,
    )
    return dose


@router.delete("/doses")
def clear_doses_route():
    """Clear the whole logbook."""
    removed = clear_doses()
    print(f"[bioclock-api] Logbook cleared ({removed} doses)", flush=True)
    return {"deleted": removed, "status": "ok"}


@router.delete("/doses/{dose_id}")
def delete_dose_route(dose_id: str):
    """Delete a dose by ID. Unknown IDs are not an error."""
    try:
        dose_int = int(dose_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid ID")
    delete_dose(dose_int)
    return {"deleted": dose_int, "status": "ok"}


@router.get("/timeline")
def get_timeline(
    now: Optional[str] = None,
    active_only: bool = False,
):
    """Logged doses with their current phase (default: now)."""
    target = _parse_time(now, "now") if now else datetime.now().astimezone()
    timeline = build_timeline(query_doses(), load_catalog(), target, active_only=active_only)
    return {"now": target.isoformat(), "doses": timeline}


# --- Substance reference ---

@router.get("/substances")
def get_substances(q: str = ""):
    """Substance list for pickers, sorted by name."""
    return list_substances(load_catalog(), q)


@router.get("/substances/{key}")
def get_substance(key: str, route: Optional[str] = None):
    """Info card for one substance, with resolved timings for a route."""
    found = find_substance(load_catalog(), key)
    if not found:
        raise HTTPException(status_code=404, detail="Substance not found")
    sub_key, profile = found
    info = substance_info(sub_key, profile)
    route = route or info["default_route"]
    info["route"] = route
    info["onset_minutes"] = resolve_minutes(profile, ONSET, route)
    info["duration_minutes"] = resolve_minutes(profile, DURATION, route)
    return info


@router.get("/substances/{key}/interactions")
def get_interactions(key: str):
    """Known combination risks for a substance, most dangerous first."""
    catalog = load_catalog()
    found = find_substance(catalog, key)
    if not found:
        raise HTTPException(status_code=404, detail="Substance not found")
    sub_key, profile = found
    combos = load_combos()
    return {
        "key": sub_key,
        "name": substance_info(sub_key, profile)["name"],
        "source": combo_source(catalog, combos, sub_key),
        "interactions": interactions(catalog, combos, sub_key),
    }


# --- Tolerance ---

@router.get("/tolerance")
def get_tolerance(
    desired_dose: float = Query(..., ge=0),
    days_since: float = Query(...),
    last_dose: Optional[float] = Query(default=None, ge=0),
):
    """Dose needed to match `desired_dose` given days since the last dose."""
    if last_dose is not None and not math.isfinite(last_dose):
        raise HTTPException(status_code=400, detail="last_dose must be a finite number")
    try:
        equivalent = estimate_equivalent_dose(desired_dose, days_since)
        pct = tolerance_percent(days_since)
    except InvalidToleranceInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "last_dose": last_dose,
        "desired_dose": desired_dose,
        "days_since": days_since,
        "tolerance_pct": round(pct, 2),
        "equivalent_dose": equivalent,
    }


@router.get("/tolerance/curve")
def get_tolerance_curve(
    desired_dose: float = Query(..., ge=0),
    max_days: int = Query(default=14, ge=1, le=60),
):
    """Equivalent dose per day since the last dose, for charting."""
    try:
        points = tolerance_curve(desired_dose, max_days)
    except InvalidToleranceInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"desired_dose": desired_dose, "points": points}


# --- Oracle ---

@router.get("/oracle")
def get_oracle(exclude: Optional[str] = None):
    """One grounding phrase."""
    return {"phrase": consult(exclude=exclude)}
