"""
Substance reference catalog.

Read-only mapping of substance key -> profile, loaded once from the bundled
JSON dataset (TripSit-style fields: pretty_name, formatted_onset,
formatted_duration, formatted_dose, properties, links).
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

from bioclock.config import (
    DEFAULT_ROUTE,
    EROWID_SEARCH_URL,
    STANDARD_ROUTES,
    SUBSTANCE_DATA_PATH,
)


@lru_cache(maxsize=4)
def load_catalog(path: Optional[str] = None) -> dict:
    """Load the substance dataset. Cached per path for the process lifetime."""
    data_path = Path(path) if path else SUBSTANCE_DATA_PATH
    with open(data_path, encoding="utf-8") as fh:
        data = json.load(fh)
    print(f"[bioclock-data] Loaded {len(data)} substances from {data_path}", flush=True)
    return data


def display_name(key: str, profile: dict) -> str:
    return profile.get("pretty_name") or profile.get("name") or key


def find_substance(catalog: dict, name_or_key: str) -> Optional[tuple[str, dict]]:
    """
    Find a profile by key, display name or name (case-insensitive).
    Returns (key, profile) or None.
    """
    if not name_or_key:
        return None
    if name_or_key in catalog:
        return name_or_key, catalog[name_or_key]
    needle = name_or_key.strip().lower()
    for key, profile in catalog.items():
        candidates = (key, profile.get("pretty_name") or "", profile.get("name") or "")
        if needle in (c.lower() for c in candidates):
            return key, profile
    return None


def list_substances(catalog: dict, query: str = "") -> list[dict]:
    """Catalog entries sorted by display name, optionally filtered by substring."""
    needle = query.strip().lower()
    items = []
    for key, profile in catalog.items():
        name = display_name(key, profile)
        if needle and needle not in name.lower() and needle not in key.lower():
            continue
        items.append({"key": key, "name": name})
    return sorted(items, key=lambda i: i["name"].lower())


def available_routes(profile: Optional[dict]) -> list[str]:
    """Routes from the dose table first, then the standard routes (no duplicates)."""
    routes = []
    for route in list((profile or {}).get("formatted_dose") or {}) + STANDARD_ROUTES:
        if route not in routes:
            routes.append(route)
    return routes


def default_route(profile: Optional[dict]) -> str:
    doses = (profile or {}).get("formatted_dose") or {}
    return next(iter(doses), DEFAULT_ROUTE)


def substance_info(key: str, profile: dict) -> dict:
    """Info-card payload for the substance browser."""
    props = profile.get("properties") or {}
    onset = (profile.get("formatted_onset") or {}).get("value") or props.get("onset") or "Unknown"
    duration = (profile.get("formatted_duration") or {}).get("value") or props.get("duration") or "Unknown"
    links = profile.get("links") or {}
    route = default_route(profile)

    return {
        "key": key,
        "name": display_name(key, profile),
        "summary": props.get("summary", ""),
        "onset": onset,
        "duration": duration,
        "after_effects": props.get("after-effects", ""),
        "categories": profile.get("categories") or [],
        # route -> {level: amount}
        "doses": profile.get("formatted_dose") or {},
        "routes": available_routes(profile),
        "default_route": route,
        "experiences_url": links.get("experiences") or f"{EROWID_SEARCH_URL}{profile.get('name') or key}",
    }
