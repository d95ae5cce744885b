"""
Interaction report: pairwise combination risks for a substance.

Lookup order for a substance's combo table:
  1. its own key               (e.g. "lsd", "mdma")
  2. its categories, in order  (e.g. alprazolam -> "benzodiazepine"
                                 -> "benzodiazepines")
Results are sorted most dangerous first:
  Dangerous < Unsafe < Caution < Low Risk & Synergy
  < Low Risk & No Synergy < Low Risk & Decrease < anything else
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

from bioclock.config import COMBO_DATA_PATH

STATUS_RANK = {
    "Dangerous": 0,
    "Unsafe": 1,
    "Caution": 2,
    "Low Risk & Synergy": 3,
    "Low Risk & No Synergy": 4,
    "Low Risk & Decrease": 5,
}
UNKNOWN_RANK = 99

# Singular category -> combo table key
CATEGORY_ALIASES = {
    "benzodiazepine": "benzodiazepines",
    "amphetamine": "amphetamines",
    "opioid": "opioids",
    "ssri": "ssris",
    "maoi": "maois",
    "cannabinoid": "cannabis",
}

# Display names for combo keys that are not catalog entries
GROUP_NAMES = {
    "benzodiazepines": "Benzos",
    "amphetamines": "Amphetamines",
    "opioids": "Opioids",
    "ssris": "SSRIs",
    "maois": "MAOIs",
    "cannabis": "Weed/Cannabis",
    "alcohol": "Alcohol",
}


@lru_cache(maxsize=4)
def load_combos(path: Optional[str] = None) -> dict:
    """Load the combo table. Cached per path for the process lifetime."""
    data_path = Path(path) if path else COMBO_DATA_PATH
    with open(data_path, encoding="utf-8") as fh:
        data = json.load(fh)
    print(f"[bioclock-data] Loaded {len(data)} combo tables from {data_path}", flush=True)
    return data


def normalize_category(category: str) -> str:
    lower = category.lower()
    return CATEGORY_ALIASES.get(lower, lower)


def pretty_name(slug: str, catalog: dict) -> str:
    """Catalog display name, else a group name, else the capitalized slug."""
    if slug in catalog:
        return catalog[slug].get("pretty_name") or slug
    if slug in GROUP_NAMES:
        return GROUP_NAMES[slug]
    return slug[:1].upper() + slug[1:]


def combo_source(catalog: dict, combos: dict, key: str) -> Optional[str]:
    """Combo table key used for `key`: its own entry, else its first matching category."""
    if key in combos:
        return key
    for category in (catalog.get(key) or {}).get("categories") or []:
        norm = normalize_category(category)
        if norm in combos:
            return norm
    return None


def interactions(catalog: dict, combos: dict, key: str) -> list[dict]:
    """Interaction list for a substance key, most dangerous first. Empty if unknown."""
    source = combo_source(catalog, combos, key)
    if source is None:
        return []
    report = []
    for slug, data in combos[source].items():
        status = data.get("status") or "Unknown"
        report.append({
            "slug": slug,
            "name": pretty_name(slug, catalog),
            "status": status,
            "note": data.get("note"),
            "rank": STATUS_RANK.get(status, UNKNOWN_RANK),
        })
    # stable: ties keep the table order
    return sorted(report, key=lambda item: item["rank"])
