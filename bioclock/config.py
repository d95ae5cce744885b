"""
BioClock Configuration.
All settings via environment variables with sensible defaults.
"""

import os
from pathlib import Path

# --- Paths ---
PACKAGE_DIR = Path(__file__).resolve().parent
# ":memory:" keeps the dose log volatile (lost on restart)
DB_PATH = os.getenv("BIOCLOCK_DB_PATH", ":memory:")
SUBSTANCE_DATA_PATH = Path(
    os.getenv("BIOCLOCK_SUBSTANCE_DATA", str(PACKAGE_DIR / "data" / "drugs.json"))
)
COMBO_DATA_PATH = Path(
    os.getenv("BIOCLOCK_COMBO_DATA", str(PACKAGE_DIR / "data" / "combos.json"))
)

# --- Server ---
API_HOST = os.getenv("BIOCLOCK_HOST", "0.0.0.0")
API_PORT = int(os.getenv("BIOCLOCK_PORT", "5000"))

# --- Dose log defaults ---
DEFAULT_QUANTITY = os.getenv("BIOCLOCK_DEFAULT_QUANTITY", "1")
DEFAULT_UNIT = os.getenv("BIOCLOCK_DEFAULT_UNIT", "mg")
DEFAULT_ROUTE = "Oral"
STANDARD_ROUTES = [
    "Oral", "Smoked", "Vaporized", "Insufflated",
    "Sublingual", "Buccal", "Rectal", "IV", "IM",
]

# --- Timeline ---
DEFAULT_ONSET_MIN: float = float(os.getenv("BIOCLOCK_DEFAULT_ONSET_MIN", "30"))
DEFAULT_DURATION_MIN: float = float(os.getenv("BIOCLOCK_DEFAULT_DURATION_MIN", "240"))
SMOKED_ONSET_MIN: float = 2.0
SNORTED_ONSET_MIN: float = 10.0
AFTERGLOW_FACTOR: float = float(os.getenv("BIOCLOCK_AFTERGLOW_FACTOR", "1.2"))  # +20% tail
AMBIGUOUS_HOURS_MAX: float = 24.0  # bare numbers up to this are read as hours

# --- Tolerance (power-law decay fit, tryptamine-style) ---
# tolerance_pct = COEFF * days^EXPONENT, fully reset after RESET_DAYS
TOLERANCE_COEFF: float = 280.059565
TOLERANCE_EXPONENT: float = -0.412565956
TOLERANCE_RESET_DAYS: float = float(os.getenv("BIOCLOCK_TOLERANCE_RESET_DAYS", "14"))

# --- Reference links ---
EROWID_SEARCH_URL = "https://erowid.org/search.php?q="
