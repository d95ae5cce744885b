"""
SQLite dose log and access layer.
Schema: doses. Defaults to an in-memory database (volatile, per process).
"""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from bioclock.config import DB_PATH, DEFAULT_QUANTITY, DEFAULT_ROUTE, DEFAULT_UNIT

# One shared connection; writers serialized through the lock
_lock = threading.RLock()
_conn: Optional[sqlite3.Connection] = None

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS doses (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    substance   TEXT    NOT NULL,
    route       TEXT    NOT NULL DEFAULT 'Oral',
    quantity    TEXT    NOT NULL DEFAULT '1',
    unit        TEXT    NOT NULL DEFAULT 'mg',
    dose_time   TEXT    NOT NULL
);
"""


def get_connection() -> sqlite3.Connection:
    """Shared SQLite connection, usable from FastAPI's worker threads."""
    global _conn
    with _lock:
        if _conn is None:
            conn = sqlite3.connect(DB_PATH, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if DB_PATH != ":memory:":
                conn.execute("PRAGMA journal_mode=WAL")
            _conn = conn
        return _conn


@contextmanager
def db_cursor():
    """Yield a cursor under the lock, auto-commit on success, rollback on error."""
    with _lock:
        conn = get_connection()
        cur = conn.cursor()
        try:
            yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise


def init_db():
    """Create tables if they don't exist."""
    with db_cursor() as cur:
        cur.executescript(SCHEMA_SQL)
    print("[bioclock-db] Database initialized at", DB_PATH, flush=True)


def close_db():
    """Drop the shared connection. An in-memory log is gone afterwards."""
    global _conn
    with _lock:
        if _conn is not None:
            _conn.close()
            _conn = None


def _row_to_dose(row: sqlite3.Row) -> dict:
    return {
        "id": row["id"],
        "substance": row["substance"],
        "route": row["route"],
        "quantity": row["quantity"],
        "unit": row["unit"],
        "doseTime": row["dose_time"],
    }


# --- CRUD helpers ---

def insert_dose(substance: str, dose_time: str,
                quantity: Optional[str] = None, unit: Optional[str] = None,
                route: Optional[str] = None) -> dict:
    """Store a dose and return the full record."""
    record = (
        substance,
        route or DEFAULT_ROUTE,
        quantity or DEFAULT_QUANTITY,
        unit or DEFAULT_UNIT,
        dose_time,
    )
    with db_cursor() as cur:
        cur.execute(
            "INSERT INTO doses (substance, route, quantity, unit, dose_time) VALUES (?,?,?,?,?)",
            record,
        )
        row_id = cur.lastrowid
        cur.execute("SELECT * FROM doses WHERE id=?", (row_id,))
        return _row_to_dose(cur.fetchone())


def _dose_instant(dose: dict) -> datetime:
    """Absolute time of a dose. Offset-less timestamps are local time."""
    return datetime.fromisoformat(dose["doseTime"]).astimezone()


def query_doses() -> list[dict]:
    """
    All doses, newest first.
    Ordered by the parsed instant, not the stored text (offsets may differ).
    """
    with db_cursor() as cur:
        cur.execute("SELECT * FROM doses")
        doses = [_row_to_dose(r) for r in cur.fetchall()]
    return sorted(doses, key=lambda d: (_dose_instant(d), d["id"]), reverse=True)


def get_dose(dose_id: int) -> Optional[dict]:
    with db_cursor() as cur:
        cur.execute("SELECT * FROM doses WHERE id=?", (dose_id,))
        row = cur.fetchone()
        return _row_to_dose(row) if row else None


def delete_dose(dose_id: int) -> bool:
    with db_cursor() as cur:
        cur.execute("DELETE FROM doses WHERE id=?", (dose_id,))
        return cur.rowcount > 0


def clear_doses() -> int:
    """Delete every dose. Ids keep counting up afterwards."""
    with db_cursor() as cur:
        cur.execute("DELETE FROM doses")
        return cur.rowcount
