"""SQLite database setup and schema management."""

from __future__ import annotations

import sqlite3
from pathlib import Path

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS note_impacts (
    note_id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    action_category TEXT NOT NULL,
    action_type TEXT NOT NULL,
    quantity REAL,
    unit TEXT,
    confidence REAL NOT NULL,
    co2_saved_kg REAL,
    plastic_saved_g REAL,
    water_saved_liters REAL,
    energy_saved_kwh REAL,
    formula_id TEXT NOT NULL,
    formula_source TEXT,
    ai_reasoning TEXT,
    needs_review INTEGER NOT NULL DEFAULT 0,
    classified_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS impact_review_queue (
    note_id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    note_content TEXT NOT NULL,
    ai_category TEXT NOT NULL,
    ai_action_type TEXT,
    ai_confidence REAL NOT NULL,
    ai_reasoning TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    created_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_note_impacts_user ON note_impacts(user_id);
CREATE INDEX IF NOT EXISTS idx_note_impacts_category ON note_impacts(action_category);
CREATE INDEX IF NOT EXISTS idx_review_queue_status ON impact_review_queue(status);
"""


def get_connection(db_path: Path) -> sqlite3.Connection:
    """Create or open a SQLite database with the noteimpact schema."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")

    conn.executescript(SCHEMA_SQL)
    conn.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
    conn.commit()

    return conn
