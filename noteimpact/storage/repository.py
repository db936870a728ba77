"""Upserts and aggregate reads for impact records and the review queue."""

from __future__ import annotations

import sqlite3

from noteimpact.classification.models import ImpactRecord, ImpactTotals, ReviewQueueEntry


class ImpactRepository:
    """Data access layer for the noteimpact SQLite database.

    Both tables are keyed by note id; every write replaces the previous row for
    that note inside a single transaction.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert_impact(self, record: ImpactRecord) -> None:
        """Insert or replace the impact record for a note."""
        result = record.classification
        impact = record.impact
        with self._conn:
            self._conn.execute(
                """INSERT OR REPLACE INTO note_impacts
                (note_id, user_id, action_category, action_type, quantity, unit, confidence,
                 co2_saved_kg, plastic_saved_g, water_saved_liters, energy_saved_kwh,
                 formula_id, formula_source, ai_reasoning, needs_review, classified_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    record.note_id,
                    record.user_id,
                    result.category,
                    result.action_type,
                    result.quantity,
                    result.unit,
                    result.confidence,
                    impact.co2_kg,
                    impact.plastic_g,
                    impact.water_liters,
                    impact.energy_kwh,
                    impact.formula_id,
                    impact.formula_source,
                    result.reasoning,
                    int(record.needs_review),
                    record.classified_at.isoformat(),
                ),
            )

    def upsert_review_entry(self, entry: ReviewQueueEntry) -> None:
        """Insert or replace the review queue entry for a note."""
        with self._conn:
            self._conn.execute(
                """INSERT OR REPLACE INTO impact_review_queue
                (note_id, user_id, note_content, ai_category, ai_action_type,
                 ai_confidence, ai_reasoning, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    entry.note_id,
                    entry.user_id,
                    entry.note_content,
                    entry.ai_category,
                    entry.ai_action_type,
                    entry.ai_confidence,
                    entry.ai_reasoning,
                    entry.status,
                    entry.created_at.isoformat(),
                ),
            )

    def delete_review_entry(self, note_id: str) -> None:
        with self._conn:
            self._conn.execute(
                "DELETE FROM impact_review_queue WHERE note_id = ?", (note_id,)
            )

    def get_impact(self, note_id: str) -> dict | None:
        row = self._conn.execute(
            "SELECT * FROM note_impacts WHERE note_id = ?", (note_id,)
        ).fetchone()
        return self._row_to_impact_dict(row) if row else None

    def get_review_entry(self, note_id: str) -> dict | None:
        row = self._conn.execute(
            "SELECT * FROM impact_review_queue WHERE note_id = ?", (note_id,)
        ).fetchone()
        return dict(row) if row else None

    def list_review_queue(self, status: str | None = "pending", limit: int = 50) -> list[dict]:
        """Review entries, oldest first, optionally filtered by status."""
        query = "SELECT * FROM impact_review_queue WHERE 1=1"
        params: list = []
        if status:
            query += " AND status = ?"
            params.append(status)
        query += " ORDER BY created_at ASC LIMIT ?"
        params.append(limit)

        rows = self._conn.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def get_user_impacts(self, user_id: str, limit: int = 100) -> list[dict]:
        rows = self._conn.execute(
            """
            SELECT * FROM note_impacts
            WHERE user_id = ?
            ORDER BY classified_at DESC
            LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()
        return [self._row_to_impact_dict(row) for row in rows]

    def get_totals(self, user_id: str | None = None) -> ImpactTotals:
        """Sum impact across all notes, or one user's notes. Nulls count as zero."""
        where = ""
        params: list = []
        if user_id:
            where = "WHERE user_id = ?"
            params.append(user_id)

        row = self._conn.execute(
            f"""
            SELECT
                COALESCE(SUM(co2_saved_kg), 0) AS co2,
                COALESCE(SUM(plastic_saved_g), 0) AS plastic,
                COALESCE(SUM(water_saved_liters), 0) AS water,
                COALESCE(SUM(energy_saved_kwh), 0) AS energy,
                COUNT(*) AS notes
            FROM note_impacts {where}
            """,
            params,
        ).fetchone()

        breakdown_rows = self._conn.execute(
            f"""
            SELECT action_category, COUNT(*) AS n
            FROM note_impacts {where}
            GROUP BY action_category
            ORDER BY n DESC
            """,
            params,
        ).fetchall()

        return ImpactTotals(
            total_co2_kg=round(row["co2"], 4),
            total_plastic_g=round(row["plastic"], 4),
            total_water_liters=round(row["water"], 4),
            total_energy_kwh=round(row["energy"], 4),
            total_notes=row["notes"],
            category_breakdown={r["action_category"]: r["n"] for r in breakdown_rows},
        )

    def _row_to_impact_dict(self, row: sqlite3.Row) -> dict:
        d = dict(row)
        d["needs_review"] = bool(d["needs_review"])
        return d
