"""Note impact pipeline: note text → classification → impact → persistence.

One call per note. Classifier failures are already absorbed into a
low-confidence "other" result; storage failures on the impact record are
raised as StorageError so the caller can report them.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict, dataclass

from noteimpact.classification.classifier import NoteClassifier
from noteimpact.classification.models import (
    ImpactEstimate,
    ImpactRecord,
    ReviewQueueEntry,
)
from noteimpact.errors import InvalidTriggerError, StorageError
from noteimpact.impact.calculator import calculate
from noteimpact.storage.repository import ImpactRepository

logger = logging.getLogger(__name__)

REVIEW_THRESHOLD = 0.7


def needs_review(confidence: float) -> bool:
    return confidence < REVIEW_THRESHOLD


@dataclass
class PipelineResult:
    category: str
    confidence: float
    needs_review: bool
    impact: ImpactEstimate

    def to_dict(self) -> dict:
        return {"success": True, **asdict(self)}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def to_text(self) -> str:
        lines = [
            f"Category:   {self.category}",
            f"Confidence: {self.confidence:.2f}",
            f"Formula:    {self.impact.formula_id}"
            + (f" ({self.impact.formula_source})" if self.impact.formula_source else ""),
        ]
        for label, value, unit in (
            ("CO2 saved", self.impact.co2_kg, "kg"),
            ("Plastic saved", self.impact.plastic_g, "g"),
            ("Water saved", self.impact.water_liters, "L"),
            ("Energy saved", self.impact.energy_kwh, "kWh"),
        ):
            if value is not None:
                lines.append(f"{label + ':':<12}{value} {unit}")
        if self.needs_review:
            lines.append("Queued for review (low confidence)")
        return "\n".join(lines)


class ImpactPipeline:
    """Classify a note, calculate its impact and persist the outcome."""

    def __init__(self, classifier: NoteClassifier, repo: ImpactRepository) -> None:
        self._classifier = classifier
        self._repo = repo

    def process(self, note_id: str, note_text: str, user_id: str) -> PipelineResult:
        result = self._classifier.classify(note_text)
        impact = calculate(result)
        review = needs_review(result.confidence)

        record = ImpactRecord(
            note_id=note_id,
            user_id=user_id,
            classification=result,
            impact=impact,
            needs_review=review,
        )
        try:
            self._repo.upsert_impact(record)
        except sqlite3.Error as e:
            logger.error(f"Failed to store impact for note {note_id}: {e}")
            raise StorageError(f"Failed to store impact for note {note_id}: {e}") from e

        if review:
            self._enqueue_review(note_id, note_text, user_id, record)
        else:
            self._clear_review(note_id)

        logger.info(
            f"Note {note_id}: {result.category}/{result.action_type} "
            f"confidence={result.confidence:.2f} formula={impact.formula_id} review={review}"
        )
        return PipelineResult(
            category=result.category,
            confidence=result.confidence,
            needs_review=review,
            impact=impact,
        )

    def _enqueue_review(
        self, note_id: str, note_text: str, user_id: str, record: ImpactRecord
    ) -> None:
        # note_impacts already holds the record flagged needs_review; a failed
        # queue write is logged only.
        result = record.classification
        entry = ReviewQueueEntry(
            note_id=note_id,
            user_id=user_id,
            note_content=note_text,
            ai_category=result.category,
            ai_action_type=result.action_type,
            ai_confidence=result.confidence,
            ai_reasoning=result.reasoning,
            status="pending",
        )
        try:
            self._repo.upsert_review_entry(entry)
        except sqlite3.Error as e:
            logger.error(f"Failed to queue note {note_id} for review: {e}")

    def _clear_review(self, note_id: str) -> None:
        try:
            self._repo.delete_review_entry(note_id)
        except sqlite3.Error as e:
            logger.error(f"Failed to clear review entry for note {note_id}: {e}")


def parse_trigger(payload: dict) -> tuple[str, str, str]:
    """Extract (note_id, note_text, user_id) from a trigger payload."""
    note_id = payload.get("note_id")
    note_text = payload.get("note_text") or payload.get("note_content")
    user_id = payload.get("user_id")
    if not note_id or not note_text or not user_id:
        raise InvalidTriggerError("Missing note_id, note_text, or user_id")
    return str(note_id), str(note_text), str(user_id)


def handle_trigger(payload: dict, pipeline: ImpactPipeline) -> dict:
    """Run the pipeline for a trigger payload and build the response body."""
    try:
        note_id, note_text, user_id = parse_trigger(payload)
        return pipeline.process(note_id, note_text, user_id).to_dict()
    except (InvalidTriggerError, StorageError) as e:
        return {"success": False, "error": str(e)}
