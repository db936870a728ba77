"""Fire-and-forget dispatch of note classification jobs.

The note-creation flow calls ``submit`` right after a note is saved and moves
on; the job runs on a worker thread with its own database connection, and any
failure is logged and turned into a failure response instead of propagating.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from noteimpact.classification.classifier import NoteClassifier
from noteimpact.classification.models import ActionNote
from noteimpact.config import Config
from noteimpact.pipeline import ImpactPipeline, handle_trigger
from noteimpact.storage.db import get_connection
from noteimpact.storage.repository import ImpactRepository

logger = logging.getLogger(__name__)


class NoteImpactDispatcher:
    """Runs the impact pipeline for new notes on a background thread pool."""

    def __init__(
        self,
        db_path: Path,
        classifier: NoteClassifier,
        max_workers: int = 4,
    ) -> None:
        self._db_path = db_path
        self._classifier = classifier
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="noteimpact"
        )

    @classmethod
    def from_config(cls, config: Config) -> NoteImpactDispatcher:
        classifier = NoteClassifier(
            config.make_client(), config.model, timeout=config.classify_timeout
        )
        return cls(config.db_path, classifier, max_workers=config.max_workers)

    def submit(self, note_id: str, note_text: str, user_id: str) -> Future:
        """Queue a note for classification and return without waiting."""
        payload = {"note_id": note_id, "note_text": note_text, "user_id": user_id}
        return self.submit_payload(payload)

    def submit_note(self, note: ActionNote) -> Future:
        """Queue a freshly saved note for classification."""
        return self.submit(note.id, note.content, note.user_id)

    def submit_payload(self, payload: dict) -> Future:
        return self._executor.submit(self._run, dict(payload))

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> NoteImpactDispatcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown(wait=True)

    def _run(self, payload: dict) -> dict:
        note_id = payload.get("note_id")
        try:
            conn = get_connection(self._db_path)
        except Exception as e:
            logger.exception(f"Could not open database for note {note_id}")
            return {"success": False, "error": str(e)}

        try:
            pipeline = ImpactPipeline(self._classifier, ImpactRepository(conn))
            response = handle_trigger(payload, pipeline)
        except Exception as e:
            logger.exception(f"Impact classification crashed for note {note_id}")
            return {"success": False, "error": str(e)}
        finally:
            conn.close()

        if not response["success"]:
            logger.error(f"Impact classification failed for note {note_id}: {response['error']}")
        return response
