"""Exception types raised by noteimpact."""

from __future__ import annotations


class NoteImpactError(Exception):
    """Base class for noteimpact errors."""


class StorageError(NoteImpactError):
    """An impact record could not be written to or read from the database."""


class InvalidTriggerError(NoteImpactError):
    """A trigger payload is missing note_id, note text or user_id."""
