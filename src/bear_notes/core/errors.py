"""
Error Types

Exception hierarchy for the retrieval engine.

    BearNotesError (base)
    ├── NoteStoreError - note database cannot be opened or queried
    ├── NoteNotFoundError - no visible note with the requested identifier
    ├── EmbeddingError - a single embedding call failed
    │   └── EmbeddingUnavailableError - model never initialized
    ├── SemanticSearchUnavailableError - no usable model + index pair
    └── IndexPersistenceError - index file could not be written

System-wide failures (store, model, index load) are resolved at startup into
a capability flag; the rest are raised per request and turned into
structured results by ``bear_notes.services.tools``.
"""

from __future__ import annotations


class BearNotesError(Exception):
    """Base class for all errors raised by this package."""


class NoteStoreError(BearNotesError):
    """The note database is missing, unreadable or not a Bear database."""


class NoteNotFoundError(BearNotesError):
    """Raised when a note id does not resolve to a non-trashed note."""

    def __init__(self, note_id: str) -> None:
        super().__init__(f"Note not found: {note_id}")
        self.note_id = note_id


class EmbeddingError(BearNotesError):
    """Embedding generation failed for one input."""


class EmbeddingUnavailableError(EmbeddingError):
    """The embedding model is not loaded; calls fail fast."""


class SemanticSearchUnavailableError(BearNotesError):
    """Semantic search was requested but no model and index are ready."""


class IndexPersistenceError(BearNotesError):
    """The vector index could not be written to disk."""
