"""Repositories package."""

from bear_notes.repositories.notes import PARTIAL_MATCH_LIMIT, NoteStore

__all__ = [
    "PARTIAL_MATCH_LIMIT",
    "NoteStore",
]
