"""Models package - SQLAlchemy mappings of the Bear database tables."""

from bear_notes.models.base import Base
from bear_notes.models.note import NoteRecord, TagRecord, note_tags

__all__ = [
    "Base",
    "NoteRecord",
    "TagRecord",
    "note_tags",
]
