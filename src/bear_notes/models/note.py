"""
Bear Note Models

Mappings of the Core Data tables Bear uses for notes and tags.
Table and column names are fixed by Bear; attribute names are ours.

Tables:
    ZSFNOTE    - notes, one row per note (trashed notes included).
    ZSFNOTETAG - tags, keyed by name.
    Z_5TAGS    - many-to-many join between notes and tags.
"""

from __future__ import annotations

from sqlalchemy import Column, Float, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column

from bear_notes.models.base import Base

note_tags = Table(
    "Z_5TAGS",
    Base.metadata,
    Column("Z_5NOTES", Integer, ForeignKey("ZSFNOTE.Z_PK"), primary_key=True),
    Column("Z_13TAGS", Integer, ForeignKey("ZSFNOTETAG.Z_PK"), primary_key=True),
)


class NoteRecord(Base):
    """
    A Bear note row.

    Attributes:
        pk: Core Data primary key, only used for joins.
        unique_id: Application-assigned identifier exposed to callers.
        title: Note title.
        text: Full Markdown body.
        subtitle: First body line as rendered by Bear (unused by search).
        trashed: 1 when the note is in the trash.
        created: Core Data creation timestamp.
        modified: Core Data modification timestamp.
    """

    __tablename__ = "ZSFNOTE"

    pk: Mapped[int] = mapped_column("Z_PK", Integer, primary_key=True)
    unique_id: Mapped[str] = mapped_column("ZUNIQUEIDENTIFIER", String, unique=True)
    title: Mapped[str | None] = mapped_column("ZTITLE", String, nullable=True)
    text: Mapped[str | None] = mapped_column("ZTEXT", String, nullable=True)
    subtitle: Mapped[str | None] = mapped_column("ZSUBTITLE", String, nullable=True)
    trashed: Mapped[int] = mapped_column("ZTRASHED", Integer, default=0)
    created: Mapped[float | None] = mapped_column("ZCREATIONDATE", Float, nullable=True)
    modified: Mapped[float | None] = mapped_column(
        "ZMODIFICATIONDATE", Float, nullable=True
    )

    def __repr__(self) -> str:
        return f"<NoteRecord(id={self.unique_id!s:.8}, title='{(self.title or '')[:20]}')>"


class TagRecord(Base):
    """A Bear tag row. ``name`` holds the full tag path, e.g. ``work/meetings``."""

    __tablename__ = "ZSFNOTETAG"

    pk: Mapped[int] = mapped_column("Z_PK", Integer, primary_key=True)
    name: Mapped[str] = mapped_column("ZTITLE", String)

    def __repr__(self) -> str:
        return f"<TagRecord(name='{self.name}')>"
