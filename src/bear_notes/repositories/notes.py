"""
Note Store

Read-only data access over the Bear database. Every query filters out
trashed notes; Core Data timestamps are converted to UTC datetimes on the
way out.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence

from sqlalchemy import ColumnElement, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bear_notes.core.timestamps import from_core_data
from bear_notes.models import NoteRecord, TagRecord, note_tags
from bear_notes.schemas.notes import IndexableNote, Note

logger = logging.getLogger(__name__)

PARTIAL_MATCH_LIMIT = 10


def _visible() -> ColumnElement[bool]:
    """Filter clause selecting non-trashed notes."""
    return func.coalesce(NoteRecord.trashed, 0) == 0


class NoteStore:
    """
    Read-only accessor for Bear notes and tags.

    Holds nothing but a session factory; each call opens and closes its own
    session, so one instance can serve interleaved requests.

    Usage::

        store = NoteStore(create_session_factory(engine))
        notes = await store.keyword_search("project", limit=10)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def find_by_id(self, note_id: str) -> Note | None:
        """Exact identifier lookup. Returns None if missing or trashed."""
        stmt = select(NoteRecord).where(NoteRecord.unique_id == note_id, _visible())
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            record = result.scalars().first()
            if record is None:
                return None
            tags = await self._tags_for(session, record.unique_id)
        return self._to_note(record, tags)

    async def find_by_ids(self, note_ids: Sequence[str]) -> dict[str, Note]:
        """
        Resolve several identifiers at once.

        Returns:
            Mapping of id to Note for the ids that are still visible.
            Callers keep their own ordering.
        """
        if not note_ids:
            return {}
        stmt = select(NoteRecord).where(
            NoteRecord.unique_id.in_(list(note_ids)), _visible()
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            records = result.scalars().all()
            notes = {}
            for record in records:
                tags = await self._tags_for(session, record.unique_id)
                notes[record.unique_id] = self._to_note(record, tags)
        return notes

    async def find_by_partial(self, fragment: str) -> list[Note]:
        """
        Notes whose identifier or title contains ``fragment``.

        Case-insensitive, most recently modified first, at most
        ``PARTIAL_MATCH_LIMIT`` results, each with its tags.
        """
        stmt = (
            select(NoteRecord)
            .where(
                _visible(),
                or_(
                    NoteRecord.unique_id.icontains(fragment, autoescape=True),
                    NoteRecord.title.icontains(fragment, autoescape=True),
                ),
            )
            .order_by(NoteRecord.modified.desc())
            .limit(PARTIAL_MATCH_LIMIT)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            records = result.scalars().all()
            notes = []
            for record in records:
                tags = await self._tags_for(session, record.unique_id)
                notes.append(self._to_note(record, tags))
        return notes

    async def keyword_search(self, query: str, limit: int = 10) -> list[Note]:
        """
        Substring search over title and body.

        Args:
            query: Text to look for (case-insensitive, LIKE wildcards escaped).
            limit: Maximum number of results; ``<= 0`` returns nothing.

        Returns:
            Matching notes, most recently modified first.
        """
        if limit <= 0:
            return []
        stmt = (
            select(NoteRecord)
            .where(
                _visible(),
                or_(
                    NoteRecord.title.icontains(query, autoescape=True),
                    NoteRecord.text.icontains(query, autoescape=True),
                ),
            )
            .order_by(NoteRecord.modified.desc())
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            records = result.scalars().all()
            notes = []
            for record in records:
                tags = await self._tags_for(session, record.unique_id)
                notes.append(self._to_note(record, tags))
        return notes

    async def iter_indexable(self) -> AsyncIterator[IndexableNote]:
        """
        Stream every non-trashed note for an index rebuild.

        Rows are fetched through a server-side cursor, so the corpus is never
        materialized as a whole. Single pass; call again to restart.
        """
        stmt = (
            select(
                NoteRecord.unique_id,
                NoteRecord.title,
                NoteRecord.text,
                NoteRecord.created,
                NoteRecord.modified,
            )
            .where(_visible())
            .order_by(NoteRecord.pk)
        )
        async with self._session_factory() as session:
            result = await session.stream(stmt)
            async for row in result:
                yield IndexableNote(
                    id=row.unique_id,
                    title=row.title or "",
                    content=row.text or "",
                    created_at=from_core_data(row.created),
                    modified_at=from_core_data(row.modified),
                )

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    async def tags_of(self, note_id: str) -> list[str]:
        """Tag names attached to one note, sorted."""
        async with self._session_factory() as session:
            return await self._tags_for(session, note_id)

    async def all_tags(self) -> list[str]:
        """Distinct names of tags used by at least one non-trashed note."""
        stmt = (
            select(TagRecord.name)
            .distinct()
            .join(note_tags, note_tags.c.Z_13TAGS == TagRecord.pk)
            .join(NoteRecord, NoteRecord.pk == note_tags.c.Z_5NOTES)
            .where(_visible(), TagRecord.name.isnot(None))
            .order_by(TagRecord.name)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _tags_for(self, session: AsyncSession, note_id: str) -> list[str]:
        """
        Tag lookup for a single note.

        A broken join only costs this note its tags; the enclosing query
        still succeeds.
        """
        stmt = (
            select(TagRecord.name)
            .join(note_tags, note_tags.c.Z_13TAGS == TagRecord.pk)
            .join(NoteRecord, NoteRecord.pk == note_tags.c.Z_5NOTES)
            .where(NoteRecord.unique_id == note_id, TagRecord.name.isnot(None))
            .order_by(TagRecord.name)
        )
        try:
            result = await session.execute(stmt)
        except SQLAlchemyError as e:
            logger.warning("Tag lookup failed for note %s: %s", note_id, e)
            return []
        return list(result.scalars().all())

    @staticmethod
    def _to_note(record: NoteRecord, tags: list[str]) -> Note:
        return Note(
            id=record.unique_id,
            title=record.title or "",
            content=record.text or "",
            tags=tags,
            created_at=from_core_data(record.created),
            modified_at=from_core_data(record.modified),
        )
