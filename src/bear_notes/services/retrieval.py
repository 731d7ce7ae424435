"""
Retrieval Orchestrator

Single entry point for the tool layer. Chooses between keyword search over
the note store and semantic search over the vector index, and owns the one
active ``VectorIndex`` reference for the process.

Capability lifecycle::

    UNAVAILABLE --startup()--> INITIALIZING --+--> SEMANTIC_READY
                                              +--> KEYWORD_ONLY

``reindex()`` can promote KEYWORD_ONLY to SEMANTIC_READY. A failed
``reindex()`` never demotes: the previous index and capability stay.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from pathlib import Path

from bear_notes.core.errors import (
    EmbeddingUnavailableError,
    NoteNotFoundError,
    SemanticSearchUnavailableError,
)
from bear_notes.repositories.notes import NoteStore
from bear_notes.schemas.notes import Note, ScoredNote, SearchOutcome, SearchStrategy
from bear_notes.services.embeddings import EmbeddingProvider
from bear_notes.services.vector_index import (
    VectorIndex,
    build_index,
    load_index,
    save_index,
)

logger = logging.getLogger(__name__)


class Capability(StrEnum):
    UNAVAILABLE = "unavailable"
    INITIALIZING = "initializing"
    KEYWORD_ONLY = "keyword-only"
    SEMANTIC_READY = "semantic-ready"


class RetrievalService:
    """
    Keyword and semantic note retrieval.

    Composes the note store, the embedding provider and the vector index.
    All collaborators are passed in, so tests can build isolated instances.

    Usage::

        service = RetrievalService(store, EmbeddingProvider(), index_path)
        await service.startup()
        outcome = await service.search("meeting notes", limit=5)
        print(outcome.strategy, [n.title for n in outcome.notes])
    """

    def __init__(
        self,
        store: NoteStore,
        provider: EmbeddingProvider,
        index_path: Path,
        *,
        build_index_if_missing: bool = False,
    ) -> None:
        self._store = store
        self._provider = provider
        self._index_path = index_path
        self._build_index_if_missing = build_index_if_missing
        self._index: VectorIndex | None = None
        self._capability = Capability.UNAVAILABLE

    @property
    def capability(self) -> Capability:
        return self._capability

    @property
    def semantic_ready(self) -> bool:
        return self._capability is Capability.SEMANTIC_READY

    @property
    def index(self) -> VectorIndex | None:
        """The active index (None until one is loaded or built)."""
        return self._index

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def startup(self) -> Capability:
        """
        Initialize the provider and load the persisted index.

        Both failures degrade to keyword-only search; neither raises.
        """
        self._capability = Capability.INITIALIZING

        if not await self._provider.initialize():
            logger.warning(
                "Embedding model initialization failed, semantic search will not be available"
            )
            self._capability = Capability.KEYWORD_ONLY
            return self._capability

        index = await load_index(
            self._index_path,
            self._provider.model_name,
            self._provider.dimension,
        )
        if index is not None:
            self._index = index
            self._capability = Capability.SEMANTIC_READY
            return self._capability

        self._capability = Capability.KEYWORD_ONLY
        if self._build_index_if_missing:
            logger.info("No usable vector index, building one now")
            try:
                await self.reindex()
            except Exception:
                logger.exception("Initial index build failed")
        else:
            logger.warning(
                "Vector index not found, semantic search will not be available "
                "until the notes are re-indexed"
            )
        return self._capability

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        limit: int = 10,
        semantic: bool = True,
    ) -> SearchOutcome:
        """
        Search notes, semantically when possible.

        Falls back to keyword search when semantic search is not requested
        or not ready. The strategy actually used is part of the outcome.
        """
        if semantic and self.semantic_ready:
            scored = await self._semantic(query, limit)
            return SearchOutcome(
                strategy=SearchStrategy.SEMANTIC,
                notes=[s.note for s in scored],
            )

        notes = await self._store.keyword_search(query, limit)
        return SearchOutcome(strategy=SearchStrategy.KEYWORD, notes=notes)

    async def retrieve_for_context(self, query: str, limit: int = 5) -> list[ScoredNote]:
        """
        Semantically relevant notes with their similarity scores.

        Raises:
            SemanticSearchUnavailableError: No model and index are ready.
                Never falls back to keyword search.
        """
        if not self.semantic_ready:
            raise SemanticSearchUnavailableError(
                "Semantic search is not available; re-index the notes first"
            )
        return await self._semantic(query, limit)

    async def get_note(self, note_id: str) -> Note:
        """Raises NoteNotFoundError for unknown or trashed ids."""
        note = await self._store.find_by_id(note_id)
        if note is None:
            raise NoteNotFoundError(note_id)
        return note

    async def get_tags(self) -> list[str]:
        return await self._store.all_tags()

    async def find_by_partial(self, fragment: str) -> list[Note]:
        return await self._store.find_by_partial(fragment)

    # ------------------------------------------------------------------
    # Index maintenance
    # ------------------------------------------------------------------

    async def reindex(self) -> int:
        """
        Rebuild the index from all notes, persist it, then swap it in.

        Returns:
            Number of notes indexed.

        Raises:
            EmbeddingUnavailableError: The model is not loaded.
            IndexPersistenceError: The new index could not be saved.
            Any failure leaves the active index and capability unchanged.
        """
        if not self._provider.available:
            raise EmbeddingUnavailableError(
                "Cannot re-index: embedding model is not available"
            )

        new_index = await build_index(self._store.iter_indexable(), self._provider)
        await save_index(new_index, self._index_path)

        # Single reference swap; readers see either the old or the new index
        self._index = new_index
        self._capability = Capability.SEMANTIC_READY
        logger.info("Vector index replaced (%d notes)", len(new_index))
        return len(new_index)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _semantic(self, query: str, limit: int) -> list[ScoredNote]:
        index = self._index  # pin one snapshot for the whole request
        if index is None or limit <= 0:
            return []

        query_vector = await self._provider.embed(query)
        hits = index.query(query_vector, limit)

        # Resolve against the live store; notes trashed since the build drop out
        notes = await self._store.find_by_ids([entry.note_id for entry, _ in hits])
        return [
            ScoredNote(note=notes[entry.note_id], score=score)
            for entry, score in hits
            if entry.note_id in notes
        ]
