"""
Vector Index

In-memory nearest-neighbour index over note embeddings, with JSON
persistence stamped by embedding model and dimension.

A ``VectorIndex`` is immutable once built. Rebuilding produces a new
instance and the owner swaps its reference, so readers never see a
half-built index.

Similarity is exact cosine over a brute-force numpy scan. That is linear in
the number of notes, which is fine for a personal note collection.
"""

from __future__ import annotations

import asyncio
import heapq
import logging
import os
from collections.abc import AsyncIterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import numpy as np
from pydantic import BaseModel, Field, ValidationError

from bear_notes.core.errors import EmbeddingUnavailableError, IndexPersistenceError
from bear_notes.schemas.notes import IndexableNote
from bear_notes.services.embeddings import EmbeddingProvider

logger = logging.getLogger(__name__)

INDEX_FORMAT_VERSION = 1


@dataclass(frozen=True)
class VectorIndexEntry:
    """One embedded note. ``vector`` length equals the owning index dimension."""

    note_id: str
    title: str
    modified_at: datetime | None
    vector: tuple[float, ...]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine of the angle between two vectors.

    Returns 0.0 when either vector has zero magnitude. Clipped to [-1, 1]
    to absorb floating-point overshoot.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Dimension mismatch: {va.shape} vs {vb.shape}")
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.clip(np.dot(va, vb) / denom, -1.0, 1.0))


def _recency(entry: VectorIndexEntry) -> float:
    if entry.modified_at is None:
        return float("-inf")
    return entry.modified_at.timestamp()


class VectorIndex:
    """
    Immutable collection of ``VectorIndexEntry`` unique by note id.

    Attributes:
        model_name: Embedding model that produced every vector.
        dimension: Shared vector length.
        built_at: When the index was built (UTC).
    """

    def __init__(
        self,
        model_name: str,
        dimension: int,
        entries: Sequence[VectorIndexEntry] = (),
        built_at: datetime | None = None,
    ) -> None:
        ids = [e.note_id for e in entries]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate note ids in vector index")
        for entry in entries:
            if len(entry.vector) != dimension:
                raise ValueError(
                    f"Vector for note {entry.note_id} has length "
                    f"{len(entry.vector)}, expected {dimension}"
                )

        self.model_name = model_name
        self.dimension = dimension
        self.built_at = built_at or datetime.now(UTC)
        self._entries: tuple[VectorIndexEntry, ...] = tuple(entries)

        matrix = np.array(
            [e.vector for e in self._entries], dtype=np.float64
        ).reshape(len(self._entries), dimension)
        matrix.setflags(write=False)
        self._matrix = matrix
        self._norms = np.linalg.norm(matrix, axis=1)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[VectorIndexEntry, ...]:
        return self._entries

    @property
    def note_ids(self) -> frozenset[str]:
        return frozenset(e.note_id for e in self._entries)

    def query(
        self, vector: Sequence[float], k: int
    ) -> list[tuple[VectorIndexEntry, float]]:
        """
        Top-``k`` entries by cosine similarity to ``vector``.

        Args:
            vector: Query embedding from the same model as the index.
            k: Maximum number of hits; ``<= 0`` returns nothing.

        Returns:
            ``(entry, score)`` pairs, highest score first. Equal scores are
            ordered by most recent note modification.

        Raises:
            ValueError: ``vector`` does not have the index dimension.
        """
        q = np.asarray(vector, dtype=np.float64)
        if q.shape != (self.dimension,):
            raise ValueError(
                f"Query vector has shape {q.shape}, index dimension is {self.dimension}"
            )
        if k <= 0 or not self._entries:
            return []

        denom = self._norms * float(np.linalg.norm(q))
        scores = np.divide(
            self._matrix @ q,
            denom,
            out=np.zeros(len(self._entries), dtype=np.float64),
            where=denom > 0,
        )
        scores = np.clip(scores, -1.0, 1.0)

        best = heapq.nsmallest(
            k,
            range(len(self._entries)),
            key=lambda i: (-scores[i], -_recency(self._entries[i])),
        )
        return [(self._entries[i], float(scores[i])) for i in best]


# ---------------------------------------------------------------------------
# Rebuild
# ---------------------------------------------------------------------------


async def build_index(
    notes: AsyncIterable[IndexableNote],
    provider: EmbeddingProvider,
) -> VectorIndex:
    """
    Embed every note into a fresh index.

    Each note is embedded as ``"{title} {content}"``. A note whose embedding
    fails is logged and skipped. If the provider itself is unavailable the
    whole build is aborted by ``EmbeddingUnavailableError``; nothing of the
    partial build escapes.

    Returns:
        The new index. Its length is the number of notes indexed.
    """
    dimension = provider.dimension  # raises when the model is not loaded
    entries: dict[str, VectorIndexEntry] = {}
    skipped = 0

    async for note in notes:
        try:
            vector = await provider.embed(note.embedding_text)
        except EmbeddingUnavailableError:
            raise
        except Exception as e:
            skipped += 1
            logger.warning("Skipping note %s, embedding failed: %s", note.id, e)
            continue

        if len(vector) != dimension:
            skipped += 1
            logger.warning(
                "Skipping note %s, embedding has length %d (expected %d)",
                note.id,
                len(vector),
                dimension,
            )
            continue

        entries[note.id] = VectorIndexEntry(
            note_id=note.id,
            title=note.title,
            modified_at=note.modified_at,
            vector=tuple(vector),
        )

    logger.info("Built vector index: %d notes (%d skipped)", len(entries), skipped)
    return VectorIndex(provider.model_name, dimension, list(entries.values()))


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class PersistedEntry(BaseModel):
    note_id: str
    title: str = ""
    modified_at: datetime | None = None
    vector: list[float]


class PersistedIndex(BaseModel):
    """On-disk layout of a saved index."""

    format_version: int = Field(default=INDEX_FORMAT_VERSION)
    model_name: str
    dimension: int = Field(gt=0)
    built_at: datetime
    entries: list[PersistedEntry] = Field(default_factory=list)


def _write_atomic(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    os.replace(tmp_path, path)


async def save_index(index: VectorIndex, path: Path) -> None:
    """
    Persist ``index`` as JSON at ``path``.

    Written to a sibling temp file and renamed over the target, so a crash
    mid-write leaves the previous file intact.

    Raises:
        IndexPersistenceError: The file could not be written.
    """
    persisted = PersistedIndex(
        model_name=index.model_name,
        dimension=index.dimension,
        built_at=index.built_at,
        entries=[
            PersistedEntry(
                note_id=e.note_id,
                title=e.title,
                modified_at=e.modified_at,
                vector=list(e.vector),
            )
            for e in index.entries
        ],
    )
    payload = persisted.model_dump_json()
    try:
        await asyncio.to_thread(_write_atomic, path, payload)
    except OSError as e:
        raise IndexPersistenceError(f"Cannot write vector index to {path}: {e}") from e
    logger.info("Saved vector index (%d notes) to %s", len(index), path)


async def load_index(path: Path, model_name: str, dimension: int) -> VectorIndex | None:
    """
    Restore a saved index if it is usable with the current model.

    Returns:
        The index, or None when the file is missing, unreadable, corrupt,
        written by another format version, or stamped with a different
        model name or dimension. Never raises.
    """
    try:
        raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except FileNotFoundError:
        logger.info("No vector index at %s", path)
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read vector index %s: %s", path, e)
        return None

    try:
        persisted = PersistedIndex.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("Vector index %s is corrupt: %s", path, e.error_count())
        return None

    if persisted.format_version != INDEX_FORMAT_VERSION:
        logger.warning(
            "Vector index %s has format version %d, expected %d",
            path,
            persisted.format_version,
            INDEX_FORMAT_VERSION,
        )
        return None
    if persisted.model_name != model_name or persisted.dimension != dimension:
        logger.warning(
            "Vector index %s was built with %s (dim=%d), current model is %s (dim=%d)",
            path,
            persisted.model_name,
            persisted.dimension,
            model_name,
            dimension,
        )
        return None

    try:
        index = VectorIndex(
            persisted.model_name,
            persisted.dimension,
            [
                VectorIndexEntry(
                    note_id=e.note_id,
                    title=e.title,
                    modified_at=e.modified_at,
                    vector=tuple(e.vector),
                )
                for e in persisted.entries
            ],
            built_at=persisted.built_at,
        )
    except ValueError as e:
        logger.warning("Vector index %s is inconsistent: %s", path, e)
        return None

    logger.info("Loaded vector index (%d notes) from %s", len(index), path)
    return index
