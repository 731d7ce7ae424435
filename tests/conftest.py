"""
Pytest Configuration and Fixtures

Every test runs against a throwaway SQLite file carrying Bear's schema
(created from the ORM mappings) and a deterministic stand-in embedding
model, so nothing here needs the real Bear app or a model download.
"""

from __future__ import annotations

import re
import zlib
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any

import numpy as np
import pytest
import pytest_asyncio
from sqlalchemy import create_engine, delete, select, text, update
from sqlalchemy.engine import URL
from sqlalchemy.orm import Session

from bear_notes.core.database import create_engine as create_async_ro_engine
from bear_notes.core.database import create_session_factory
from bear_notes.models import Base, NoteRecord, TagRecord, note_tags
from bear_notes.repositories.notes import NoteStore
from bear_notes.services.embeddings import EmbeddingProvider

FAKE_DIMENSION = 64


# ---------------------------------------------------------------------------
# Fake embedding model
# ---------------------------------------------------------------------------


class HashingModel:
    """
    Bag-of-words hashing "model" with the sentence-transformers surface
    used by EmbeddingProvider. Texts sharing words get similar vectors.
    """

    def __init__(self, dimension: int = FAKE_DIMENSION, fail_on: tuple[str, ...] = ()):
        self.dimension = dimension
        self.fail_on = fail_on

    def get_sentence_embedding_dimension(self) -> int:
        return self.dimension

    def encode(self, text: str, normalize_embeddings: bool = True) -> np.ndarray:
        if any(marker in text for marker in self.fail_on):
            raise RuntimeError(f"cannot embed: {text[:20]}")
        vec = np.zeros(self.dimension, dtype=np.float64)
        for token in re.findall(r"\w+", text.lower()):
            vec[zlib.crc32(token.encode()) % self.dimension] += 1.0
        norm = np.linalg.norm(vec)
        if normalize_embeddings and norm > 0:
            vec /= norm
        return vec


class FakeEmbeddingProvider(EmbeddingProvider):
    """EmbeddingProvider whose model load returns a HashingModel."""

    def __init__(
        self,
        model_name: str = "fake-hashing-model",
        dimension: int = FAKE_DIMENSION,
        fail_on: tuple[str, ...] = (),
        load_error: Exception | None = None,
    ) -> None:
        super().__init__(model_name)
        self._fake_dimension = dimension
        self._fail_on = fail_on
        self._load_error = load_error
        self.load_calls = 0

    def _load_model(self) -> Any:
        self.load_calls += 1
        if self._load_error is not None:
            raise self._load_error
        return HashingModel(self._fake_dimension, self._fail_on)


# ---------------------------------------------------------------------------
# Bear database
# ---------------------------------------------------------------------------


class BearDatabase:
    """Writable handle on a test Bear database (tests only; the app is read-only)."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._engine = create_engine(URL.create("sqlite", database=str(path)))
        Base.metadata.create_all(self._engine)
        self._next_pk = 1

    def add_note(
        self,
        unique_id: str,
        title: str,
        text_body: str = "",
        tags: tuple[str, ...] = (),
        created: float | None = 0.0,
        modified: float | None = 0.0,
        trashed: bool = False,
    ) -> None:
        with Session(self._engine) as session:
            note = NoteRecord(
                pk=self._next_pk,
                unique_id=unique_id,
                title=title,
                text=text_body,
                trashed=1 if trashed else 0,
                created=created,
                modified=modified,
            )
            self._next_pk += 1
            session.add(note)
            session.flush()
            for name in tags:
                tag = session.scalars(
                    select(TagRecord).where(TagRecord.name == name)
                ).first()
                if tag is None:
                    tag = TagRecord(name=name)
                    session.add(tag)
                    session.flush()
                session.execute(
                    note_tags.insert().values(Z_5NOTES=note.pk, Z_13TAGS=tag.pk)
                )
            session.commit()

    def trash(self, unique_id: str) -> None:
        with Session(self._engine) as session:
            session.execute(
                update(NoteRecord)
                .where(NoteRecord.unique_id == unique_id)
                .values(trashed=1)
            )
            session.commit()

    def remove(self, unique_id: str) -> None:
        with Session(self._engine) as session:
            session.execute(delete(NoteRecord).where(NoteRecord.unique_id == unique_id))
            session.commit()

    def drop_tag_join(self) -> None:
        with self._engine.begin() as conn:
            conn.execute(text("DROP TABLE Z_5TAGS"))

    def dispose(self) -> None:
        self._engine.dispose()


def seeded_bear_database(path: Path) -> BearDatabase:
    """
    Bear database at ``path`` seeded with the reference corpus:

        A  "Project Plan"    tag work    modified 200
        B  "Grocery List"    tag home    modified 100
        C  "Project Secret"  tag secret  trashed
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    db = BearDatabase(path)
    db.add_note(
        "AAAA-1111-PROJECT",
        "Project Plan",
        "Milestones for the quarterly roadmap and launch schedule.",
        tags=("work",),
        created=100.0,
        modified=200.0,
    )
    db.add_note(
        "BBBB-2222-GROCERY",
        "Grocery List",
        "Milk, eggs, bread and coffee.",
        tags=("home",),
        created=50.0,
        modified=100.0,
    )
    db.add_note(
        "CCCC-3333-SECRET",
        "Project Secret",
        "This one sits in the trash.",
        tags=("secret",),
        created=10.0,
        modified=300.0,
        trashed=True,
    )
    return db


@pytest.fixture
def bear_db(tmp_path: Path) -> BearDatabase:
    db = seeded_bear_database(tmp_path / "database.sqlite")
    yield db
    db.dispose()


@pytest.fixture
def bear_db_at(tmp_path: Path) -> Callable[[str], BearDatabase]:
    """Seed a Bear database under ``tmp_path/<directory>/database.sqlite``."""
    created: list[BearDatabase] = []

    def make(directory: str) -> BearDatabase:
        db = seeded_bear_database(tmp_path / directory / "database.sqlite")
        created.append(db)
        return db

    yield make
    for db in created:
        db.dispose()


@pytest_asyncio.fixture
async def store(bear_db: BearDatabase) -> AsyncGenerator[NoteStore, None]:
    """Read-only NoteStore over ``bear_db``."""
    engine = create_async_ro_engine(bear_db.path)
    yield NoteStore(create_session_factory(engine))
    await engine.dispose()


@pytest.fixture
def provider_factory() -> Callable[..., FakeEmbeddingProvider]:
    """Build FakeEmbeddingProvider instances with per-test options."""
    return FakeEmbeddingProvider


@pytest.fixture
def index_path(tmp_path: Path) -> Path:
    return tmp_path / "index" / "note_vectors.json"
