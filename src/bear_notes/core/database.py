"""
Database Layer

Async SQLAlchemy 2.0 access to the Bear SQLite file via aiosqlite.
The database belongs to the Bear app; it is always opened read-only and
this package never issues a write.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from bear_notes.core.config import database_url
from bear_notes.core.errors import NoteStoreError

logger = logging.getLogger(__name__)


def create_engine(path: Path) -> AsyncEngine:
    """Create a read-only async engine for the Bear database at ``path``."""
    engine = create_async_engine(database_url(path), echo=False)
    logger.info("Database engine created: %s (read-only)", path)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``."""
    # expire_on_commit=False: rows stay readable after the session closes
    return async_sessionmaker(engine, expire_on_commit=False)


async def verify_connection(engine: AsyncEngine, path: Path) -> None:
    """
    Check that the database exists and looks like a Bear database.

    Raises:
        NoteStoreError: The file is missing, unreadable or lacks the
            notes table. Without the store nothing can be served, so
            callers treat this as fatal.
    """
    if not path.expanduser().is_file():
        raise NoteStoreError(f"Bear database not found: {path}")

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1 FROM ZSFNOTE LIMIT 1"))
    except SQLAlchemyError as e:
        raise NoteStoreError(f"Cannot read Bear database at {path}: {e}") from e

    logger.info("Database connection verified")
