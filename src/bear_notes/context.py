"""
Application Context

Builds the process-wide collaborators (database engine, embedding provider,
retrieval service) from settings and tears them down again. Used by the
HTTP lifespan handler and by the index build script.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from bear_notes.core.config import Settings
from bear_notes.core.database import (
    create_engine,
    create_session_factory,
    verify_connection,
)
from bear_notes.repositories.notes import NoteStore
from bear_notes.services.embeddings import EmbeddingProvider
from bear_notes.services.retrieval import RetrievalService

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    engine: AsyncEngine
    provider: EmbeddingProvider
    retrieval: RetrievalService


@asynccontextmanager
async def app_context(config: Settings, *, startup: bool = True) -> AsyncIterator[AppContext]:
    """
    Open the note store and wire up retrieval.

    Args:
        config: Application settings.
        startup: Run ``RetrievalService.startup()`` (model load + index load)
            before yielding.

    Raises:
        NoteStoreError: The Bear database cannot be opened. Fatal.
    """
    engine = create_engine(config.BEAR_DATABASE_PATH)
    try:
        await verify_connection(engine, config.BEAR_DATABASE_PATH)
    except Exception:
        await engine.dispose()
        raise

    provider = EmbeddingProvider(config.EMBEDDING_MODEL)
    retrieval = RetrievalService(
        NoteStore(create_session_factory(engine)),
        provider,
        config.INDEX_PATH,
        build_index_if_missing=config.BUILD_INDEX_IF_MISSING,
    )
    try:
        if startup:
            capability = await retrieval.startup()
            logger.info("Retrieval ready (%s)", capability)
        yield AppContext(engine=engine, provider=provider, retrieval=retrieval)
    finally:
        provider.reset()
        await engine.dispose()
        logger.info("Database engine disposed")
