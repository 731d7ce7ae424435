"""
Bear Notes Retrieval - Application Entry Point

FastAPI application exposing keyword and semantic search over the local
Bear database.

Start locally:
    uvicorn bear_notes.main:app --host 127.0.0.1 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from bear_notes import __version__
from bear_notes.api.v1.tools import router as tools_router
from bear_notes.context import app_context
from bear_notes.core.config import settings
from bear_notes.core.errors import NoteStoreError
from bear_notes.core.logging import setup_logging

# Initialize logging before any log statements
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Opens the Bear database read-only (required, blocks startup on failure)
        - Loads the embedding model and the persisted index (optional,
          degrades to keyword-only search)

    Shutdown:
        - Releases the model and disposes the engine
    """
    logger.info("Starting %s...", settings.PROJECT_NAME)
    logger.info("Database: %s", settings.BEAR_DATABASE_PATH)

    try:
        async with app_context(settings) as ctx:
            app.state.retrieval = ctx.retrieval
            yield  # Application runs here
    except NoteStoreError:
        logger.critical("Could not open the Bear database. Shutting down.")
        raise

    logger.info("Shutting down %s...", settings.PROJECT_NAME)


app = FastAPI(title=settings.PROJECT_NAME, version=__version__, lifespan=lifespan)

app.include_router(tools_router, prefix="/api/v1/tools", tags=["Tools"])


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """Liveness plus the current search capability."""
    return {
        "status": "ok",
        "service": "bear-notes-retrieval",
        "search": str(request.app.state.retrieval.capability),
    }
