#!/usr/bin/env python3
"""
Build Index Script

Rebuilds the persisted vector index from every non-trashed Bear note.
Same effect as calling the ``reindex`` tool on a running server.

Usage:
    $ python scripts/build_index.py
    $ BEAR_DATABASE_PATH=/path/to/database.sqlite python scripts/build_index.py
"""

import asyncio
import logging
import os
import sys

# Required for direct script execution without package installation
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from bear_notes.context import app_context
from bear_notes.core.config import settings
from bear_notes.core.errors import BearNotesError
from bear_notes.core.logging import setup_logging

logger = logging.getLogger("bear_notes.scripts.build_index")


async def main() -> int:
    """Load the model, rebuild the index and save it. Returns an exit code."""
    setup_logging()
    logger.info("Starting to create vector index for Bear notes...")

    try:
        async with app_context(settings, startup=False) as ctx:
            if not await ctx.provider.initialize():
                logger.error("Embedding model '%s' could not be loaded", settings.EMBEDDING_MODEL)
                return 1
            count = await ctx.retrieval.reindex()
    except BearNotesError as e:
        logger.error("Indexing failed: %s", e)
        return 1

    logger.info("Indexing complete. Indexed %d notes into %s", count, settings.INDEX_PATH)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
