"""
Embedding Provider

Local embedding generation using sentence-transformers.
Default model: all-MiniLM-L6-v2 (384 dimensions, ~22M parameters).

Design choices:
    - Explicit initialization: the model is loaded once by ``initialize()``.
      A failed load is remembered; later ``embed`` calls fail fast instead
      of retrying the download/load.
    - asyncio.to_thread: model loading and inference are CPU-bound and must
      not block the event loop.
    - No per-call state, so concurrent ``embed`` calls are safe.

Pre-download the model for offline use:
    python -c "from sentence_transformers import SentenceTransformer; \\
               SentenceTransformer('all-MiniLM-L6-v2')"
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from bear_notes.core.errors import EmbeddingError, EmbeddingUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME: str = "all-MiniLM-L6-v2"


class EmbeddingProvider:
    """
    Async embedding service backed by a local sentence-transformers model.

    Usage::

        provider = EmbeddingProvider()
        if await provider.initialize():
            vector = await provider.embed("hello world")
            assert len(vector) == provider.dimension
    """

    def __init__(self, model_name: str = DEFAULT_MODEL_NAME) -> None:
        self.model_name = model_name
        self._model: Any = None
        self._dimension: int | None = None
        self._init_attempted = False

    @property
    def available(self) -> bool:
        return self._model is not None

    @property
    def dimension(self) -> int:
        """Output vector length. Only meaningful once initialized."""
        if self._dimension is None:
            raise EmbeddingUnavailableError(
                f"Embedding model '{self.model_name}' is not initialized"
            )
        return self._dimension

    def _load_model(self) -> Any:
        """
        Load the sentence-transformers model (blocking).

        The import is deferred so that ``sentence_transformers`` (and torch)
        are not imported until a model is actually needed.
        """
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer(self.model_name)

    async def initialize(self) -> bool:
        """
        Load the model once.

        Returns:
            True if the model is ready. False if loading failed (missing
            assets, no network for the first download, ...); the failure is
            logged and not retried.
        """
        if self._init_attempted:
            return self.available
        self._init_attempted = True

        logger.info("Loading embedding model: %s ...", self.model_name)
        try:
            model = await asyncio.to_thread(self._load_model)
            dimension = int(model.get_sentence_embedding_dimension())
        except Exception as e:
            logger.warning(
                "Embedding model '%s' failed to load, semantic search disabled: %s",
                self.model_name,
                e,
            )
            return False

        self._model = model
        self._dimension = dimension
        logger.info("Model loaded (dim=%d)", dimension)
        return True

    def _encode_sync(self, text: str) -> list[float]:
        """
        Synchronous single-text encoding.

        Always call via ``asyncio.to_thread``; it blocks for the duration of
        inference.
        """
        embedding = self._model.encode(text, normalize_embeddings=True)
        # numpy ndarray -> native Python list
        result: list[float] = embedding.tolist()
        return result

    async def embed(self, text: str) -> list[float]:
        """
        Embed one text.

        Returns:
            L2-normalized vector of ``dimension`` floats. Deterministic for
            the same text and model.

        Raises:
            EmbeddingUnavailableError: The model is not loaded.
            EmbeddingError: Inference failed for this input.
        """
        if self._model is None:
            raise EmbeddingUnavailableError(
                f"Embedding model '{self.model_name}' is not available"
            )
        try:
            return await asyncio.to_thread(self._encode_sync, text)
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {e}") from e

    def reset(self) -> None:
        """Release the model from memory; the provider becomes unavailable."""
        self._model = None
        self._dimension = None
        logger.info("Embedding model released")
