"""
Embedding Provider Tests

Initialization, fail-fast behaviour and inference offloading, with the
model load replaced by the hashing stand-in from conftest.
"""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import numpy as np
import pytest

from bear_notes.core.errors import EmbeddingError, EmbeddingUnavailableError
from bear_notes.services.embeddings import DEFAULT_MODEL_NAME, EmbeddingProvider


@pytest.mark.asyncio
async def test_initialize_and_embed(provider_factory) -> None:
    provider = provider_factory(dimension=32)

    assert await provider.initialize() is True
    assert provider.available
    assert provider.dimension == 32

    vector = await provider.embed("hello world")
    assert len(vector) == 32
    assert all(isinstance(v, float) for v in vector)
    assert np.linalg.norm(vector) == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_embed_is_deterministic(provider_factory) -> None:
    provider = provider_factory()
    await provider.initialize()

    first = await provider.embed("Project Plan milestones")
    second = await provider.embed("Project Plan milestones")

    assert first == second


@pytest.mark.asyncio
async def test_concurrent_embeds(provider_factory) -> None:
    provider = provider_factory()
    await provider.initialize()

    texts = [f"note {i}" for i in range(8)]
    vectors = await asyncio.gather(*(provider.embed(t) for t in texts))

    assert vectors == [await provider.embed(t) for t in texts]


@pytest.mark.asyncio
async def test_failed_initialize_is_not_retried(provider_factory) -> None:
    provider = provider_factory(load_error=OSError("model files missing"))

    assert await provider.initialize() is False
    assert await provider.initialize() is False
    assert provider.load_calls == 1
    assert not provider.available


@pytest.mark.asyncio
async def test_embed_fails_fast_when_unavailable(provider_factory) -> None:
    provider = provider_factory(load_error=OSError("model files missing"))
    await provider.initialize()

    with pytest.raises(EmbeddingUnavailableError):
        await provider.embed("anything")
    with pytest.raises(EmbeddingUnavailableError):
        _ = provider.dimension
    assert provider.load_calls == 1


@pytest.mark.asyncio
async def test_embed_before_initialize_raises() -> None:
    provider = EmbeddingProvider()

    assert provider.model_name == DEFAULT_MODEL_NAME
    with pytest.raises(EmbeddingUnavailableError):
        await provider.embed("anything")


@pytest.mark.asyncio
async def test_inference_error_is_wrapped(provider_factory) -> None:
    provider = provider_factory(fail_on=("boom",))
    await provider.initialize()

    with pytest.raises(EmbeddingError, match="Embedding failed") as exc_info:
        await provider.embed("boom goes the note")
    assert not isinstance(exc_info.value, EmbeddingUnavailableError)


@pytest.mark.asyncio
async def test_inference_runs_in_thread(provider_factory) -> None:
    provider = provider_factory()
    await provider.initialize()

    with patch(
        "bear_notes.services.embeddings.asyncio.to_thread",
        wraps=asyncio.to_thread,
    ) as to_thread:
        await provider.embed("offloaded")

    to_thread.assert_called_once()


@pytest.mark.asyncio
async def test_reset_releases_model(provider_factory) -> None:
    provider = provider_factory()
    await provider.initialize()

    provider.reset()

    assert not provider.available
    with pytest.raises(EmbeddingUnavailableError):
        await provider.embed("gone")
