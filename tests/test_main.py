"""
Main Application Tests

Health and tool endpoints through FastAPI's TestClient. The lifespan's
context factory is patched to point at the test database and the fake
embedding model.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from bear_notes.context import AppContext
from bear_notes.core.config import settings
from bear_notes.core.database import create_engine, create_session_factory
from bear_notes.core.errors import NoteStoreError
from bear_notes.main import app
from bear_notes.repositories.notes import NoteStore
from bear_notes.services.retrieval import RetrievalService


@pytest.fixture
def context_factory(bear_db, index_path: Path, provider_factory):
    """Replacement for ``app_context`` wired to the test database."""

    def make(**provider_options):
        @asynccontextmanager
        async def factory(config, **kwargs):
            engine = create_engine(bear_db.path)
            provider = provider_factory(**provider_options)
            retrieval = RetrievalService(
                NoteStore(create_session_factory(engine)), provider, index_path
            )
            await retrieval.startup()
            try:
                yield AppContext(engine=engine, provider=provider, retrieval=retrieval)
            finally:
                await engine.dispose()

        return factory

    return make


def test_health_check(context_factory):
    """Health reports liveness and the degraded search mode."""
    with patch("bear_notes.main.app_context", context_factory()):
        with TestClient(app) as client:
            response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "bear-notes-retrieval"
    assert data["search"] == "keyword-only"


def test_tool_listing_and_calls(context_factory):
    with patch("bear_notes.main.app_context", context_factory()):
        with TestClient(app) as client:
            names = [t["name"] for t in client.get("/api/v1/tools/").json()]
            assert "retrieve_for_context" not in names

            search = client.post("/api/v1/tools/search", json={"query": "Project"})
            assert search.status_code == 200
            assert search.json()["strategy"] == "keyword"
            assert search.json()["data"][0]["title"] == "Project Plan"

            reindex = client.post("/api/v1/tools/reindex")
            assert reindex.json()["data"] == {"notes_indexed": 2}

            names = [t["name"] for t in client.get("/api/v1/tools/").json()]
            assert "retrieve_for_context" in names

            context = client.post(
                "/api/v1/tools/retrieve_for_context", json={"query": "groceries milk"}
            )
            assert context.json()["ok"] is True
            assert client.get("/health").json()["search"] == "semantic-ready"


def test_tool_failures_are_results(context_factory):
    with patch(
        "bear_notes.main.app_context",
        context_factory(load_error=OSError("no model")),
    ):
        with TestClient(app) as client:
            missing = client.post("/api/v1/tools/get_note", json={"id": "missing"})
            bad = client.post("/api/v1/tools/search", json={"limit": 3})
            context = client.post(
                "/api/v1/tools/retrieve_for_context", json={"query": "x"}
            )

    assert missing.status_code == 200
    assert missing.json()["ok"] is False
    assert bad.json()["message"] == "Invalid arguments"
    assert context.json()["message"] == "Semantic search unavailable"


def test_unknown_tool_is_404(context_factory):
    with patch("bear_notes.main.app_context", context_factory()):
        with TestClient(app) as client:
            response = client.post("/api/v1/tools/delete_everything", json={})

    assert response.status_code == 404


def test_missing_database_is_fatal(tmp_path: Path):
    """The real context refuses to start without a Bear database."""
    with patch.object(
        settings,
        "BEAR_DATABASE_PATH",
        tmp_path / "missing.sqlite",
    ):
        with pytest.raises(NoteStoreError):
            with TestClient(app):
                pass
