"""
Tool Dispatch

The closed set of operations offered to a tool-invoking client, their
argument schemas, and the dispatcher that runs them against a
``RetrievalService``.

Every per-request failure (bad arguments, unknown note, semantic search not
ready, unexpected errors) comes back as a ``ToolResult`` with ``ok=False``.
Nothing raised by a single request escapes ``dispatch``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from bear_notes.core.errors import (
    BearNotesError,
    NoteNotFoundError,
    SemanticSearchUnavailableError,
)
from bear_notes.schemas.notes import (
    FindByPartialArguments,
    GetNoteArguments,
    NoArguments,
    RetrieveForContextArguments,
    SearchArguments,
    SearchStrategy,
    ToolArguments,
)
from bear_notes.services.retrieval import RetrievalService

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 200


class ToolName(StrEnum):
    SEARCH = "search"
    GET_NOTE = "get_note"
    GET_TAGS = "get_tags"
    FIND_BY_PARTIAL = "find_by_partial"
    REINDEX = "reindex"
    RETRIEVE_FOR_CONTEXT = "retrieve_for_context"


TOOL_ARGUMENTS: dict[ToolName, type[ToolArguments]] = {
    ToolName.SEARCH: SearchArguments,
    ToolName.GET_NOTE: GetNoteArguments,
    ToolName.GET_TAGS: NoArguments,
    ToolName.FIND_BY_PARTIAL: FindByPartialArguments,
    ToolName.REINDEX: NoArguments,
    ToolName.RETRIEVE_FOR_CONTEXT: RetrieveForContextArguments,
}

TOOL_DESCRIPTIONS: dict[ToolName, str] = {
    ToolName.SEARCH: "Search for notes in Bear that match a query",
    ToolName.GET_NOTE: "Retrieve a specific note by its ID",
    ToolName.GET_TAGS: "Get all tags used in Bear notes",
    ToolName.FIND_BY_PARTIAL: (
        "Find a note by partial ID or title fragment when you only have part of the UUID"
    ),
    ToolName.REINDEX: "Re-index all notes to update the vector search index",
    ToolName.RETRIEVE_FOR_CONTEXT: (
        "Retrieve notes that are semantically similar to a query, with scores, "
        "for use as context"
    ),
}


class ToolSpec(BaseModel):
    """Declaration of one tool for clients that list capabilities."""

    name: ToolName
    description: str
    input_schema: dict[str, Any]


class ToolResult(BaseModel):
    """Outcome of a single tool call."""

    tool: ToolName
    ok: bool
    message: str = Field(description="Human-readable summary")
    strategy: SearchStrategy | None = Field(
        default=None,
        description="Search strategy used (search only)",
    )
    data: Any = None
    error: str | None = None


def available_tools(service: RetrievalService) -> list[ToolSpec]:
    """
    Tools the client may call right now.

    ``retrieve_for_context`` is only offered once semantic search is ready.
    """
    return [
        ToolSpec(
            name=name,
            description=TOOL_DESCRIPTIONS[name],
            input_schema=TOOL_ARGUMENTS[name].model_json_schema(),
        )
        for name in ToolName
        if name is not ToolName.RETRIEVE_FOR_CONTEXT or service.semantic_ready
    ]


async def dispatch(
    service: RetrievalService,
    name: ToolName,
    arguments: Mapping[str, Any] | None = None,
) -> ToolResult:
    """Validate ``arguments`` for tool ``name`` and run it."""
    try:
        args = TOOL_ARGUMENTS[name].model_validate(dict(arguments or {}))
    except ValidationError as e:
        return _failure(name, "Invalid arguments", _validation_summary(e))

    try:
        return await _run(service, name, args)
    except NoteNotFoundError as e:
        return _failure(name, "Note not found", str(e))
    except SemanticSearchUnavailableError as e:
        return _failure(name, "Semantic search unavailable", str(e))
    except BearNotesError as e:
        logger.warning("Tool %s failed: %s", name, e)
        return _failure(name, f"{name} failed", str(e))
    except Exception as e:
        logger.exception("Unexpected error in tool %s", name)
        return _failure(name, f"{name} failed", str(e))


async def _run(service: RetrievalService, name: ToolName, args: ToolArguments) -> ToolResult:
    match name, args:
        case ToolName.SEARCH, SearchArguments() as a:
            outcome = await service.search(a.query, a.limit, a.semantic)
            return ToolResult(
                tool=name,
                ok=True,
                message=(
                    f"Found {len(outcome.notes)} notes using {outcome.strategy} search"
                ),
                strategy=outcome.strategy,
                data=[n.model_dump(mode="json") for n in outcome.notes],
            )

        case ToolName.GET_NOTE, GetNoteArguments() as a:
            note = await service.get_note(a.id)
            return ToolResult(
                tool=name,
                ok=True,
                message=note.title,
                data=note.model_dump(mode="json"),
            )

        case ToolName.GET_TAGS, NoArguments():
            tags = await service.get_tags()
            return ToolResult(
                tool=name,
                ok=True,
                message=f"Available tags ({len(tags)})",
                data=tags,
            )

        case ToolName.FIND_BY_PARTIAL, FindByPartialArguments() as a:
            notes = await service.find_by_partial(a.partial_id)
            if not notes:
                message = f'No notes found matching partial ID or title: "{a.partial_id}"'
            else:
                message = f'Found {len(notes)} notes matching "{a.partial_id}"'
            return ToolResult(
                tool=name,
                ok=True,
                message=message,
                data=[
                    n.model_dump(mode="json") | {"content": n.preview(PREVIEW_LENGTH)}
                    for n in notes
                ],
            )

        case ToolName.REINDEX, NoArguments():
            count = await service.reindex()
            return ToolResult(
                tool=name,
                ok=True,
                message=f"Successfully re-indexed {count} notes",
                data={"notes_indexed": count},
            )

        case ToolName.RETRIEVE_FOR_CONTEXT, RetrieveForContextArguments() as a:
            scored = await service.retrieve_for_context(a.query, a.limit)
            return ToolResult(
                tool=name,
                ok=True,
                message=f'Retrieved {len(scored)} relevant notes for: "{a.query}"',
                strategy=SearchStrategy.SEMANTIC,
                data=[s.model_dump(mode="json") for s in scored],
            )

        case _:
            raise ValueError(f"No handler for tool {name}")


def _failure(name: ToolName, message: str, error: str) -> ToolResult:
    return ToolResult(tool=name, ok=False, message=message, error=error)


def _validation_summary(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
