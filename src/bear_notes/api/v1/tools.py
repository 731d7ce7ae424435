"""
Tools API Router

HTTP surface for the retrieval tools.

Endpoints:
    GET  /          - Tools callable right now, with JSON input schemas.
    POST /{name}    - Run a tool; the JSON body holds its arguments.

Tool failures are returned as ``ToolResult`` with ``ok=false`` and a 200
status; only an unknown tool name is an HTTP error (404).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from bear_notes.services.retrieval import RetrievalService
from bear_notes.services.tools import (
    ToolName,
    ToolResult,
    ToolSpec,
    available_tools,
    dispatch,
)

router = APIRouter()


def get_retrieval(request: Request) -> RetrievalService:
    """FastAPI dependency - the service created by the lifespan handler."""
    return request.app.state.retrieval


@router.get("/", response_model=list[ToolSpec], summary="List available tools")
async def list_tools(
    service: RetrievalService = Depends(get_retrieval),
) -> list[ToolSpec]:
    return available_tools(service)


@router.post("/{name}", response_model=ToolResult, summary="Call a tool")
async def call_tool(
    name: str,
    arguments: dict[str, Any] | None = Body(default=None),
    service: RetrievalService = Depends(get_retrieval),
) -> ToolResult:
    """
    Run tool ``name`` with the JSON body as arguments.

    ``retrieve_for_context`` is callable even when it is not listed; it then
    reports that semantic search is unavailable.
    """
    try:
        tool = ToolName(name)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Tool not found: {name}"
        ) from None

    return await dispatch(service, tool, arguments)
