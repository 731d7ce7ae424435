"""
Note Schemas

Pydantic models for the notes returned to callers and for the arguments of
each exposed tool operation.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Note(BaseModel):
    """A visible (non-trashed) note with its resolved tags."""

    id: str = Field(description="Bear unique identifier")
    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Full Markdown body")
    tags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    modified_at: datetime | None = None

    model_config = ConfigDict(frozen=True)

    def preview(self, length: int = 200) -> str:
        """Body truncated to ``length`` characters for display."""
        if len(self.content) <= length:
            return self.content
        return self.content[:length] + "..."


class ScoredNote(BaseModel):
    """A note retrieved for context, with its cosine similarity to the query."""

    note: Note
    score: float = Field(ge=-1.0, le=1.0)


class IndexableNote(BaseModel):
    """Minimal note projection streamed to the index rebuild."""

    id: str
    title: str = ""
    content: str = ""
    created_at: datetime | None = None
    modified_at: datetime | None = None

    @property
    def embedding_text(self) -> str:
        return f"{self.title} {self.content}"


class SearchStrategy(StrEnum):
    KEYWORD = "keyword"
    SEMANTIC = "semantic"


class SearchOutcome(BaseModel):
    """Search results plus the strategy that produced them."""

    strategy: SearchStrategy
    notes: list[Note]


# ---------------------------------------------------------------------------
# Tool arguments
# ---------------------------------------------------------------------------


class ToolArguments(BaseModel):
    """Base for tool argument models; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")


class SearchArguments(ToolArguments):
    query: str = Field(..., min_length=1, description="Search query")
    limit: int = Field(default=10, ge=0, description="Maximum number of results")
    semantic: bool = Field(default=True, description="Prefer semantic search")


class GetNoteArguments(ToolArguments):
    id: str = Field(..., min_length=1, description="Unique identifier of the note")


class FindByPartialArguments(ToolArguments):
    partial_id: str = Field(
        ...,
        min_length=1,
        description="Partial ID or title fragment to search for",
    )


class RetrieveForContextArguments(ToolArguments):
    query: str = Field(..., min_length=1, description="Query to find relevant notes")
    limit: int = Field(default=5, ge=0, description="Maximum number of notes")


class NoArguments(ToolArguments):
    pass
