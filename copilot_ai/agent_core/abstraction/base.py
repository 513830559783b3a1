"""External collaborator abstractions.

The runtime consumes two black boxes:

- a ``LanguageModel`` that can answer a conversation, optionally with bound
  function tools, and can extract output conforming to a schema;
- a ``DocumentSearch`` that returns ranked documentation chunks for a query.

Conversations are lists of pydantic-ai ``ModelMessage`` objects: a
``ModelRequest`` carries system/user prompts or tool returns, a
``ModelResponse`` carries the model's text and tool calls.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Protocol, Sequence, Type, TypeVar

from pydantic import BaseModel, Field
from pydantic_ai.messages import ModelMessage, ModelResponse
from pydantic_ai.tools import ToolDefinition as ModelToolDefinition

T = TypeVar("T")


class LanguageModel(ABC):
    """Abstract language model used by agents and the tool-calling loop."""

    @abstractmethod
    async def invoke(
        self,
        messages: Sequence[ModelMessage],
        *,
        tools: Optional[Sequence[ModelToolDefinition]] = None,
    ) -> ModelResponse:
        """Answer the conversation, possibly requesting calls to ``tools``.

        Args:
            messages: Conversation so far.
            tools: Function tools the model may call (none when omitted).

        Returns:
            The model response; tool calls appear as ``ToolCallPart`` parts.
        """

    @abstractmethod
    async def extract(
        self,
        messages: Sequence[ModelMessage],
        *,
        output_type: Type[T],
        strict: bool = False,
    ) -> T:
        """Produce output conforming to ``output_type`` from the conversation.

        Args:
            messages: Full conversation to extract from; never empty.
            output_type: Pydantic model (or type) the output must match.
            strict: Ask the provider for strict JSON-schema conformance.
        """


class DocumentMatch(BaseModel):
    doc_id: str = Field(..., description="Source document identifier")
    chunk_id: str = Field(..., description="Chunk identifier within the document")
    title: str = Field(..., description="Document title or section name")
    snippet: str = Field(..., description="Matched chunk text")
    score: float = Field(..., description="Relevance score, higher is better")


class DocumentSearch(Protocol):
    """Protocol for documentation search backends."""

    async def search(self, query: str, limit: int) -> List[DocumentMatch]: ...


class DocumentChunk(BaseModel):
    doc_id: str
    chunk_id: str
    title: str
    content: str


_WORD = re.compile(r"[a-z0-9]+")


def _terms(text: str) -> set[str]:
    return set(_WORD.findall(text.lower()))


class StaticDocumentSearch:
    """
    In-memory keyword search over a fixed set of chunks.

    Scores each chunk by the share of query terms it contains and returns the
    best ``limit`` chunks with a positive score. Used for development and tests
    in place of a vector index.
    """

    def __init__(self, chunks: Sequence[DocumentChunk | dict[str, Any]] = ()) -> None:
        self._chunks: List[DocumentChunk] = [
            chunk if isinstance(chunk, DocumentChunk) else DocumentChunk.model_validate(chunk) for chunk in chunks
        ]

    def add(self, chunk: DocumentChunk) -> None:
        self._chunks.append(chunk)

    async def search(self, query: str, limit: int) -> List[DocumentMatch]:
        wanted = _terms(query)
        if not wanted:
            return []
        scored = []
        for chunk in self._chunks:
            hits = len(wanted & _terms(f"{chunk.title} {chunk.content}"))
            if hits:
                scored.append((hits / len(wanted), chunk))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [
            DocumentMatch(
                doc_id=chunk.doc_id,
                chunk_id=chunk.chunk_id,
                title=chunk.title,
                snippet=chunk.content,
                score=round(score, 4),
            )
            for score, chunk in scored[:limit]
        ]
