from __future__ import annotations

"""Monorepo documentation agent grounded in ``search-docs`` results.

The agent always runs the tool loop and instructs the model to search the
documentation before answering. ``handle_messages`` enforces that a
successful ``search-docs`` result is present in the conversation; otherwise the run fails
with ``GroundingRequiredError`` instead of returning an ungrounded answer.
Citations are harvested from the tool results rather than from the model, so
they always point at chunks that were actually retrieved.
"""

import json
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import Field
from pydantic_ai.messages import ModelMessage, ModelRequest, ToolReturnPart

from ..abstraction.base import LanguageModel
from ..errors import GroundingRequiredError
from ..runtime.models import AgentContext
from ..schemas.base import ApiSchema
from .base import BaseAgent, MessageSource

AGENT_ID = "monorepo-rag"
SEARCH_TOOL_ID = "search-docs"
DEFAULT_LIMIT = 5


class MonorepoAgentInput(ApiSchema):
    question: str = Field(min_length=1)
    limit: Optional[int] = Field(default=None, ge=1, le=10)


class Citation(ApiSchema):
    doc_id: str
    chunk_id: str
    snippet: str


class MonorepoAgentOutput(ApiSchema):
    answer: str
    citations: List[Citation]
    confidence: float = Field(
        ge=0, le=1, description="Confidence score between 0 and 1, where 1 is highest confidence"
    )


class GroundedAnswer(ApiSchema):
    answer: str
    confidence: float = Field(
        ge=0,
        le=1,
        description="Confidence score between 0 and 1 based on the quality and relevance of the retrieved documentation",
    )


def _tool_returns(messages: Sequence[ModelMessage], tool_name: str) -> List[ToolReturnPart]:
    return [
        part
        for message in messages
        if isinstance(message, ModelRequest)
        for part in message.parts
        if isinstance(part, ToolReturnPart) and part.tool_name == tool_name
    ]


def _as_payload(content: Any) -> Any:
    if isinstance(content, str):
        try:
            return json.loads(content)
        except ValueError:
            return None
    return content


def _search_results(content: Any) -> Optional[List[Any]]:
    """The ``results`` list of a search that actually ran, or None for failed or malformed returns."""
    payload = _as_payload(content)
    if not isinstance(payload, dict) or payload.get("ok") is False:
        return None
    results = payload.get("results")
    return results if isinstance(results, list) else None


def extract_citations(messages: Sequence[ModelMessage]) -> Tuple[List[Citation], bool]:
    """Collect citations from ``search-docs`` results and report whether a search actually ran.

    Returns for calls that were refused or failed (not found, denied, timed
    out, awaiting confirmation) carry no ``results`` and do not count.
    """
    searched = False
    citations: List[Citation] = []
    for part in _tool_returns(messages, SEARCH_TOOL_ID):
        results = _search_results(part.content)
        if results is None:
            continue
        searched = True
        for result in results:
            if not isinstance(result, dict):
                continue
            doc_id, chunk_id, snippet = result.get("docId"), result.get("chunkId"), result.get("snippet")
            if doc_id and chunk_id and snippet:
                citations.append(Citation(doc_id=doc_id, chunk_id=chunk_id, snippet=snippet))
    return citations, searched


class MonorepoAgent(BaseAgent):
    def __init__(self, **kwargs) -> None:
        super().__init__(
            id=AGENT_ID,
            name="Monorepo RAG Copilot",
            input_schema=MonorepoAgentInput,
            output_schema=MonorepoAgentOutput,
            **kwargs,
        )

    def should_use_tool_loop(self, input: MonorepoAgentInput, context: AgentContext) -> bool:
        return True

    def build_system_prompt(self, input: MonorepoAgentInput, context: AgentContext) -> str:
        limit = input.limit or DEFAULT_LIMIT
        return "\n\n".join(
            [
                "You are the Monorepo Documentation Copilot.",
                f"You have access to a {SEARCH_TOOL_ID} tool to find relevant documentation.",
                "",
                "MANDATORY TOOL USAGE:",
                f"You MUST call the {SEARCH_TOOL_ID} tool FIRST before providing any answer.",
                f'Call {SEARCH_TOOL_ID} with query="{input.question}" and limit={limit}.',
                "Wait for the tool results before formulating your response.",
                "Do NOT attempt to answer the question without first retrieving documentation.",
                "",
                "IMPORTANT GROUNDING RULES:",
                "1. Base your answer ONLY on information from the retrieved documentation chunks.",
                "2. Do NOT fabricate, infer, or add information not present in the search results.",
                "3. Always cite sources using the format [docId#chunkId] for every claim you make.",
                "4. If the retrieved documentation doesn't contain enough information to answer the question, "
                "explicitly state what's missing and what you found instead.",
                "5. If the search results are empty or irrelevant, say so clearly rather than attempting to answer "
                "from general knowledge.",
                "",
                "CONFIDENCE SCORING:",
                "Provide a confidence score (0-1) based on:",
                "- How directly the retrieved docs answer the question (1.0 = perfect match, 0.5 = partial, "
                "0.0 = no relevant info)",
                "- The completeness of the information found",
                "- The quality and clarity of the source material",
                "",
                "Your role is to be a reliable documentation assistant, not a general knowledge chatbot.",
            ]
        )

    def build_user_input(self, input: MonorepoAgentInput, context: AgentContext) -> str:
        return input.question

    async def handle_messages(
        self,
        *,
        input: MonorepoAgentInput,
        context: AgentContext,
        model: LanguageModel,
        messages: Sequence[ModelMessage],
        source: MessageSource,
    ) -> MonorepoAgentOutput:
        citations, tool_was_called = extract_citations(messages)
        if not tool_was_called:
            raise GroundingRequiredError(self.id, SEARCH_TOOL_ID)

        grounded = await self.run_structured_extraction(
            schema=GroundedAnswer, messages=messages, model=model, context=context, input=input, strict=False
        )
        return MonorepoAgentOutput(answer=grounded.answer, citations=citations, confidence=grounded.confidence)
