from __future__ import annotations

import json

import pytest
from pydantic_ai.messages import ModelRequest, ToolReturnPart

from copilot_ai.agent_core.abstraction.base import StaticDocumentSearch
from copilot_ai.agent_core.agents.monorepo_rag import (
    Citation,
    GroundedAnswer,
    MonorepoAgent,
    MonorepoAgentOutput,
    extract_citations,
)
from copilot_ai.agent_core.errors import GroundingRequiredError
from copilot_ai.agent_core.tools.builtin import make_search_docs_tool
from copilot_ai.agent_core.tools.registry import ToolRegistry


@pytest.fixture
def registry() -> ToolRegistry:
    search = StaticDocumentSearch(
        [
            {"doc_id": "ci", "chunk_id": "ci-2", "title": "CI", "content": "Builds run on every push to main."},
            {"doc_id": "ci", "chunk_id": "ci-3", "title": "CI caching", "content": "Builds cache node modules."},
        ]
    )
    reg = ToolRegistry()
    reg.register(make_search_docs_tool(search))
    reg.set_allowlist("monorepo-rag", ["search-docs"])
    return reg


@pytest.mark.asyncio
async def test_grounded_answer_carries_citations_from_search(
    make_model, make_context, model_factory_for, tool_call, text_response, registry
) -> None:
    model = make_model(
        [tool_call("search-docs", {"query": "builds", "limit": 5}), text_response("Builds run on push [ci#ci-2]")],
        extracted={"answer": "Builds run on every push.", "confidence": 0.9},
    )
    agent = MonorepoAgent(model_factory=model_factory_for(model))

    output = await agent.run({"question": "When do builds run?"}, make_context(tool_registry=registry))

    assert isinstance(output, MonorepoAgentOutput)
    assert output.answer == "Builds run on every push."
    assert output.confidence == 0.9
    assert [(c.doc_id, c.chunk_id) for c in output.citations] == [("ci", "ci-2"), ("ci", "ci-3")]
    assert model.extractions[0]["output_type"] is GroundedAnswer
    assert model.extractions[0]["strict"] is False


@pytest.mark.asyncio
async def test_answer_without_search_is_rejected(make_model, make_context, model_factory_for, text_response, registry) -> None:
    model = make_model([text_response("From memory: builds run nightly.")], extracted={"answer": "x", "confidence": 1})
    agent = MonorepoAgent(model_factory=model_factory_for(model))

    with pytest.raises(GroundingRequiredError) as exc_info:
        await agent.run({"question": "When do builds run?"}, make_context(tool_registry=registry))
    assert exc_info.value.code == "GROUNDING_REQUIRED"
    assert model.extractions == []


@pytest.mark.asyncio
async def test_empty_search_still_counts_as_grounded(make_model, make_context, model_factory_for, tool_call, registry) -> None:
    model = make_model([tool_call("search-docs", {"query": "kubernetes"})], extracted={"answer": "Nothing found.", "confidence": 0})

    output = await MonorepoAgent(model_factory=model_factory_for(model)).run(
        {"question": "kubernetes?"}, make_context(tool_registry=registry)
    )

    assert output.citations == []
    assert output.confidence == 0


@pytest.mark.asyncio
async def test_search_that_never_ran_is_not_grounding(make_model, make_context, model_factory_for, tool_call) -> None:
    unlisted = ToolRegistry()
    unlisted.register(make_search_docs_tool(StaticDocumentSearch([])))
    model = make_model(
        [tool_call("search-docs", {"query": "builds"})], extracted={"answer": "Builds run nightly.", "confidence": 1}
    )

    with pytest.raises(GroundingRequiredError):
        await MonorepoAgent(model_factory=model_factory_for(model)).run(
            {"question": "When do builds run?"}, make_context(tool_registry=unlisted)
        )
    assert model.extractions == []


@pytest.mark.asyncio
async def test_system_prompt_names_query_and_limit(make_model, make_context, model_factory_for, registry) -> None:
    model = make_model()
    agent = MonorepoAgent(model_factory=model_factory_for(model))

    with pytest.raises(GroundingRequiredError):
        await agent.run({"question": "Where is CI?", "limit": 2}, make_context(tool_registry=registry))

    system = model.invocations[0]["messages"][0].parts[0].content
    assert 'Call search-docs with query="Where is CI?" and limit=2.' in system


def test_extract_citations_skips_malformed_results() -> None:
    payload = {
        "results": [
            {"docId": "a", "chunkId": "a-1", "snippet": "ok"},
            {"docId": "b", "snippet": "missing chunk"},
            "garbage",
        ]
    }
    messages = [
        ModelRequest(
            parts=[
                ToolReturnPart(tool_name="search-docs", content=json.dumps(payload), tool_call_id="1"),
                ToolReturnPart(tool_name="search-docs", content="not json", tool_call_id="2"),
                ToolReturnPart(tool_name="calculator", content=json.dumps(payload), tool_call_id="3"),
            ]
        )
    ]

    citations, called = extract_citations(messages)

    assert called is True
    assert citations == [Citation(doc_id="a", chunk_id="a-1", snippet="ok")]


def test_extract_citations_reports_missing_search() -> None:
    assert extract_citations([]) == ([], False)


@pytest.mark.parametrize("reason", ["NOT_FOUND", "PERMISSION_DENIED", "TIMEOUT", "CONFIRMATION_REQUIRED"])
def test_extract_citations_ignores_failed_searches(reason) -> None:
    failed = {"ok": False, "reason": reason, "message": "Tool call failed"}
    messages = [
        ModelRequest(parts=[ToolReturnPart(tool_name="search-docs", content=json.dumps(failed), tool_call_id="1")])
    ]

    assert extract_citations(messages) == ([], False)
