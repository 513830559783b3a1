from __future__ import annotations

import asyncio
import json

import pytest
from pydantic_ai.messages import ModelRequest, ModelResponse, TextPart, ToolCallPart, ToolReturnPart

from copilot_ai.agent_core.errors import OperationCancelledError
from copilot_ai.agent_core.runtime.cancellation import CancellationToken
from copilot_ai.agent_core.runtime.tool_loop import ToolCallingLoop, run_tool_calling_loop, seed_messages
from copilot_ai.agent_core.schemas.base import ApiSchema
from copilot_ai.agent_core.schemas.events import StatusEvent, ToolEndEvent, ToolStartEvent
from copilot_ai.agent_core.tools.builtin import calculator_tool, create_ticket_tool
from copilot_ai.agent_core.tools.definitions import ToolDefinition


def _returns(messages):
    return [
        part
        for message in messages
        if isinstance(message, ModelRequest)
        for part in message.parts
        if isinstance(part, ToolReturnPart)
    ]


class _Slow(ApiSchema):
    pass


async def _sleep(_data, _context):
    await asyncio.sleep(5)
    return {}


slow_tool = ToolDefinition(id="slow", name="Slow", input_schema=_Slow, run=_sleep)


@pytest.mark.asyncio
async def test_answer_without_tool_calls_takes_one_step(make_model, make_context, text_response, sink) -> None:
    model = make_model([text_response("Hello!")])

    transcript = await run_tool_calling_loop(
        model=model, tools=[calculator_tool], context=make_context(), system="sys", user_input="hi"
    )

    assert len(transcript) == 2
    assert transcript[-1].parts[0].content == "Hello!"
    assert model.invocations[0]["tools"] == ["calculator"]
    assert sink.events == [StatusEvent(status="thinking", step=1)]


@pytest.mark.asyncio
async def test_tool_results_are_fed_back_to_the_model(make_model, make_context, tool_call, text_response, sink) -> None:
    model = make_model([tool_call("calculator", {"operation": "add", "a": 2, "b": 3}), text_response("5")])

    transcript = await run_tool_calling_loop(
        model=model, tools=[calculator_tool], context=make_context(), system="sys", user_input="2+3?"
    )

    (tool_return,) = _returns(transcript)
    assert json.loads(tool_return.content)["result"] == 5.0
    assert tool_return.tool_call_id == "call-1"
    assert len(model.invocations) == 2
    assert _returns(model.invocations[1]["messages"]) == [tool_return]

    progress = [e for e in sink.events if isinstance(e, (StatusEvent, ToolStartEvent, ToolEndEvent))]
    assert progress == [
        StatusEvent(status="thinking", step=1),
        StatusEvent(status="running", step=1),
        ToolStartEvent(name="calculator", tool_call_id="call-1"),
        ToolEndEvent(name="calculator", ok=True, tool_call_id="call-1"),
        StatusEvent(status="thinking", step=2),
    ]


@pytest.mark.asyncio
async def test_calls_run_sequentially_in_requested_order(make_model, make_context, sink) -> None:
    response = ModelResponse(
        parts=[
            ToolCallPart(tool_name="calculator", args={"operation": "add", "a": 1, "b": 1}, tool_call_id="c1"),
            ToolCallPart(tool_name="calculator", args={"operation": "multiply", "a": 2, "b": 4}, tool_call_id="c2"),
        ]
    )
    model = make_model([response])

    transcript = await run_tool_calling_loop(
        model=model, tools=[calculator_tool], context=make_context(), system="sys", user_input="go"
    )

    assert [json.loads(r.content)["result"] for r in _returns(transcript)] == [2.0, 8.0]
    assert [e.tool_call_id for e in sink.of_type("tool_start")] == ["c1", "c2"]


@pytest.mark.asyncio
async def test_unknown_tool_reports_not_found(make_model, make_context, tool_call, sink) -> None:
    model = make_model([tool_call("rm-rf", {})])

    transcript = await run_tool_calling_loop(
        model=model, tools=[calculator_tool], context=make_context(), system="sys", user_input="go"
    )

    payload = json.loads(_returns(transcript)[0].content)
    assert payload["reason"] == "NOT_FOUND"
    assert sink.of_type("tool_end")[0].reason == "not_found"
    assert sink.of_type("tool_invocation_start") == []


@pytest.mark.asyncio
async def test_confirmation_tool_is_never_executed_inline(make_model, make_context, tool_call, sink) -> None:
    model = make_model([tool_call("create-ticket", {"title": "t", "description": "d"})])

    transcript = await run_tool_calling_loop(
        model=model, tools=[create_ticket_tool], context=make_context(), system="sys", user_input="go"
    )

    assert json.loads(_returns(transcript)[0].content)["reason"] == "CONFIRMATION_REQUIRED"
    assert sink.of_type("tool_invocation_start") == []


@pytest.mark.asyncio
async def test_malformed_json_arguments_report_validation_error(make_model, make_context, tool_call) -> None:
    model = make_model([tool_call("calculator", '{"operation": ')])

    transcript = await run_tool_calling_loop(
        model=model, tools=[calculator_tool], context=make_context(), system="sys", user_input="go"
    )

    assert json.loads(_returns(transcript)[0].content)["reason"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_step_budget_bounds_model_invocations(make_model, make_context, tool_call) -> None:
    model = make_model([tool_call("calculator", {"operation": "add", "a": 1, "b": 1}, f"c{i}") for i in range(10)])

    transcript = await run_tool_calling_loop(
        model=model, tools=[calculator_tool], context=make_context(), system="sys", user_input="loop", max_steps=3
    )

    assert len(model.invocations) == 3
    assert len(_returns(transcript)) == 3


@pytest.mark.asyncio
async def test_slow_tool_times_out_without_failing_the_loop(make_model, make_context, tool_call, text_response) -> None:
    model = make_model([tool_call("slow"), text_response("gave up")])

    transcript = await run_tool_calling_loop(
        model=model,
        tools=[slow_tool],
        context=make_context(),
        system="sys",
        user_input="go",
        tool_timeout_seconds=0.01,
    )

    assert json.loads(_returns(transcript)[0].content)["reason"] == "TIMEOUT"
    assert transcript[-1].parts[0].content == "gave up"


@pytest.mark.asyncio
async def test_timeout_does_not_affect_sibling_call(make_model, make_context) -> None:
    response = ModelResponse(
        parts=[
            ToolCallPart(tool_name="slow", args={}, tool_call_id="c1"),
            ToolCallPart(tool_name="calculator", args={"operation": "add", "a": 2, "b": 2}, tool_call_id="c2"),
        ]
    )
    model = make_model([response])

    transcript = await run_tool_calling_loop(
        model=model,
        tools=[slow_tool, calculator_tool],
        context=make_context(),
        system="sys",
        user_input="go",
        tool_timeout_seconds=0.01,
    )

    slow, calc = (json.loads(r.content) for r in _returns(transcript))
    assert slow["reason"] == "TIMEOUT"
    assert calc["result"] == 4.0


@pytest.mark.asyncio
async def test_cancelled_run_stops_before_next_tool(make_model, make_context, tool_call) -> None:
    token = CancellationToken()
    token.cancel("client went away")
    model = make_model([tool_call("calculator", {"operation": "add", "a": 1, "b": 1})])

    with pytest.raises(OperationCancelledError):
        await run_tool_calling_loop(
            model=model, tools=[calculator_tool], context=make_context(cancel=token), system="sys", user_input="go"
        )
    assert model.invocations == []


@pytest.mark.asyncio
async def test_model_failure_propagates(make_context) -> None:
    class _Broken:
        async def invoke(self, messages, *, tools=None):
            raise RuntimeError("provider down")

    with pytest.raises(RuntimeError, match="provider down"):
        await ToolCallingLoop(model=_Broken(), tools=[], context=make_context()).run("sys", "hi")


def test_max_steps_must_be_positive(make_model, make_context) -> None:
    with pytest.raises(ValueError):
        ToolCallingLoop(model=make_model(), tools=[], context=make_context(), max_steps=0)


def test_seed_messages_holds_system_and_user_prompt() -> None:
    (request,) = seed_messages("be nice", "hello")

    assert [part.content for part in request.parts] == ["be nice", "hello"]
    assert [part.part_kind for part in request.parts] == ["system-prompt", "user-prompt"]


@pytest.mark.asyncio
async def test_text_only_answer_is_last_message(make_model, make_context) -> None:
    model = make_model([ModelResponse(parts=[TextPart(content="plain")])])

    transcript = await ToolCallingLoop(model=model, tools=[], context=make_context()).run("sys", "hi")

    assert model.invocations[0]["tools"] == []
    assert isinstance(transcript[-1], ModelResponse)
