from __future__ import annotations

"""Bounded tool-calling loop.

``ToolCallingLoop`` drives the conversation between a language model and the
tools an agent is allowed to use.

Execution model
---------------

The loop is a LangGraph state machine over ``_LoopState`` with two nodes:

- ``think``: emit ``status{thinking}``, invoke the model with the whole
  transcript and the bound tools, append the response. A response without tool
  calls ends the loop.
- ``run_tools``: emit ``status{running}`` and execute each requested call in
  the order the model asked for it, one at a time. Every call appends a tool
  return to the transcript, successful or not, and is bracketed by
  ``tool_start`` / ``tool_end`` events.

The model is invoked at most ``max_steps`` times. Unknown tools produce a
``NOT_FOUND`` result and tools that require confirmation produce
``CONFIRMATION_REQUIRED`` without running. Every other call goes through the
``ToolInvocationAdapter`` with its own timeout, so one slow tool never blocks
its siblings.

Failure semantics
-----------------

Per-call failures become tool results the model can react to. A failing or
cancelled model call propagates to the caller; the loop never retries.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from langgraph.graph import END, StateGraph
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    SystemPromptPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)

from ..abstraction.base import LanguageModel
from ..errors import OperationCancelledError
from ..schemas.events import StatusEvent, ToolEndEvent, ToolStartEvent
from ..tools.adapter import DEFAULT_TOOL_TIMEOUT_SECONDS, ToolCallOutcome, ToolErrorReason, ToolInvocationAdapter
from ..tools.definitions import ToolDefinition, tool_requires_confirmation
from .cancellation import run_cancellable
from .events import emit_event
from .models import AgentContext, _LoopState

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 6


def seed_messages(system: str, user_input: str) -> List[ModelMessage]:
    return [ModelRequest(parts=[SystemPromptPart(content=system), UserPromptPart(content=user_input)])]


class ToolCallingLoop:
    """Run the think / run_tools cycle until a final answer or the step budget.

    Args:
        model: Language model to drive.
        tools: Tools the agent is allowed to call in this invocation.
        context: Invocation context (identity, cancellation, event sink).
        max_steps: Maximum number of model invocations.
        tool_timeout_seconds: Budget for each individual tool call.
    """

    def __init__(
        self,
        *,
        model: LanguageModel,
        tools: Sequence[ToolDefinition],
        context: AgentContext,
        max_steps: int = DEFAULT_MAX_STEPS,
        tool_timeout_seconds: float = DEFAULT_TOOL_TIMEOUT_SECONDS,
    ) -> None:
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self._model = model
        self._context = context
        self._max_steps = max_steps
        self._adapters: Dict[str, ToolInvocationAdapter] = {
            tool.id: ToolInvocationAdapter(tool, context, timeout_seconds=tool_timeout_seconds) for tool in tools
        }
        self._model_tools = [adapter.to_model_tool() for adapter in self._adapters.values()]
        self._graph = self._build_graph()

    def _build_graph(self):
        """Build and compile the LangGraph state machine."""
        g: StateGraph = StateGraph(_LoopState)
        g.add_node("think", self._node_think)
        g.add_node("run_tools", self._node_run_tools)

        g.set_entry_point("think")
        g.add_conditional_edges("think", self._route_after_think, {"tools": "run_tools", "finish": END})
        g.add_conditional_edges("run_tools", self._route_after_tools, {"think": "think", "finish": END})
        return g.compile()

    async def run(self, system: str, user_input: str) -> List[ModelMessage]:
        """Execute the loop and return the full transcript.

        The transcript starts with the system/user request and interleaves
        model responses with tool returns.
        """
        state: _LoopState = {"messages": seed_messages(system, user_input), "step": 0, "pending_calls": []}
        final = await self._graph.ainvoke(state, config={"recursion_limit": self._max_steps * 2 + 5})
        return list(final["messages"])

    # ------------------------------------------------------------------
    # nodes
    # ------------------------------------------------------------------

    async def _node_think(self, state: _LoopState) -> Dict[str, Any]:
        step = state["step"] + 1
        await emit_event(self._context.emit, StatusEvent(status="thinking", step=step))

        response = await run_cancellable(
            self._model.invoke(state["messages"], tools=self._model_tools), self._context.cancel
        )
        calls = [part for part in response.parts if isinstance(part, ToolCallPart)]
        logger.debug(f"Tool loop step {step}/{self._max_steps}: model requested {len(calls)} tool call(s)")
        return {"messages": [*state["messages"], response], "step": step, "pending_calls": calls}

    async def _node_run_tools(self, state: _LoopState) -> Dict[str, Any]:
        await emit_event(self._context.emit, StatusEvent(status="running", step=state["step"]))

        returns: List[ToolReturnPart] = []
        for call in state["pending_calls"]:
            token = self._context.cancel
            if token is not None and token.cancelled:
                raise OperationCancelledError(token.reason)

            await emit_event(self._context.emit, ToolStartEvent(name=call.tool_name, tool_call_id=call.tool_call_id))
            outcome = await self._execute_call(call)
            returns.append(
                ToolReturnPart(tool_name=call.tool_name, content=outcome.content, tool_call_id=call.tool_call_id)
            )
            await emit_event(
                self._context.emit,
                ToolEndEvent(
                    name=call.tool_name,
                    ok=outcome.ok,
                    reason=outcome.reason.value.lower() if outcome.reason else None,
                    tool_call_id=call.tool_call_id,
                ),
            )

        return {"messages": [*state["messages"], ModelRequest(parts=returns)], "pending_calls": []}

    async def _execute_call(self, call: ToolCallPart) -> ToolCallOutcome:
        adapter = self._adapters.get(call.tool_name)
        if adapter is None:
            logger.info(f"Model requested tool {call.tool_name!r} which is not available to this agent")
            return ToolCallOutcome.failure(ToolErrorReason.not_found)
        if tool_requires_confirmation(adapter.tool):
            return ToolCallOutcome.failure(ToolErrorReason.confirmation_required)
        try:
            args = call.args_as_dict()
        except ValueError as exc:
            return ToolCallOutcome.failure(ToolErrorReason.validation_error, f"Malformed arguments: {exc}")
        return await adapter.invoke(args, cancel=self._context.cancel)

    # ------------------------------------------------------------------
    # routing
    # ------------------------------------------------------------------

    def _route_after_think(self, state: _LoopState) -> str:
        return "tools" if state["pending_calls"] else "finish"

    def _route_after_tools(self, state: _LoopState) -> str:
        return "finish" if state["step"] >= self._max_steps else "think"


async def run_tool_calling_loop(
    *,
    model: LanguageModel,
    tools: Sequence[ToolDefinition],
    context: AgentContext,
    system: str,
    user_input: str,
    max_steps: Optional[int] = None,
    tool_timeout_seconds: Optional[float] = None,
) -> List[ModelMessage]:
    """Convenience wrapper building a ``ToolCallingLoop`` and running it once."""
    loop = ToolCallingLoop(
        model=model,
        tools=tools,
        context=context,
        max_steps=max_steps or DEFAULT_MAX_STEPS,
        tool_timeout_seconds=tool_timeout_seconds or DEFAULT_TOOL_TIMEOUT_SECONDS,
    )
    return await loop.run(system, user_input)
