from __future__ import annotations

"""Per-invocation context and LangGraph state types.

- ``AgentContext`` is the bundle created fresh for each request and threaded
  through the agent, the tool-calling loop and every tool call.
- ``_LoopState`` is the mutable state passed between the tool loop's LangGraph
  nodes.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, TypedDict, Union

from pydantic_ai.messages import ModelMessage

from .cancellation import CancellationToken
from .events import EventSink

if TYPE_CHECKING:
    from ..tools.definitions import ToolDefinition
    from ..tools.registry import ToolRegistry

SYSTEM_USER_ID = "system"
SYSTEM_TENANT_ID = "system"


@dataclass(frozen=True)
class AgentContext:
    """Request-scoped context for a single agent invocation.

    Attributes
    ----------
    user_id / tenant_id / roles:
        Caller identity used for tool permission checks and ledger ownership.
    request_id / trace_id / agent_id:
        Correlation identifiers copied into audit events.
    cancel:
        Cancellation signal for the whole run; tool calls derive child tokens.
    emit:
        Optional sink receiving progress and audit events.
    tools:
        Explicit tool list for this invocation. ``None`` means "resolve from
        ``tool_registry``"; an empty sequence means "no tools".
    tool_registry / tool_fallback_to_all:
        Registry used for allowlist resolution when ``tools`` is ``None``.
    logger:
        Logger (or run-bound adapter) receiving audit events; the adapter
        module logger otherwise.
    """

    user_id: Optional[str] = None
    tenant_id: Optional[str] = None
    roles: Sequence[str] = field(default_factory=tuple)

    request_id: Optional[str] = None
    trace_id: Optional[str] = None
    agent_id: Optional[str] = None

    cancel: Optional[CancellationToken] = None
    emit: Optional[EventSink] = None

    tools: Optional[Sequence["ToolDefinition"]] = None
    tool_registry: Optional["ToolRegistry"] = None
    tool_fallback_to_all: bool = False

    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None

    def with_overrides(self, **changes: Any) -> "AgentContext":
        return replace(self, **changes)


def with_default_agent_context(agent_id: str, context: Optional[AgentContext] = None) -> AgentContext:
    """Fill the identity defaults of ``context`` for a run of ``agent_id``.

    Without a context the run gets the system identity and no tools. With one,
    caller-supplied values win and only missing ids are filled in.
    """
    if context is None:
        return AgentContext(user_id=SYSTEM_USER_ID, tenant_id=SYSTEM_TENANT_ID, agent_id=agent_id, tools=())
    return replace(
        context,
        user_id=context.user_id or SYSTEM_USER_ID,
        tenant_id=context.tenant_id or SYSTEM_TENANT_ID,
        agent_id=context.agent_id or agent_id,
    )


class _LoopState(TypedDict):
    """Mutable LangGraph state for one tool-calling loop.

    - ``messages``: the transcript so far (system/user request first).
    - ``step``: model turns taken.
    - ``pending_calls``: tool calls requested by the latest model response.
    """

    messages: List[ModelMessage]
    step: int
    pending_calls: List[Any]
