"""Runtime event models.

Two families of events flow through an ``EventSink`` during an agent run:

Progress events
---------------
Emitted by the tool-calling loop so a UI can render what the agent is doing:

- ``StatusEvent``: ``thinking`` before each model call, ``running`` before a
  batch of tool calls.
- ``ToolStartEvent`` / ``ToolEndEvent``: one pair per requested tool call.

Audit events
------------
Emitted by the tool invocation adapter around each real execution attempt.
They carry the trace/request/user/tenant/agent/tool identifiers and
redacted, size-capped summaries of the input and output. Audit events are
write-only telemetry.

All events are discriminated by ``type`` so a single ``RuntimeEvent`` union
can be parsed back from JSON.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from .base import ApiSchema


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StatusEvent(ApiSchema):
    type: Literal["status"] = "status"
    status: Literal["thinking", "running"]
    step: Optional[int] = None


class ToolStartEvent(ApiSchema):
    type: Literal["tool_start"] = "tool_start"
    name: str
    tool_call_id: Optional[str] = None


class ToolEndEvent(ApiSchema):
    type: Literal["tool_end"] = "tool_end"
    name: str
    ok: bool
    reason: Optional[str] = None
    tool_call_id: Optional[str] = None


class _ToolAuditFields(ApiSchema):
    ts: str = Field(default_factory=_iso_now)
    trace_id: str
    request_id: str
    user_id: str
    tenant_id: str
    agent_id: str
    tool_id: str


class ToolInvocationStart(_ToolAuditFields):
    type: Literal["tool_invocation_start"] = "tool_invocation_start"
    input_summary: Optional[str] = None


class ToolInvocationEnd(_ToolAuditFields):
    type: Literal["tool_invocation_end"] = "tool_invocation_end"
    ok: bool
    duration_ms: float
    reason: Optional[str] = None
    error: Optional[str] = None
    output_summary: Optional[str] = None


ToolAuditEvent = Annotated[Union[ToolInvocationStart, ToolInvocationEnd], Field(discriminator="type")]

RuntimeEvent = Annotated[
    Union[StatusEvent, ToolStartEvent, ToolEndEvent, ToolInvocationStart, ToolInvocationEnd],
    Field(discriminator="type"),
]
