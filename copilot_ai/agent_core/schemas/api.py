"""Request and response shapes exchanged with external callers.

These models are serialized with camelCase aliases (``agentId``,
``executionTimeMs``) and are shared by the ``CopilotService`` and the HTTP
routers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from .base import ApiSchema
from .domain import AgentMetadata, ToolMetadata


class RunAgentRequest(ApiSchema):
    agent_id: str = Field(min_length=1, description="Identifier of the agent to run", examples=["product-qa"])
    input: Dict[str, Any] = Field(
        default_factory=dict,
        description="Agent input; validated against the agent's input schema",
        examples=[{"question": "How do I reset my password?"}],
    )
    timeout_ms: Optional[int] = Field(
        default=None, ge=1, description="Whole-run timeout in milliseconds (defaults to the configured value)"
    )


class RunAgentSuccessResponse(ApiSchema):
    ok: Literal[True] = True
    agent_id: str
    result: Any
    execution_time_ms: float


class RunAgentErrorResponse(ApiSchema):
    ok: Literal[False] = False
    error: str
    code: str = Field(
        description="VALIDATION_ERROR, AGENT_NOT_FOUND, TIMEOUT_ERROR, MODEL_ERROR, UNKNOWN_ERROR or a ledger code"
    )
    details: Optional[Any] = None


class ListAgentsResponse(ApiSchema):
    ok: Literal[True] = True
    agents: List[AgentMetadata]


class GetAgentResponse(ApiSchema):
    ok: Literal[True] = True
    agent: AgentMetadata


class AgentToolsResponse(ApiSchema):
    ok: Literal[True] = True
    agent_id: str
    allowed: List[ToolMetadata]
    available: List[ToolMetadata]


class SetAgentToolsRequest(ApiSchema):
    tool_ids: List[str] = Field(description="Complete allowlist; replaces the previous one")


class ConfirmActionRequest(ApiSchema):
    action_id: str = Field(min_length=6, description="Identifier returned with the proposed action")


class ConfirmActionResponse(ApiSchema):
    ok: Literal[True] = True
    action_id: str
    status: Literal["executed"] = "executed"
    result: Optional[Any] = None
    executed_at: Optional[datetime] = None


class CancelActionResponse(ApiSchema):
    ok: Literal[True] = True
    action_id: str
    status: Literal["cancelled"] = "cancelled"
