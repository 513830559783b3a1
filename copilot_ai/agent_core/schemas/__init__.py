"""Schemas and DTOs for the agent core."""

from .api import (
    AgentToolsResponse,
    CancelActionResponse,
    ConfirmActionRequest,
    ConfirmActionResponse,
    GetAgentResponse,
    ListAgentsResponse,
    RunAgentErrorResponse,
    RunAgentRequest,
    RunAgentSuccessResponse,
    SetAgentToolsRequest,
)
from .base import ApiSchema, BaseSchema
from .domain import (
    ActionHelperOutput,
    AgentMetadata,
    AuthContext,
    PendingActionRecord,
    PendingActionStatus,
    ProposedAction,
    RiskLevel,
    ToolEffect,
    ToolMetadata,
)
from .events import (
    RuntimeEvent,
    StatusEvent,
    ToolAuditEvent,
    ToolEndEvent,
    ToolInvocationEnd,
    ToolInvocationStart,
    ToolStartEvent,
)

__all__ = [
    "ApiSchema",
    "BaseSchema",
    "ActionHelperOutput",
    "AgentMetadata",
    "AuthContext",
    "PendingActionRecord",
    "PendingActionStatus",
    "ProposedAction",
    "RiskLevel",
    "ToolEffect",
    "ToolMetadata",
    "RuntimeEvent",
    "StatusEvent",
    "ToolAuditEvent",
    "ToolEndEvent",
    "ToolInvocationEnd",
    "ToolInvocationStart",
    "ToolStartEvent",
    "AgentToolsResponse",
    "CancelActionResponse",
    "ConfirmActionRequest",
    "ConfirmActionResponse",
    "GetAgentResponse",
    "ListAgentsResponse",
    "RunAgentErrorResponse",
    "RunAgentRequest",
    "RunAgentSuccessResponse",
    "SetAgentToolsRequest",
]
