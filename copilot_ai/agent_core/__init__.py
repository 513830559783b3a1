"""Agent core: registries, tool adapter, tool-calling loop, agents, ledger and service.

Submodules are imported directly (``copilot_ai.agent_core.service``,
``copilot_ai.agent_core.factory``); this package only re-exports the error
hierarchy and the schemas shared with every caller.
"""

from .errors import CopilotError
from .schemas import (
    ActionHelperOutput,
    AgentMetadata,
    AuthContext,
    PendingActionRecord,
    ProposedAction,
    RunAgentRequest,
    ToolMetadata,
)

__all__ = [
    "ActionHelperOutput",
    "AgentMetadata",
    "AuthContext",
    "CopilotError",
    "PendingActionRecord",
    "ProposedAction",
    "RunAgentRequest",
    "ToolMetadata",
]
