"""Error types for the copilot agent runtime.

Purpose:
- Provide one typed hierarchy rooted at ``CopilotError`` for every failure the
  runtime surfaces to a caller.
- Carry the boundary ``code`` and the HTTP-equivalent ``status_code`` on each
  error so the transport layer can render a precise response without
  inspecting exception types.

Usage:
- Catch ``CopilotError`` at the boundary and read ``code`` / ``status_code`` /
  ``details``.
- Registry, ledger and grounding errors are raised synchronously by the core;
  ``AgentTimeoutError`` and ``ModelError`` are raised by the service layer when
  wrapping a whole agent run.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class CopilotError(Exception):
    """Base error for all copilot runtime failures.

    Args:
        message: Human-readable error description.
        code: Stable machine-readable error code.
        status_code: HTTP-equivalent status for the failure.
        details: Optional structured payload describing the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "UNKNOWN_ERROR",
        status_code: int = 500,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class SchemaValidationError(CopilotError):
    """Raised when a payload does not satisfy the declared schema."""

    def __init__(self, issues: Sequence[Any], message: str = "Validation failed") -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=[issue.model_dump() if hasattr(issue, "model_dump") else issue for issue in issues],
        )
        self.issues = list(issues)


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------


class DuplicateToolError(CopilotError):
    def __init__(self, tool_id: str) -> None:
        super().__init__(f"Tool already registered: {tool_id}", code="DUPLICATE_TOOL", status_code=409)
        self.tool_id = tool_id


class ToolNotFoundError(CopilotError):
    def __init__(self, tool_id: str) -> None:
        super().__init__(f"Tool not found: {tool_id}", code="TOOL_NOT_FOUND", status_code=404)
        self.tool_id = tool_id


class UnknownAllowlistedToolError(CopilotError):
    """Raised when an agent allowlist names a tool that is not registered."""

    def __init__(self, agent_id: str, tool_id: str) -> None:
        super().__init__(
            f"Allowlist for agent '{agent_id}' references unknown tool '{tool_id}'",
            code="UNKNOWN_ALLOWLISTED_TOOL",
            status_code=500,
            details={"agentId": agent_id, "toolId": tool_id},
        )
        self.agent_id = agent_id
        self.tool_id = tool_id


class DuplicateAgentError(CopilotError):
    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent already registered: {agent_id}", code="DUPLICATE_AGENT", status_code=409)
        self.agent_id = agent_id


class AgentNotFoundError(CopilotError):
    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent not found: {agent_id}", code="AGENT_NOT_FOUND", status_code=404)
        self.agent_id = agent_id


# ---------------------------------------------------------------------------
# Tool execution
# ---------------------------------------------------------------------------


class PermissionDeniedError(CopilotError):
    def __init__(self, tool_id: str, reason: str) -> None:
        super().__init__(
            f"Permission denied for tool '{tool_id}': {reason}",
            code="PERMISSION_DENIED",
            status_code=403,
        )
        self.tool_id = tool_id
        self.reason = reason


class ConfirmationRequiredError(CopilotError):
    def __init__(self, tool_id: str) -> None:
        super().__init__(
            f"Tool '{tool_id}' requires explicit confirmation before it can run",
            code="CONFIRMATION_REQUIRED",
            status_code=409,
        )
        self.tool_id = tool_id


class ToolExecutionError(CopilotError):
    """Raised by ``invoke_or_raise`` when a tool call does not succeed.

    ``reason`` is one of the safe tool error reasons (``TIMEOUT``,
    ``CANCELLED``, ``EXECUTION_ERROR`` ...).
    """

    def __init__(self, tool_id: str, reason: str, message: str, detail: Optional[str] = None) -> None:
        super().__init__(message, code=reason, status_code=502, details={"toolId": tool_id, "detail": detail})
        self.tool_id = tool_id
        self.reason = reason
        self.detail = detail


class OperationCancelledError(CopilotError):
    def __init__(self, reason: Optional[str] = None) -> None:
        super().__init__(reason or "Operation cancelled", code="CANCELLED", status_code=499)
        self.reason = reason


# ---------------------------------------------------------------------------
# Agent runs
# ---------------------------------------------------------------------------


class GroundingRequiredError(CopilotError):
    """Raised when a retrieval-grounded agent answered without retrieving."""

    def __init__(self, agent_id: str, tool_id: str) -> None:
        super().__init__(
            f"Agent '{agent_id}' did not use the {tool_id} tool as required. "
            "The agent must retrieve documentation before answering.",
            code="GROUNDING_REQUIRED",
            status_code=500,
        )
        self.agent_id = agent_id
        self.tool_id = tool_id


class AgentTimeoutError(CopilotError):
    def __init__(self, agent_id: str, timeout_ms: int) -> None:
        super().__init__(
            f"Agent '{agent_id}' timed out after {timeout_ms}ms",
            code="TIMEOUT_ERROR",
            status_code=408,
            details={"agentId": agent_id, "timeoutMs": timeout_ms},
        )
        self.agent_id = agent_id
        self.timeout_ms = timeout_ms


class ModelError(CopilotError):
    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message, code="MODEL_ERROR", status_code=500, details=details)


# ---------------------------------------------------------------------------
# Pending action ledger
# ---------------------------------------------------------------------------


class PendingActionNotFoundError(CopilotError):
    def __init__(self, action_id: str) -> None:
        super().__init__(f"Pending action not found: {action_id}", code="ACTION_NOT_FOUND", status_code=404)
        self.action_id = action_id


class PendingActionExpiredError(CopilotError):
    def __init__(self, action_id: str) -> None:
        super().__init__(f"Pending action expired: {action_id}", code="ACTION_EXPIRED", status_code=410)
        self.action_id = action_id


class PendingActionMismatchError(CopilotError):
    def __init__(self, action_id: str) -> None:
        super().__init__(
            f"Pending action {action_id} belongs to a different user or tenant",
            code="ACTION_MISMATCH",
            status_code=403,
        )
        self.action_id = action_id


class PendingActionStateError(CopilotError):
    """Raised when a pending action is not in a state that allows the transition."""

    def __init__(self, action_id: str, status: str) -> None:
        super().__init__(
            f"Pending action {action_id} is {status}",
            code="ACTION_STATE_INVALID",
            status_code=409,
            details={"status": status},
        )
        self.action_id = action_id
        self.status = status
