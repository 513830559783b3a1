"""Tool invocation adapter.

Wraps a ``ToolDefinition`` and the current ``AgentContext`` into a unit the
tool-calling loop can call safely.

Design overview
---------------
``invoke`` runs these steps in order and stops at the first failure:

1. Input validation against ``input_schema`` (``VALIDATION_ERROR``). Nothing
   has run yet, so no audit event is emitted.
2. Confirmation gate. A tool flagged ``requires_confirmation`` is never
   executed inline (``CONFIRMATION_REQUIRED``).
3. ``tool_invocation_start`` audit event.
4. Permission check against ``permissions`` (``PERMISSION_DENIED``).
5. Execution under a per-call timeout and a child of the upstream
   cancellation token (``TIMEOUT``, ``CANCELLED``, ``EXECUTION_ERROR``).
6. ``tool_invocation_end`` audit event.

Failures are reported to the model as JSON content drawn from a small, closed
vocabulary of safe messages. Raw exception text only ever appears as a
truncated ``detail`` field. Audit events carry redacted summaries and go to
the context logger, the context event sink and Logfire.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel
from pydantic_ai.tools import ToolDefinition as ModelToolDefinition
from pydantic_core import to_json

from copilot_ai.core.logging_config import get_logger
from copilot_ai.core.monitoring import log_tool_invocation

from ..errors import (
    ConfirmationRequiredError,
    OperationCancelledError,
    PermissionDeniedError,
    ToolExecutionError,
)
from ..redaction import safe_summary, truncate
from ..runtime.cancellation import CancellationToken, run_cancellable
from ..runtime.events import emit_event
from ..runtime.models import AgentContext
from ..schemas.events import ToolInvocationEnd, ToolInvocationStart
from ..validation import parse_or_raise, validate
from .definitions import ToolDefinition, tool_requires_confirmation

logger = get_logger(__name__)

DEFAULT_TOOL_TIMEOUT_SECONDS = 8.0
MAX_SAFE_DETAIL_LENGTH = 160


class ToolErrorReason(str, Enum):
    not_found = "NOT_FOUND"
    timeout = "TIMEOUT"
    execution_error = "EXECUTION_ERROR"
    cancelled = "CANCELLED"
    permission_denied = "PERMISSION_DENIED"
    confirmation_required = "CONFIRMATION_REQUIRED"
    validation_error = "VALIDATION_ERROR"


SAFE_TOOL_ERROR_MESSAGES: Dict[ToolErrorReason, str] = {
    ToolErrorReason.not_found: "Tool is not available for this agent.",
    ToolErrorReason.timeout: "Tool timed out before completing.",
    ToolErrorReason.execution_error: "Tool failed to execute safely.",
    ToolErrorReason.cancelled: "Tool run was cancelled before it finished.",
    ToolErrorReason.permission_denied: "Tool usage is not permitted for this request.",
    ToolErrorReason.confirmation_required: "This tool requires explicit confirmation before it can run.",
    ToolErrorReason.validation_error: "Tool arguments did not match the expected input.",
}


def sanitize_detail(detail: Optional[str]) -> Optional[str]:
    if not detail:
        return None
    return truncate(detail, MAX_SAFE_DETAIL_LENGTH)


def safe_tool_error_content(reason: ToolErrorReason, detail: Optional[str] = None) -> str:
    """JSON tool-result content for a failed call: ``{ok, reason, message, detail?}``."""
    payload: Dict[str, Any] = {
        "ok": False,
        "reason": reason.value,
        "message": SAFE_TOOL_ERROR_MESSAGES[reason],
    }
    sanitized = sanitize_detail(detail)
    if sanitized:
        payload["detail"] = sanitized
    return json.dumps(payload, ensure_ascii=False)


def serialize_tool_output(output: Any) -> str:
    if isinstance(output, str):
        return output
    return to_json(output, by_alias=True).decode()


@dataclass(frozen=True)
class ToolCallOutcome:
    """Result of one adapter invocation.

    ``content`` is what the model sees; ``output`` is the raw tool output on success.
    """

    ok: bool
    content: str
    reason: Optional[ToolErrorReason] = None
    detail: Optional[str] = None
    output: Any = None

    @classmethod
    def failure(cls, reason: ToolErrorReason, detail: Optional[str] = None) -> "ToolCallOutcome":
        sanitized = sanitize_detail(detail)
        return cls(ok=False, content=safe_tool_error_content(reason, sanitized), reason=reason, detail=sanitized)


def check_tool_permissions(tool: ToolDefinition, context: AgentContext) -> None:
    """Raise ``PermissionDeniedError`` unless the caller holds every required role and an allowed tenant."""
    permissions = tool.permissions
    if permissions is None:
        return

    roles = set(context.roles or ())
    if permissions.required_roles:
        missing = [role for role in permissions.required_roles if role not in roles]
        if missing:
            plural = "s" if len(permissions.required_roles) > 1 else ""
            raise PermissionDeniedError(
                tool.id,
                f"Missing required role{plural} ({', '.join(permissions.required_roles)}) for tool \"{tool.id}\"",
            )

    if permissions.allowed_tenants and context.tenant_id not in permissions.allowed_tenants:
        raise PermissionDeniedError(
            tool.id, f"Tenant \"{context.tenant_id or 'unknown'}\" is not allowed to use tool \"{tool.id}\""
        )


class ToolInvocationAdapter:
    """
    Safely callable wrapper around one tool for one agent context.

    Args:
        tool: The tool definition to wrap.
        context: The invocation context (identity, cancellation, sink, logger).
        timeout_seconds: Per-call execution budget.
        enforce_confirmation: When False the confirmation gate is skipped. Only the
            confirm-action path uses this, after a human confirmed the action.
    """

    def __init__(
        self,
        tool: ToolDefinition,
        context: AgentContext,
        *,
        timeout_seconds: float = DEFAULT_TOOL_TIMEOUT_SECONDS,
        enforce_confirmation: bool = True,
    ) -> None:
        self._tool = tool
        self._context = context
        self._timeout_seconds = timeout_seconds
        self._enforce_confirmation = enforce_confirmation

    @property
    def tool(self) -> ToolDefinition:
        return self._tool

    def to_model_tool(self) -> ModelToolDefinition:
        """Function-tool definition bound to the language model."""
        return ModelToolDefinition(
            name=self._tool.id,
            description=self._tool.description or self._tool.name,
            parameters_json_schema=self._tool.get_input_schema_json(),
        )

    async def invoke(self, raw_args: Any, cancel: Optional[CancellationToken] = None) -> ToolCallOutcome:
        """
        Validate, gate, execute and audit one tool call.

        Never raises for tool-level failures; they are reported in the outcome.
        """
        result = validate(self._tool.input_schema, raw_args if raw_args is not None else {})
        if not result.ok:
            detail = "; ".join(
                f"{'.'.join(str(part) for part in issue.loc) or '<root>'}: {issue.msg}" for issue in result.issues
            )
            logger.debug(f"Rejected arguments for tool {self._tool.id}: {detail}")
            return ToolCallOutcome.failure(ToolErrorReason.validation_error, detail)
        return await self._run_validated(result.value, cancel)

    async def invoke_or_raise(self, raw_args: Any, cancel: Optional[CancellationToken] = None) -> Any:
        """
        Like ``invoke`` but raise on failure and return the raw tool output.

        Raises:
            SchemaValidationError: Arguments do not match the input schema.
            ConfirmationRequiredError: The tool must be confirmed first.
            PermissionDeniedError: Role or tenant check failed.
            ToolExecutionError: Timeout, cancellation or a tool exception.
        """
        parsed = parse_or_raise(
            self._tool.input_schema,
            raw_args if raw_args is not None else {},
            message=f"Invalid input for tool {self._tool.id}",
        )
        outcome = await self._run_validated(parsed, cancel)
        if outcome.ok:
            return outcome.output
        if outcome.reason is ToolErrorReason.confirmation_required:
            raise ConfirmationRequiredError(self._tool.id)
        if outcome.reason is ToolErrorReason.permission_denied:
            raise PermissionDeniedError(self._tool.id, outcome.detail or SAFE_TOOL_ERROR_MESSAGES[outcome.reason])
        reason = outcome.reason or ToolErrorReason.execution_error
        raise ToolExecutionError(self._tool.id, reason.value, SAFE_TOOL_ERROR_MESSAGES[reason], outcome.detail)

    async def _run_validated(self, parsed: Any, cancel: Optional[CancellationToken]) -> ToolCallOutcome:
        tool = self._tool
        if self._enforce_confirmation and tool_requires_confirmation(tool):
            return ToolCallOutcome.failure(ToolErrorReason.confirmation_required)

        await self._audit(ToolInvocationStart(**self._audit_base(), input_summary=safe_summary(parsed)))
        started = time.perf_counter()

        upstream = cancel or self._context.cancel
        call_token = upstream.child() if upstream is not None else CancellationToken()
        call_context = self._context.with_overrides(cancel=call_token)

        reason: Optional[ToolErrorReason] = None
        detail: Optional[str] = None
        output: Any = None
        try:
            check_tool_permissions(tool, self._context)
            output = await run_cancellable(tool.run(parsed, call_context), call_token, self._timeout_seconds)
            if tool.output_schema is not None:
                output = parse_or_raise(tool.output_schema, output, message=f"Invalid output from tool {tool.id}")
        except PermissionDeniedError as exc:
            reason, detail = ToolErrorReason.permission_denied, exc.reason
        except asyncio.TimeoutError:
            call_token.cancel("timeout")
            reason = ToolErrorReason.timeout
            detail = f"Tool timeout after {int(self._timeout_seconds * 1000)}ms"
        except OperationCancelledError as exc:
            reason, detail = ToolErrorReason.cancelled, exc.reason
        except Exception as exc:
            reason, detail = ToolErrorReason.execution_error, str(exc) or type(exc).__name__
        finally:
            call_token.close()

        duration_ms = round((time.perf_counter() - started) * 1000, 3)
        if reason is not None:
            await self._audit(
                ToolInvocationEnd(
                    **self._audit_base(),
                    ok=False,
                    duration_ms=duration_ms,
                    reason=reason.value,
                    error=truncate(detail) if detail else "Tool failed",
                ),
                level=logging.WARNING,
            )
            return ToolCallOutcome.failure(reason, detail)

        await self._audit(
            ToolInvocationEnd(**self._audit_base(), ok=True, duration_ms=duration_ms, output_summary=safe_summary(output))
        )
        return ToolCallOutcome(ok=True, content=serialize_tool_output(output), output=output)

    def _audit_base(self) -> Dict[str, str]:
        ctx = self._context
        return {
            "trace_id": ctx.trace_id or "unknown-trace",
            "request_id": ctx.request_id or "unknown-request",
            "user_id": ctx.user_id or "unknown-user",
            "tenant_id": ctx.tenant_id or "unknown-tenant",
            "agent_id": ctx.agent_id or "unknown-agent",
            "tool_id": self._tool.id,
        }

    async def _audit(self, event: BaseModel, level: int = logging.INFO) -> None:
        payload = event.model_dump(exclude_none=True)
        (self._context.logger or logger).log(level, f"{payload['type']}: {payload}")
        log_tool_invocation(payload)
        await emit_event(self._context.emit, event)
