from __future__ import annotations

"""Application-facing service for running agents and confirming actions.

``CopilotService`` is what the HTTP routers talk to. It owns no execution
semantics of its own; it resolves agents, builds the per-request
``AgentContext`` and delegates to the agent, the tool adapter and the pending
action ledger.

Workflow
--------

- ``run_agent``:

  1. Resolve the agent (``AGENT_NOT_FOUND``) and validate the input against
     its input schema (``VALIDATION_ERROR``).
  2. Run it under the whole-run timeout (``TIMEOUT_ERROR``). Unexpected
     failures are wrapped as ``MODEL_ERROR``; typed runtime errors pass
     through unchanged.
  3. Register any proposed write actions in the ledger so the returned
     action ids are the ones the ledger issued.

- ``stream_agent``: same steps, exposed as a ``StreamingSession``.

- ``confirm_action``: claim the action for the caller, execute the tool
  directly (the human confirmation just happened), record a redacted result
  summary.
"""

import asyncio
import time
import uuid
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

from pydantic_core import to_jsonable_python

from ..core.logging_config import get_logger, get_run_logger
from ..core.monitoring import agent_span, log_agent_completion, log_agent_run, log_error
from .actions.ledger import PendingActionLedger
from .agents.definition import AgentDefinition, agent_metadata
from .agents.registry import AgentRegistry
from .errors import AgentNotFoundError, AgentTimeoutError, CopilotError, ModelError, SchemaValidationError
from .runtime.cancellation import CancellationToken, run_cancellable
from .runtime.models import AgentContext
from .runtime.streaming import DisconnectProbe, StreamingSession
from .schemas.api import (
    AgentToolsResponse,
    CancelActionResponse,
    ConfirmActionResponse,
    GetAgentResponse,
    ListAgentsResponse,
    RunAgentErrorResponse,
    RunAgentRequest,
    RunAgentSuccessResponse,
)
from .schemas.domain import ActionHelperOutput, AuthContext
from .tools.adapter import ToolInvocationAdapter
from .tools.registry import ToolRegistry
from .validation import ValidationIssue, parse_or_raise

if TYPE_CHECKING:
    from copilot_ai.server.core.config import Settings

logger = get_logger(__name__)

# Error types a run may surface unchanged; any other failure becomes a ModelError.
RUN_ERROR_TYPES = (SchemaValidationError, AgentNotFoundError, AgentTimeoutError, ModelError)

AUDIT_LOGGER_NAME = "copilot_ai.agent_core.tools.audit"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


class CopilotService:
    """Run agents and manage their proposed actions on behalf of an authenticated caller.

    Args:
        agents: Registry of runnable agents.
        tools: Registry of tools and per-agent allowlists.
        ledger: Pending action ledger for confirm-before-execute actions.
        settings: Application settings (the module-level settings when omitted).
    """

    def __init__(
        self,
        *,
        agents: AgentRegistry,
        tools: ToolRegistry,
        ledger: PendingActionLedger,
        settings: Optional["Settings"] = None,
    ) -> None:
        if settings is None:
            from copilot_ai.server.core.config import settings as app_settings

            settings = app_settings

        self.agents = agents
        self.tools = tools
        self.ledger = ledger
        self._runtime = settings.runtime
        self._heartbeat_seconds = settings.runtime.stream_heartbeat_seconds

    # ------------------------------------------------------------------
    # Agent runs
    # ------------------------------------------------------------------

    async def run_agent(self, request: RunAgentRequest, auth: AuthContext) -> RunAgentSuccessResponse:
        agent, parsed = self._resolve(request)
        timeout_ms = request.timeout_ms or self._runtime.agent_timeout_ms
        context = self._build_context(agent.id, auth, cancel=CancellationToken())

        logger.info(f"Executing agent {agent.id} for user {auth.user_id} (tenant {auth.tenant_id})")
        log_agent_run(agent.id, auth.tenant_id, auth.user_id, context.trace_id)
        started = time.perf_counter()
        try:
            result = await self._execute(agent, parsed, context, timeout_ms)
        except CopilotError as exc:
            log_agent_completion(agent.id, False, _elapsed_ms(started), exc.code)
            raise

        execution_time_ms = _elapsed_ms(started)
        logger.info(f"Agent {agent.id} completed in {execution_time_ms}ms")
        log_agent_completion(agent.id, True, execution_time_ms)
        return RunAgentSuccessResponse(
            agent_id=agent.id,
            result=to_jsonable_python(result, by_alias=True),
            execution_time_ms=execution_time_ms,
        )

    def stream_agent(
        self,
        request: RunAgentRequest,
        auth: AuthContext,
        *,
        is_disconnected: Optional[DisconnectProbe] = None,
    ) -> StreamingSession:
        """Prepare a streamed run; agent and input errors are raised before any event is produced."""
        agent, parsed = self._resolve(request)
        timeout_ms = request.timeout_ms or self._runtime.agent_timeout_ms
        context = self._build_context(agent.id, auth, cancel=CancellationToken())
        log_agent_run(agent.id, auth.tenant_id, auth.user_id, context.trace_id)

        async def _runner(run_context: AgentContext) -> Any:
            return await self._execute(agent, parsed, run_context, timeout_ms)

        return StreamingSession(
            agent_id=agent.id,
            runner=_runner,
            context=context,
            heartbeat_seconds=self._heartbeat_seconds,
            is_disconnected=is_disconnected,
        )

    def failure_response(self, error: Exception) -> RunAgentErrorResponse:
        if isinstance(error, CopilotError):
            return RunAgentErrorResponse(error=error.message, code=error.code, details=error.details)
        return RunAgentErrorResponse(error="Internal server error", code="UNKNOWN_ERROR")

    def _resolve(self, request: RunAgentRequest) -> tuple[AgentDefinition, Any]:
        agent = self.agents.get(request.agent_id)
        parsed = parse_or_raise(agent.input_schema, request.input, message="Invalid input for agent")
        return agent, parsed

    async def _execute(self, agent: AgentDefinition, parsed: Any, context: AgentContext, timeout_ms: int) -> Any:
        try:
            with agent_span(agent.id, context.trace_id):
                result = await run_cancellable(agent.run(parsed, context), context.cancel, timeout_ms / 1000)
        except asyncio.TimeoutError as exc:
            if context.cancel is not None:
                context.cancel.cancel("timeout")
            logger.warning(f"Agent {agent.id} exceeded {timeout_ms}ms")
            raise AgentTimeoutError(agent.id, timeout_ms) from exc
        except RUN_ERROR_TYPES:
            raise
        except CopilotError as exc:
            logger.warning(f"Agent {agent.id} run failed with {exc.code}: {exc.message}")
            log_error(exc.code, exc.message, {"agent_id": agent.id, "trace_id": context.trace_id})
            raise ModelError(
                f"Agent execution failed: {exc.message}",
                details={"originalError": exc.message, "originalCode": exc.code},
            ) from exc
        except Exception as exc:
            logger.error(f"Agent {agent.id} execution failed: {exc}", exc_info=True)
            log_error(type(exc).__name__, str(exc), {"agent_id": agent.id, "trace_id": context.trace_id})
            raise ModelError(f"Agent execution failed: {exc}", details={"originalError": str(exc)}) from exc
        return self._register_proposals(agent.id, result, context)

    def _register_proposals(self, agent_id: str, result: Any, context: AgentContext) -> Any:
        if not isinstance(result, ActionHelperOutput) or not result.proposed_actions:
            return result
        registered = self.ledger.register_many(
            result.proposed_actions,
            agent_id=agent_id,
            user_id=context.user_id,
            tenant_id=context.tenant_id,
            trace_id=context.trace_id,
        )
        return result.model_copy(update={"proposed_actions": registered})

    def _build_context(
        self,
        agent_id: str,
        auth: AuthContext,
        *,
        cancel: Optional[CancellationToken] = None,
        trace_id: Optional[str] = None,
    ) -> AgentContext:
        request_id = str(uuid.uuid4())
        trace_id = trace_id or uuid.uuid4().hex
        return AgentContext(
            user_id=auth.user_id,
            tenant_id=auth.tenant_id,
            roles=tuple(auth.roles),
            request_id=request_id,
            trace_id=trace_id,
            agent_id=agent_id,
            cancel=cancel,
            tool_registry=self.tools,
            tool_fallback_to_all=self._runtime.tool_fallback_to_all,
            logger=get_run_logger(AUDIT_LOGGER_NAME, trace_id=trace_id, agent_id=agent_id, request_id=request_id),
        )

    # ------------------------------------------------------------------
    # Agents and tool allowlists
    # ------------------------------------------------------------------

    def list_agents(self) -> ListAgentsResponse:
        return ListAgentsResponse(agents=self.agents.list_metadata())

    def get_agent(self, agent_id: str) -> GetAgentResponse:
        return GetAgentResponse(agent=agent_metadata(self.agents.get(agent_id)))

    def get_agent_tools(self, agent_id: str) -> AgentToolsResponse:
        self.agents.get(agent_id)
        allowed = self.tools.get_tools_for_agent(agent_id, fallback_to_all=self._runtime.tool_fallback_to_all)
        return AgentToolsResponse(
            agent_id=agent_id,
            allowed=[tool.metadata() for tool in allowed],
            available=self.tools.list_metadata(),
        )

    def set_agent_tools(self, agent_id: str, tool_ids: Sequence[str]) -> AgentToolsResponse:
        self.agents.get(agent_id)
        issues: List[ValidationIssue] = [
            ValidationIssue(loc=("toolIds", index), msg=f"Unknown tool: {tool_id}", type="unknown_tool")
            for index, tool_id in enumerate(tool_ids)
            if not self.tools.has(tool_id)
        ]
        if issues:
            raise SchemaValidationError(issues, message="Unknown tool ids")
        self.tools.set_allowlist(agent_id, tool_ids)
        logger.info(f"Allowlist for agent {agent_id} set to {list(tool_ids)}")
        return self.get_agent_tools(agent_id)

    # ------------------------------------------------------------------
    # Pending actions
    # ------------------------------------------------------------------

    async def confirm_action(self, action_id: str, auth: AuthContext) -> ConfirmActionResponse:
        record = self.ledger.claim(action_id, user_id=auth.user_id, tenant_id=auth.tenant_id)
        try:
            tool = self.tools.get(record.tool_id)
            context = self._build_context(record.agent_id, auth, cancel=CancellationToken(), trace_id=record.trace_id)
            adapter = ToolInvocationAdapter(
                tool,
                context,
                timeout_seconds=self._runtime.tool_timeout_ms / 1000,
                enforce_confirmation=False,
            )
            output = await adapter.invoke_or_raise(record.args)
        except Exception:
            self.ledger.release(action_id)
            raise

        executed = self.ledger.mark_executed(action_id, output)
        logger.info(f"Executed action {action_id} ({record.tool_id}) for user {auth.user_id}")
        return ConfirmActionResponse(
            action_id=action_id,
            result=to_jsonable_python(output, by_alias=True),
            executed_at=executed.executed_at,
        )

    def cancel_action(self, action_id: str, auth: AuthContext) -> CancelActionResponse:
        self.ledger.cancel(action_id, user_id=auth.user_id, tenant_id=auth.tenant_id)
        logger.info(f"Cancelled action {action_id} for user {auth.user_id}")
        return CancelActionResponse(action_id=action_id)
