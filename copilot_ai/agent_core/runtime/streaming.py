from __future__ import annotations

"""Outward event stream for a single agent run.

``StreamingSession`` runs an agent in a background task and turns the
progress events it emits into named stream events:

- ``status``: ``started`` first, then ``thinking`` / ``running`` from the tool
  loop, then ``done`` once the run produced a result,
- ``tool``: ``{phase: "start" | "end", name, ...}`` per tool call,
- ``result``: ``{ok: true, agentId, result, executionTimeMs}``,
- ``error``: ``{error, code, executionTimeMs}`` when the run failed,
- ``done``: ``{ok}``, always the last event,
- ``ping``: heartbeat emitted after ``heartbeat_seconds`` without any event.

Audit events are not forwarded; they go to the logs only.

Disconnect handling
-------------------

The session stops as soon as the consumer closes the generator or the
``is_disconnected`` probe reports true. Closing the generator is the
primary path (sse-starlette closes it when the client goes away); the probe
runs before every read and at least every ``disconnect_poll_seconds`` while
the run is idle, independent of the heartbeat. Stopping cancels the run's
``CancellationToken`` (which cascades into in-flight model and tool calls) and
the background task, and no further events are produced.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional

from pydantic_core import to_jsonable_python

from ...core.logging_config import get_logger
from ..errors import CopilotError
from ..schemas.events import StatusEvent, ToolEndEvent, ToolStartEvent
from .cancellation import CancellationToken
from .models import AgentContext

logger = get_logger(__name__)

DEFAULT_HEARTBEAT_SECONDS = 15.0
DEFAULT_DISCONNECT_POLL_SECONDS = 1.0

AgentRunner = Callable[[AgentContext], Awaitable[Any]]
DisconnectProbe = Callable[[], Awaitable[bool]]


@dataclass(frozen=True)
class StreamEvent:
    event: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class _RunFinished:
    result: Any = None
    error: Optional[BaseException] = None


class StreamingSession:
    """Drive one agent run and expose its lifecycle as ``StreamEvent``s.

    Args:
        agent_id: Agent being run; echoed in the ``result`` event.
        runner: Coroutine function that executes the run with the given context.
        context: Base context; the session installs its own event sink and a
            child cancellation token.
        heartbeat_seconds: Idle interval before a ``ping`` is emitted.
        is_disconnected: Optional async probe for transport disconnects.
    """

    def __init__(
        self,
        *,
        agent_id: str,
        runner: AgentRunner,
        context: AgentContext,
        heartbeat_seconds: float = DEFAULT_HEARTBEAT_SECONDS,
        is_disconnected: Optional[DisconnectProbe] = None,
        disconnect_poll_seconds: float = DEFAULT_DISCONNECT_POLL_SECONDS,
    ) -> None:
        self.agent_id = agent_id
        self._runner = runner
        self._context = context
        self._heartbeat_seconds = heartbeat_seconds
        self._is_disconnected = is_disconnected
        self._disconnect_poll_seconds = disconnect_poll_seconds
        self.cancel_token = context.cancel.child() if context.cancel is not None else CancellationToken()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def events(self) -> AsyncIterator[StreamEvent]:
        queue: asyncio.Queue = asyncio.Queue()
        context = self._context.with_overrides(cancel=self.cancel_token, emit=queue.put_nowait)
        started = time.perf_counter()
        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(self._execute(context, queue))

        try:
            yield StreamEvent("status", {"status": "started", "agentId": self.agent_id})
            next_ping = loop.time() + self._heartbeat_seconds
            while True:
                if await self._client_gone():
                    logger.info(f"Client disconnected from stream for agent {self.agent_id}")
                    return
                until_ping = next_ping - loop.time()
                wait = until_ping
                if self._is_disconnected is not None:
                    wait = min(wait, self._disconnect_poll_seconds)
                try:
                    item = await asyncio.wait_for(queue.get(), timeout=max(wait, 0))
                except asyncio.TimeoutError:
                    if wait >= until_ping:
                        yield StreamEvent("ping", {"ts": datetime.now(timezone.utc).isoformat()})
                        next_ping = loop.time() + self._heartbeat_seconds
                    continue
                next_ping = loop.time() + self._heartbeat_seconds
                if isinstance(item, _RunFinished):
                    break
                mapped = self._map_runtime_event(item)
                if mapped is not None:
                    yield mapped

            elapsed_ms = (time.perf_counter() - started) * 1000
            if item.error is None:
                yield StreamEvent("status", {"status": "done"})
                yield StreamEvent(
                    "result",
                    {
                        "ok": True,
                        "agentId": self.agent_id,
                        "result": to_jsonable_python(item.result, by_alias=True),
                        "executionTimeMs": elapsed_ms,
                    },
                )
                yield StreamEvent("done", {"ok": True})
            else:
                yield StreamEvent("error", self._error_payload(item.error, elapsed_ms))
                yield StreamEvent("done", {"ok": False})
        finally:
            self._closed = True
            if not task.done():
                self.cancel_token.cancel("stream closed")
                task.cancel()

    async def _execute(self, context: AgentContext, queue: asyncio.Queue) -> None:
        try:
            result = await self._runner(context)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning(f"Streamed run of agent {self.agent_id} failed: {exc}")
            queue.put_nowait(_RunFinished(error=exc))
        else:
            queue.put_nowait(_RunFinished(result=result))

    async def _client_gone(self) -> bool:
        if self._is_disconnected is None:
            return False
        return bool(await self._is_disconnected())

    @staticmethod
    def _map_runtime_event(event: Any) -> Optional[StreamEvent]:
        if isinstance(event, StatusEvent):
            return StreamEvent("status", event.model_dump(by_alias=True, exclude={"type"}, exclude_none=True))
        if isinstance(event, ToolStartEvent):
            data = event.model_dump(by_alias=True, exclude={"type"}, exclude_none=True)
            return StreamEvent("tool", {"phase": "start", **data})
        if isinstance(event, ToolEndEvent):
            data = event.model_dump(by_alias=True, exclude={"type"}, exclude_none=True)
            return StreamEvent("tool", {"phase": "end", **data})
        return None

    @staticmethod
    def _error_payload(error: BaseException, elapsed_ms: float) -> Dict[str, Any]:
        if isinstance(error, CopilotError):
            return {"error": error.message, "code": error.code, "executionTimeMs": elapsed_ms}
        return {"error": "Agent execution failed", "code": "UNKNOWN_ERROR", "executionTimeMs": elapsed_ms}
