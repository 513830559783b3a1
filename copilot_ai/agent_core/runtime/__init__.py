"""Runtime primitives: context, cancellation, events and structured extraction.

The tool-calling loop (``runtime.tool_loop``) and the streaming session
(``runtime.streaming``) are imported from their modules directly.
"""

from .cancellation import CancellationToken, run_cancellable
from .events import CollectingSink, EventSink, emit_event
from .models import AgentContext, with_default_agent_context
from .structured import run_structured

__all__ = [
    "AgentContext",
    "CancellationToken",
    "CollectingSink",
    "EventSink",
    "emit_event",
    "run_cancellable",
    "run_structured",
    "with_default_agent_context",
]
