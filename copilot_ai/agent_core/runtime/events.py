"""Event sink abstraction.

Producers (the tool loop, the tool invocation adapter) hand events to an
``EventSink``; consumers decide what to do with them (the streaming session
queues them, tests collect them in a list). A sink may be a plain function or
a coroutine function.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, List, Optional, Union

from ..schemas.events import RuntimeEvent

EventSink = Callable[[RuntimeEvent], Union[None, Awaitable[None]]]


async def emit_event(sink: Optional[EventSink], event: RuntimeEvent) -> None:
    if sink is None:
        return
    result = sink(event)
    if inspect.isawaitable(result):
        await result


class CollectingSink:
    """Sink that keeps every event in memory, in emission order."""

    def __init__(self) -> None:
        self.events: List[Any] = []

    def __call__(self, event: RuntimeEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> List[Any]:
        return [event for event in self.events if event.type == event_type]
