"""Cooperative cancellation for agent runs and tool calls.

Every agent invocation carries one ``CancellationToken``. Tool calls derive a
``child()`` token so that cancelling the run cascades into whatever call is in
flight, while a per-call timeout only ever aborts that single call.

``run_cancellable`` races an awaitable against a token and an optional
timeout and cancels the losing task, which is how the model call and each tool
execution are bounded.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, List, Optional, TypeVar

from ..errors import OperationCancelledError

T = TypeVar("T")


class CancellationToken:
    """A one-shot cancellation signal that can be observed and awaited.

    Children are cancelled when their parent is; cancelling a child leaves the
    parent untouched. ``close()`` detaches a finished child so long-lived
    parents do not accumulate references.
    """

    def __init__(self, parent: Optional["CancellationToken"] = None) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._children: List[CancellationToken] = []
        self._parent = parent
        if parent is not None:
            if parent.cancelled:
                self.cancel(parent.reason)
            else:
                parent._children.append(self)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        if self._event.is_set():
            return
        self._reason = reason or "cancelled"
        self._event.set()
        for child in list(self._children):
            child.cancel(self._reason)

    async def wait(self) -> Optional[str]:
        await self._event.wait()
        return self._reason

    def child(self) -> "CancellationToken":
        return CancellationToken(parent=self)

    def close(self) -> None:
        if self._parent is not None and self in self._parent._children:
            self._parent._children.remove(self)
        self._parent = None

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelledError(self._reason)


async def run_cancellable(
    awaitable: Awaitable[T],
    token: Optional[CancellationToken] = None,
    timeout: Optional[float] = None,
) -> T:
    """Await ``awaitable`` unless ``token`` fires or ``timeout`` seconds elapse first.

    Args:
        awaitable: Coroutine or future to run.
        token: Upstream cancellation signal (optional).
        timeout: Budget in seconds (optional).

    Returns:
        The awaitable's result.

    Raises:
        OperationCancelledError: If the token was cancelled first.
        asyncio.TimeoutError: If the timeout elapsed first.
    """
    if token is not None and token.cancelled:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise OperationCancelledError(token.reason)

    task = asyncio.ensure_future(awaitable)
    if token is None and timeout is None:
        return await task

    waiter = asyncio.ensure_future(token.wait()) if token is not None else None
    pending = {task} if waiter is None else {task, waiter}
    try:
        done, _ = await asyncio.wait(pending, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        if waiter is not None:
            waiter.cancel()

    if task in done:
        return task.result()

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    if token is not None and token.cancelled:
        raise OperationCancelledError(token.reason)
    raise asyncio.TimeoutError()
