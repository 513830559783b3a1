"""Structured output extraction."""

from __future__ import annotations

from typing import Optional, Sequence, Type, TypeVar

from pydantic_ai.messages import ModelMessage

from ..abstraction.base import LanguageModel
from .cancellation import CancellationToken, run_cancellable

T = TypeVar("T")


async def run_structured(
    model: LanguageModel,
    *,
    output_type: Type[T],
    messages: Sequence[ModelMessage],
    strict: bool = False,
    cancel: Optional[CancellationToken] = None,
) -> T:
    """Ask ``model`` for output conforming to ``output_type`` given the full conversation.

    Raises:
        ValueError: If ``messages`` is empty.
    """
    if not messages:
        raise ValueError("run_structured requires messages; provide the conversation to extract structured output from")
    return await run_cancellable(model.extract(list(messages), output_type=output_type, strict=strict), cancel)
