from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest
from pydantic import BaseModel
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart, ToolCallPart

from copilot_ai.agent_core.abstraction.base import LanguageModel
from copilot_ai.agent_core.runtime.cancellation import CancellationToken
from copilot_ai.agent_core.runtime.events import CollectingSink
from copilot_ai.agent_core.runtime.models import AgentContext


class ScriptedModel(LanguageModel):
    """Replays canned responses and records every request it receives.

    ``extracted`` is either the structured output itself, a dict validated into
    the requested output type, or a callable receiving the messages.
    """

    def __init__(self, responses: Sequence[ModelResponse] = (), extracted: Any = None) -> None:
        self.responses: List[ModelResponse] = list(responses)
        self.extracted = extracted
        self.invocations: List[Dict[str, Any]] = []
        self.extractions: List[Dict[str, Any]] = []

    async def invoke(self, messages, *, tools=None) -> ModelResponse:
        self.invocations.append({"messages": list(messages), "tools": [tool.name for tool in tools or []]})
        if not self.responses:
            return ModelResponse(parts=[TextPart(content="done")])
        return self.responses.pop(0)

    async def extract(self, messages, *, output_type, strict: bool = False):
        self.extractions.append({"messages": list(messages), "output_type": output_type, "strict": strict})
        value = self.extracted(messages) if callable(self.extracted) else self.extracted
        if isinstance(value, dict) and isinstance(output_type, type) and issubclass(output_type, BaseModel):
            return output_type.model_validate(value)
        return value


def _tool_call(name: str, args: Any = None, call_id: str = "call-1") -> ModelResponse:
    return ModelResponse(parts=[ToolCallPart(tool_name=name, args=args or {}, tool_call_id=call_id)])


def _text(content: str) -> ModelResponse:
    return ModelResponse(parts=[TextPart(content=content)])


@pytest.fixture
def make_model() -> Callable[..., ScriptedModel]:
    return ScriptedModel


@pytest.fixture
def tool_call() -> Callable[..., ModelResponse]:
    return _tool_call


@pytest.fixture
def text_response() -> Callable[[str], ModelResponse]:
    return _text


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def make_context(sink: CollectingSink) -> Callable[..., AgentContext]:
    """Build an admin context in the dev tenant, overridable per test."""

    def _make(**overrides: Any) -> AgentContext:
        values: Dict[str, Any] = {
            "user_id": "dev-user",
            "tenant_id": "dev-tenant",
            "roles": ("admin",),
            "request_id": "req-1",
            "trace_id": "trace-1",
            "agent_id": "test-agent",
            "cancel": CancellationToken(),
            "emit": sink,
        }
        values.update(overrides)
        return AgentContext(**values)

    return _make


def messages_text(messages: Sequence[ModelMessage]) -> str:
    return " ".join(str(part) for message in messages for part in message.parts)


@pytest.fixture
def transcript_text() -> Callable[[Sequence[ModelMessage]], str]:
    return messages_text


@pytest.fixture
def model_factory_for() -> Callable[[Optional[LanguageModel]], Callable[[Any], LanguageModel]]:
    """Wrap a model into an agent ``model_factory`` that also records the options it received."""

    def _wrap(model: LanguageModel) -> Callable[[Any], LanguageModel]:
        def _factory(options: Any) -> LanguageModel:
            _factory.options.append(options)
            return model

        _factory.options = []
        return _factory

    return _wrap
