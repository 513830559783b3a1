"""Pydantic AI Framework Adapter.

This module implements the ``LanguageModel`` abstraction on top of Pydantic
AI, so the tool-calling loop and structured extraction run against any model
Pydantic AI supports (OpenAI in production, ``FunctionModel`` / ``TestModel``
in tests).

- ``invoke`` performs a single direct model request with the agent's tools
  bound as function tools. Tool calls are returned to the caller and never
  executed here; the tool-calling loop owns execution.
- ``extract`` runs a one-shot Pydantic AI ``Agent`` whose only output is a
  tool named ``extract`` carrying the requested schema, with the whole
  conversation passed as message history.
"""

from typing import Any, Optional, Sequence, Type, TypeVar

from pydantic_ai import Agent, ModelSettings
from pydantic_ai.direct import model_request
from pydantic_ai.messages import ModelMessage, ModelResponse
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.output import ToolOutput
from pydantic_ai.tools import ToolDefinition as ModelToolDefinition

from copilot_ai.core.logging_config import get_logger

from ..base import LanguageModel

logger = get_logger(__name__)

T = TypeVar("T")

EXTRACTION_PROMPT = (
    "Using only the conversation above, produce the final answer by calling the extract tool. "
    "Do not invent tool results."
)


class PydanticAILanguageModel(LanguageModel):
    """Language model backed by a Pydantic AI ``Model``.

    Args:
        model: A Pydantic AI model instance or a model name such as ``openai:gpt-4o-mini``.
        temperature: Sampling temperature (None leaves the provider default).
        max_tokens: Optional completion token cap.
    """

    def __init__(self, model: Model | str, *, temperature: Optional[float] = 0.0, max_tokens: Optional[int] = None) -> None:
        self._model = model
        settings = ModelSettings()
        if temperature is not None:
            settings["temperature"] = temperature
        if max_tokens is not None:
            settings["max_tokens"] = max_tokens
        self._settings = settings

    @property
    def model(self) -> Model | str:
        return self._model

    async def invoke(
        self,
        messages: Sequence[ModelMessage],
        *,
        tools: Optional[Sequence[ModelToolDefinition]] = None,
    ) -> ModelResponse:
        params = ModelRequestParameters(function_tools=list(tools or []), allow_text_output=True)
        logger.debug(f"Model request with {len(messages)} message(s) and {len(params.function_tools)} tool(s)")
        return await model_request(
            self._model,
            list(messages),
            model_settings=self._settings or None,
            model_request_parameters=params,
        )

    async def extract(
        self,
        messages: Sequence[ModelMessage],
        *,
        output_type: Type[T],
        strict: bool = False,
    ) -> T:
        agent: Agent[None, Any] = Agent(
            self._model,
            output_type=ToolOutput(output_type, name="extract", strict=strict),
            model_settings=self._settings or None,
        )
        result = await agent.run(EXTRACTION_PROMPT, message_history=list(messages))
        return result.output
