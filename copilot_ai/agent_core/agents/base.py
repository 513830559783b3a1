from __future__ import annotations

"""Base agent template.

Every built-in agent follows the same template:

1. fill context defaults (``with_default_agent_context``),
2. create the model for this run,
3. build the system prompt and user input,
4. run the tool-calling loop over the resolved tools, or make one plain model
   call when the agent does not use tools,
5. hand the conversation to ``handle_messages``, which by default extracts
   output conforming to ``output_schema``,
6. re-validate the output against ``output_schema``.

Subclasses override the prompt builders and, when they need to enforce domain
invariants on the conversation, ``handle_messages``.

Tool resolution
---------------

``resolve_tools_for_agent`` uses the explicit ``context.tools`` when given,
otherwise the registry allowlist for the agent, otherwise nothing.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Sequence, Type

from pydantic import BaseModel
from pydantic_ai.messages import ModelMessage

from ..abstraction.base import LanguageModel
from ..abstraction.model_provider import AgentModelOptions, ModelFactory, default_model_factory
from ..errors import ModelError
from ..runtime.cancellation import run_cancellable
from ..runtime.models import AgentContext, with_default_agent_context
from ..runtime.structured import run_structured
from ..runtime.tool_loop import run_tool_calling_loop, seed_messages
from ..tools.definitions import ToolDefinition
from ..validation import parse_or_raise, validate

logger = logging.getLogger(__name__)

MessageSource = Literal["tool", "prompt"]


@dataclass(frozen=True)
class ToolLoopConfig:
    max_steps: Optional[int] = None
    tool_timeout_seconds: Optional[float] = None


def resolve_tools_for_agent(agent_id: str, context: AgentContext) -> List[ToolDefinition]:
    """Tools available to ``agent_id`` for this invocation."""
    if context.tools is not None:
        return list(context.tools)
    if context.tool_registry is not None:
        return context.tool_registry.get_tools_for_agent(agent_id, fallback_to_all=context.tool_fallback_to_all)
    return []


async def run_with_resolved_tools(
    *,
    agent_id: str,
    model: LanguageModel,
    system: str,
    user_input: str,
    context: AgentContext,
    max_steps: Optional[int] = None,
    tool_timeout_seconds: Optional[float] = None,
) -> List[ModelMessage]:
    """Run the tool loop over the agent's tools, or a single plain model call when it has none."""
    tools = resolve_tools_for_agent(agent_id, context)
    if tools:
        return await run_tool_calling_loop(
            model=model,
            tools=tools,
            context=context,
            system=system,
            user_input=user_input,
            max_steps=max_steps,
            tool_timeout_seconds=tool_timeout_seconds,
        )
    return await run_plain(model=model, system=system, user_input=user_input, context=context)


async def run_plain(*, model: LanguageModel, system: str, user_input: str, context: AgentContext) -> List[ModelMessage]:
    messages = seed_messages(system, user_input)
    response = await run_cancellable(model.invoke(messages), context.cancel)
    return [*messages, response]


class BaseAgent(ABC):
    """Template for agents that build a prompt, optionally use tools and return structured output.

    Args:
        id: Unique agent id.
        name: Display name.
        input_schema: Model the input must satisfy.
        output_schema: Model the output must satisfy.
        model_factory: Creates the language model for each run; defaults to the
            OpenAI model from settings.
        tool_loop: Step budget and per-tool timeout for the tool-calling loop.
    """

    def __init__(
        self,
        *,
        id: str,
        name: str,
        input_schema: Type[BaseModel],
        output_schema: Type[BaseModel],
        model_factory: Optional[ModelFactory] = None,
        tool_loop: Optional[ToolLoopConfig] = None,
    ) -> None:
        self.id = id
        self.name = name
        self.input_schema = input_schema
        self.output_schema = output_schema
        self._model_factory = model_factory or default_model_factory()
        self._tool_loop = tool_loop or ToolLoopConfig()

    async def run(self, input: Any, context: Optional[AgentContext] = None) -> Any:
        """Run the agent once and return output that satisfies ``output_schema``."""
        if not isinstance(input, self.input_schema):
            input = parse_or_raise(self.input_schema, input, message=f"Invalid input for agent {self.id}")
        ctx = with_default_agent_context(self.id, context)
        model = self._model_factory(self.get_model_options(input, ctx))

        system = self.build_system_prompt(input, ctx)
        user_input = self.build_user_input(input, ctx)

        source: MessageSource
        if self.should_use_tool_loop(input, ctx):
            loop_config = self.get_tool_loop_config(input, ctx)
            messages = await run_with_resolved_tools(
                agent_id=self.id,
                model=model,
                system=system,
                user_input=user_input,
                context=ctx,
                max_steps=loop_config.max_steps,
                tool_timeout_seconds=loop_config.tool_timeout_seconds,
            )
            source = "tool"
        else:
            messages = await run_plain(model=model, system=system, user_input=user_input, context=ctx)
            source = "prompt"

        logger.debug(f"Agent {self.id} collected {len(messages)} message(s) via {source}")
        output = await self.handle_messages(input=input, context=ctx, model=model, messages=messages, source=source)

        checked = validate(self.output_schema, output)
        if not checked.ok:
            raise ModelError(
                f"Agent {self.id} produced output that does not match its schema",
                details=[issue.model_dump() for issue in checked.issues],
            )
        return checked.value

    @abstractmethod
    def build_system_prompt(self, input: Any, context: AgentContext) -> str: ...

    @abstractmethod
    def build_user_input(self, input: Any, context: AgentContext) -> str: ...

    def should_use_tool_loop(self, input: Any, context: AgentContext) -> bool:
        return False

    def get_model_options(self, input: Any, context: AgentContext) -> AgentModelOptions:
        return AgentModelOptions()

    def get_tool_loop_config(self, input: Any, context: AgentContext) -> ToolLoopConfig:
        return self._tool_loop

    def get_structured_strict(self, input: Any, context: AgentContext) -> bool:
        """Loose extraction by default; ``run`` re-validates the result either way."""
        return False

    async def handle_messages(
        self,
        *,
        input: Any,
        context: AgentContext,
        model: LanguageModel,
        messages: Sequence[ModelMessage],
        source: MessageSource,
    ) -> Any:
        return await self.run_structured_extraction(
            schema=self.output_schema, messages=messages, model=model, context=context, input=input
        )

    async def run_structured_extraction(
        self,
        *,
        schema: Type[BaseModel],
        messages: Sequence[ModelMessage],
        model: LanguageModel,
        context: AgentContext,
        input: Any,
        strict: Optional[bool] = None,
    ) -> Any:
        if strict is None:
            strict = self.get_structured_strict(input, context)
        return await run_structured(model, output_type=schema, messages=messages, strict=strict, cancel=context.cancel)
