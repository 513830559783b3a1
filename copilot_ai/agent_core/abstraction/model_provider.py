"""Language model construction from application settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from pydantic_ai import ModelSettings
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from .adapters.pydantic_ai import PydanticAILanguageModel
from .base import LanguageModel

if TYPE_CHECKING:
    from copilot_ai.server.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentModelOptions:
    """Per-agent model options; unset fields fall back to settings."""

    temperature: Optional[float] = 0.0
    model: Optional[str] = None


ModelFactory = Callable[[AgentModelOptions], LanguageModel]


def create_language_model(
    settings: Optional["Settings"] = None,
    *,
    temperature: Optional[float] = 0.0,
    model: Optional[str] = None,
) -> LanguageModel:
    """
    Build the production language model from the OpenAI settings.

    Args:
        settings: Application settings (the module-level settings when omitted).
        temperature: Sampling temperature.
        model: Model name overriding ``OPENAI_MODEL``.

    Returns:
        A ``PydanticAILanguageModel`` wrapping an OpenAI chat model.
    """
    if settings is None:
        from copilot_ai.server.core.config import settings as app_settings

        settings = app_settings

    config = settings.openai
    model_name = model or config.model
    api_key = config.api_key.get_secret_value() if config.api_key else None
    provider = OpenAIProvider(api_key=api_key, base_url=config.base_url)

    logger.debug(f"Creating OpenAI model: {model_name} with Pydantic AI")
    chat_model = OpenAIChatModel(model_name, provider=provider, settings=ModelSettings())
    return PydanticAILanguageModel(chat_model, temperature=temperature)


def default_model_factory(settings: Optional["Settings"] = None) -> ModelFactory:
    """Return a factory creating a model per agent run from ``settings``."""

    def _factory(options: AgentModelOptions) -> LanguageModel:
        return create_language_model(settings, temperature=options.temperature, model=options.model)

    return _factory
