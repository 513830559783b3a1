"""Abstractions over the external collaborators of the runtime.

- ``LanguageModel``: invoke with bound tools, extract structured output.
- ``DocumentSearch``: ranked documentation chunks for a query.
- ``create_language_model``: production model built from settings.
"""

from .adapters import PydanticAILanguageModel
from .base import DocumentChunk, DocumentMatch, DocumentSearch, LanguageModel, StaticDocumentSearch
from .model_provider import AgentModelOptions, ModelFactory, create_language_model, default_model_factory

__all__ = [
    "AgentModelOptions",
    "DocumentChunk",
    "DocumentMatch",
    "DocumentSearch",
    "LanguageModel",
    "ModelFactory",
    "PydanticAILanguageModel",
    "StaticDocumentSearch",
    "create_language_model",
    "default_model_factory",
]
