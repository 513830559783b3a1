"""Framework adapters implementing the ``LanguageModel`` abstraction."""

from .pydantic_ai import PydanticAILanguageModel

__all__ = ["PydanticAILanguageModel"]
