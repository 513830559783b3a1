"""Tool definitions for copilot agents.

A tool is a named, schema-typed async function an agent may ask the model to
call. The ``id`` doubles as the function name the model sees. Write tools that
change state outside the runtime set ``requires_confirmation`` so they are
only ever executed after a human confirmed the proposed action.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from ..schemas.domain import ToolEffect, ToolMetadata
from ..validation import json_schema

# Called as ``await run(parsed_input, agent_context)``.
ToolRunner = Callable[..., Awaitable[Any]]


class ToolPermissions(BaseModel):
    """Role and tenant requirements checked before a tool runs.

    Every role in ``required_roles`` must be held by the caller; when
    ``allowed_tenants`` is non-empty the caller's tenant must be listed.
    """

    required_roles: List[str] = Field(default_factory=list)
    allowed_tenants: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ToolDefinition(BaseModel):
    """Pydantic model for tool definitions.

    Immutable once constructed; registries hand out the same instance to every
    invocation.
    """

    id: str = Field(..., min_length=1, description="Unique identifier, also the model-facing function name")
    name: str = Field(..., description="Human-readable tool name")
    description: Optional[str] = Field(default=None, description="What the tool does, shown to the model")
    permissions: Optional[ToolPermissions] = Field(default=None)
    effect: Optional[ToolEffect] = Field(default=None, description="read or write")
    requires_confirmation: bool = Field(
        default=False, description="Refuse inline execution; the action must be confirmed by a human first"
    )
    input_schema: Type[BaseModel] = Field(..., description="Pydantic model class for input validation")
    output_schema: Optional[Type[BaseModel]] = Field(default=None, description="Pydantic model class for output")
    run: ToolRunner = Field(..., description="Async callable executing the tool with parsed input and context")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    def get_input_schema_json(self) -> Dict[str, Any]:
        return json_schema(self.input_schema)

    def metadata(self) -> ToolMetadata:
        return ToolMetadata(id=self.id, name=self.name, description=self.description)


def tool_requires_confirmation(tool: ToolDefinition) -> bool:
    """True when the tool must not run inline.

    A ``write`` effect alone does not imply confirmation; only the explicit flag does.
    """
    return bool(tool.requires_confirmation)
