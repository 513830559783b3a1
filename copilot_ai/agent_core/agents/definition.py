"""Agent definition protocol."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Type, runtime_checkable

from pydantic import BaseModel

from ..runtime.models import AgentContext
from ..schemas.domain import AgentMetadata


@runtime_checkable
class AgentDefinition(Protocol):
    """A named, schema-typed task handler.

    ``input_schema`` and ``output_schema`` stay inside the process; only
    ``{id, name}`` metadata is exposed to external callers.
    """

    id: str
    name: str
    input_schema: Type[BaseModel]
    output_schema: Type[BaseModel]

    async def run(self, input: Any, context: Optional[AgentContext] = None) -> Any: ...


def agent_metadata(agent: AgentDefinition) -> AgentMetadata:
    return AgentMetadata(id=agent.id, name=agent.name)
