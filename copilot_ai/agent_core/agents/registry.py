from __future__ import annotations

"""Agent registry.

Holds the agent definitions registered at startup. Agents are never
unregistered or replaced.
"""

import threading
from typing import Dict, List

from ..errors import AgentNotFoundError, DuplicateAgentError
from ..schemas.domain import AgentMetadata
from .definition import AgentDefinition, agent_metadata


class AgentRegistry:
    """
    In-memory mapping of agent ids to agent definitions.

    Notes:
        - ``register`` refuses duplicate ids.
        - ``get`` raises ``AgentNotFoundError`` if the agent is missing.
    """

    def __init__(self) -> None:
        self._agents: Dict[str, AgentDefinition] = {}
        self._lock = threading.Lock()

    def register(self, agent: AgentDefinition) -> None:
        """
        Register an agent definition.

        Raises:
            DuplicateAgentError: If an agent with the same id is already registered.
        """
        with self._lock:
            if agent.id in self._agents:
                raise DuplicateAgentError(agent.id)
            self._agents[agent.id] = agent

    def get(self, agent_id: str) -> AgentDefinition:
        """
        Retrieve a registered agent by id.

        Raises:
            AgentNotFoundError: If no agent is registered with the given id.
        """
        try:
            return self._agents[agent_id]
        except KeyError:
            raise AgentNotFoundError(agent_id) from None

    def has(self, agent_id: str) -> bool:
        return agent_id in self._agents

    def list(self) -> List[AgentDefinition]:
        return list(self._agents.values())

    def list_metadata(self) -> List[AgentMetadata]:
        """Return ``{id, name}`` pairs only; schemas and run logic stay private."""
        return [agent_metadata(agent) for agent in self._agents.values()]

    def __len__(self) -> int:
        return len(self._agents)
