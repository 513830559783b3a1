from __future__ import annotations

"""Tool registry.

The registry is the source of truth for tool definitions and for which tools
each agent may invoke.

Allowlists are replaced wholesale and are not validated when set; a dangling
tool id surfaces as ``UnknownAllowlistedToolError`` when the allowlist is
resolved. Agents without an allowlist get no tools unless the caller opts in
to ``fallback_to_all``.

Instances are created explicitly and injected; there is no module-level
registry.
"""

import threading
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import DuplicateToolError, ToolNotFoundError, UnknownAllowlistedToolError
from ..schemas.domain import ToolMetadata
from .definitions import ToolDefinition


class ToolRegistry:
    """
    In-memory mapping of tool ids to definitions plus per-agent allowlists.

    Notes:
        - ``register`` refuses to overwrite an existing tool id.
        - ``get`` raises ``ToolNotFoundError`` if the tool is missing.
        - Writes are serialized with a lock so the registry can be shared across threads.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDefinition] = {}
        self._allowlists: Dict[str, Tuple[str, ...]] = {}
        self._lock = threading.Lock()

    def register(self, tool: ToolDefinition) -> None:
        """
        Register a tool definition.

        Args:
            tool: The tool to register.

        Raises:
            DuplicateToolError: If a tool with the same id is already registered.
        """
        with self._lock:
            if tool.id in self._tools:
                raise DuplicateToolError(tool.id)
            self._tools[tool.id] = tool

    def get(self, tool_id: str) -> ToolDefinition:
        """
        Retrieve a registered tool by id.

        Raises:
            ToolNotFoundError: If no tool is registered with the given id.
        """
        try:
            return self._tools[tool_id]
        except KeyError:
            raise ToolNotFoundError(tool_id) from None

    def has(self, tool_id: str) -> bool:
        return tool_id in self._tools

    def list(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def list_metadata(self) -> List[ToolMetadata]:
        return [tool.metadata() for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def set_allowlist(self, agent_id: str, tool_ids: Iterable[str]) -> None:
        """
        Replace the allowlist for ``agent_id``.

        Ids are not checked against the registered tools here; resolution
        reports unknown ids.
        """
        with self._lock:
            self._allowlists[agent_id] = tuple(dict.fromkeys(tool_ids))

    def get_allowlist(self, agent_id: str) -> Optional[List[str]]:
        """Return the allowlisted tool ids, or None when no allowlist was ever set."""
        allowlist = self._allowlists.get(agent_id)
        return list(allowlist) if allowlist is not None else None

    def is_allowed(self, agent_id: str, tool_id: str) -> bool:
        return tool_id in self._allowlists.get(agent_id, ())

    def get_allowed_tools(self, agent_id: str) -> List[ToolDefinition]:
        """
        Resolve the allowlist of ``agent_id`` to tool definitions.

        Returns:
            The allowlisted tools in allowlist order; empty when no allowlist exists.

        Raises:
            UnknownAllowlistedToolError: If an allowlisted id is not registered.
        """
        out: List[ToolDefinition] = []
        for tool_id in self._allowlists.get(agent_id, ()):
            tool = self._tools.get(tool_id)
            if tool is None:
                raise UnknownAllowlistedToolError(agent_id, tool_id)
            out.append(tool)
        return out

    def get_tools_for_agent(self, agent_id: str, *, fallback_to_all: bool = False) -> List[ToolDefinition]:
        """
        Tools permitted for ``agent_id``.

        With an allowlist, exactly the allowlisted tools. Without one, no tools,
        or every registered tool when ``fallback_to_all`` is set (development only).
        """
        if agent_id in self._allowlists:
            return self.get_allowed_tools(agent_id)
        return self.list() if fallback_to_all else []
