from __future__ import annotations

"""Convenience factories for wiring the agent core.

This module builds the default tool and agent registries, applies the default
per-agent allowlists and assembles a ``CopilotService``.

The intent is to keep application wiring and tests concise, while still
allowing deployments to provide their own document search, model factory or
settings.
"""

from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .abstraction.base import DocumentSearch, StaticDocumentSearch
from .abstraction.model_provider import ModelFactory, default_model_factory
from .actions.ledger import PendingActionLedger
from .agents.base import ToolLoopConfig
from .agents.monorepo_rag import MonorepoAgent
from .agents.product_qa import ProductQAAgent
from .agents.registry import AgentRegistry
from .agents.ticket_handler import TicketHandlerAgent
from .service import CopilotService
from .tools.builtin import builtin_tools
from .tools.registry import ToolRegistry

if TYPE_CHECKING:
    from copilot_ai.server.core.config import Settings

DEFAULT_ALLOWLISTS: Dict[str, List[str]] = {
    "product-qa": ["calculator", "time"],
    "monorepo-rag": ["search-docs"],
    "ticket-handler": ["create-ticket"],
}


def build_tool_registry(search: Optional[DocumentSearch] = None) -> ToolRegistry:
    """Build a ``ToolRegistry`` holding the built-in tools and the default allowlists."""
    registry = ToolRegistry()
    for tool in builtin_tools(search or StaticDocumentSearch()):
        registry.register(tool)
    for agent_id, tool_ids in DEFAULT_ALLOWLISTS.items():
        registry.set_allowlist(agent_id, tool_ids)
    return registry


def build_agent_registry(
    *,
    model_factory: Optional[ModelFactory] = None,
    tool_loop: Optional[ToolLoopConfig] = None,
) -> AgentRegistry:
    """Build an ``AgentRegistry`` holding the built-in agents."""
    registry = AgentRegistry()
    for agent_cls in (ProductQAAgent, MonorepoAgent, TicketHandlerAgent):
        registry.register(agent_cls(model_factory=model_factory, tool_loop=tool_loop))
    return registry


def build_default_registries(
    *,
    search: Optional[DocumentSearch] = None,
    model_factory: Optional[ModelFactory] = None,
    tool_loop: Optional[ToolLoopConfig] = None,
) -> Tuple[AgentRegistry, ToolRegistry]:
    return (
        build_agent_registry(model_factory=model_factory, tool_loop=tool_loop),
        build_tool_registry(search),
    )


def build_copilot_service(
    settings: Optional["Settings"] = None,
    *,
    search: Optional[DocumentSearch] = None,
    model_factory: Optional[ModelFactory] = None,
    ledger: Optional[PendingActionLedger] = None,
) -> CopilotService:
    """Wire fresh registries, the built-in tools and agents, and a ledger into a ``CopilotService``."""
    if settings is None:
        from copilot_ai.server.core.config import settings as app_settings

        settings = app_settings

    runtime = settings.runtime
    agents, tools = build_default_registries(
        search=search,
        model_factory=model_factory or default_model_factory(settings),
        tool_loop=ToolLoopConfig(
            max_steps=runtime.max_tool_steps,
            tool_timeout_seconds=runtime.tool_timeout_ms / 1000,
        ),
    )
    return CopilotService(
        agents=agents,
        tools=tools,
        ledger=ledger if ledger is not None else PendingActionLedger(ttl_seconds=runtime.action_ttl_seconds),
        settings=settings,
    )
