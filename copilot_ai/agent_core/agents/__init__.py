"""Agent definitions, the agent registry and the built-in agents."""

from .base import BaseAgent, ToolLoopConfig, resolve_tools_for_agent, run_with_resolved_tools
from .definition import AgentDefinition
from .monorepo_rag import MonorepoAgent
from .product_qa import ProductQAAgent
from .registry import AgentRegistry
from .ticket_handler import TicketHandlerAgent

__all__ = [
    "AgentDefinition",
    "AgentRegistry",
    "BaseAgent",
    "MonorepoAgent",
    "ProductQAAgent",
    "TicketHandlerAgent",
    "ToolLoopConfig",
    "resolve_tools_for_agent",
    "run_with_resolved_tools",
]
