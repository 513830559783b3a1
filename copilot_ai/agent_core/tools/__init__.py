"""Tool definitions, registry, invocation adapter and built-in tools."""

from .adapter import (
    SAFE_TOOL_ERROR_MESSAGES,
    ToolCallOutcome,
    ToolErrorReason,
    ToolInvocationAdapter,
    safe_tool_error_content,
)
from .builtin import builtin_tools, calculator_tool, create_ticket_tool, make_search_docs_tool, time_tool
from .definitions import ToolDefinition, ToolPermissions, tool_requires_confirmation
from .registry import ToolRegistry

__all__ = [
    "SAFE_TOOL_ERROR_MESSAGES",
    "ToolCallOutcome",
    "ToolErrorReason",
    "ToolInvocationAdapter",
    "safe_tool_error_content",
    "builtin_tools",
    "calculator_tool",
    "create_ticket_tool",
    "make_search_docs_tool",
    "time_tool",
    "ToolDefinition",
    "ToolPermissions",
    "tool_requires_confirmation",
    "ToolRegistry",
]
