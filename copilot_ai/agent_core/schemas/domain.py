from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import Field

from .base import ApiSchema, BaseSchema


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


ActionArgValue = Union[str, int, float, bool, None]


class RiskLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ToolEffect(str, Enum):
    read = "read"
    write = "write"


class PendingActionStatus(str, Enum):
    proposed = "proposed"
    executed = "executed"
    cancelled = "cancelled"
    expired = "expired"


class AuthContext(BaseSchema):
    """Caller identity resolved by the boundary layer."""

    user_id: str
    tenant_id: str
    roles: List[str] = Field(default_factory=list)


class ProposedAction(ApiSchema):
    """A write action an agent proposes; executed only after human confirmation."""

    action_id: Optional[str] = Field(
        default=None, description="Unique identifier used to track this proposed action."
    )
    tool_id: str = Field(
        min_length=1, description="Identifier of the tool to execute once confirmed (e.g., create-ticket)."
    )
    args: Dict[str, ActionArgValue] = Field(
        default_factory=dict, description="Arguments to supply to the tool if the action is confirmed."
    )
    title: str = Field(min_length=1, description="Short UI label that explains the action.")
    risk: RiskLevel = Field(description="Relative risk of running the action without human review.")
    requires_confirmation: Literal[True] = Field(
        default=True, description="Write actions must always be confirmed before execution."
    )
    preview: str = Field(
        min_length=1, description="Human-readable summary of what the tool will do when executed."
    )


class ActionHelperOutput(ApiSchema):
    summary: str = Field(
        min_length=1, description="Concise natural-language explanation of the agent's recommendation."
    )
    next_steps: List[str] = Field(
        default_factory=list, description="Non-tool actions the user can perform immediately."
    )
    proposed_actions: List[ProposedAction] = Field(
        default_factory=list, description="Write actions that require explicit confirmation before execution."
    )


class PendingActionRecord(ApiSchema):
    action_id: str
    agent_id: str
    tool_id: str
    args: Dict[str, Any] = Field(default_factory=dict)

    user_id: str
    tenant_id: str
    trace_id: Optional[str] = None

    status: PendingActionStatus = PendingActionStatus.proposed
    created_at: datetime = Field(default_factory=_utc_now)
    expires_at: datetime
    executed_at: Optional[datetime] = None
    result_summary: Optional[str] = None


class AgentMetadata(ApiSchema):
    id: str
    name: str


class ToolMetadata(ApiSchema):
    id: str
    name: str
    description: Optional[str] = None
