"""Ticket handler agent: plans write actions without executing them.

The agent returns an ``ActionHelperOutput`` whose ``proposed_actions`` are
registered in the pending action ledger by the service layer and only run
once a human confirms them.
"""

from __future__ import annotations

import uuid
from typing import List, Optional, Sequence

from pydantic import Field
from pydantic_ai.messages import ModelMessage

from ..abstraction.base import LanguageModel
from ..runtime.models import AgentContext
from ..schemas.base import ApiSchema
from ..schemas.domain import ActionHelperOutput, ProposedAction
from ..tools.builtin import TicketPriority
from .base import BaseAgent, MessageSource

AGENT_ID = "ticket-handler"
MIN_ACTION_ID_LENGTH = 6


class TicketHandlerInput(ApiSchema):
    request: str = Field(min_length=1)
    context: Optional[str] = None
    urgency: TicketPriority = TicketPriority.medium


def ensure_action_ids(actions: Sequence[ProposedAction]) -> List[ProposedAction]:
    """Give every action an id of at least six characters, keeping the ones that already qualify."""
    out: List[ProposedAction] = []
    for action in actions:
        if action.action_id and len(action.action_id) >= MIN_ACTION_ID_LENGTH:
            out.append(action)
        else:
            out.append(action.model_copy(update={"action_id": f"action-{uuid.uuid4().hex[:8]}"}))
    return out


class TicketHandlerAgent(BaseAgent):
    def __init__(self, **kwargs) -> None:
        super().__init__(
            id=AGENT_ID,
            name="Ticket Handler",
            input_schema=TicketHandlerInput,
            output_schema=ActionHelperOutput,
            **kwargs,
        )

    def should_use_tool_loop(self, input: TicketHandlerInput, context: AgentContext) -> bool:
        return True

    def build_system_prompt(self, input: TicketHandlerInput, context: AgentContext) -> str:
        return "\n".join(
            [
                "You are the Ticket Handler action helper agent.",
                "You propose safe write actions but NEVER execute them yourself.",
                "Every response must:",
                "- Include a short summary of the situation",
                "- Provide nextSteps that the user can perform without tools",
                "- Populate proposedActions with machine-readable intents, using the create-ticket tool when relevant",
                "Rules:",
                "1. Do not fabricate tool results or claim that a ticket has already been created.",
                "2. Every proposed action must set requiresConfirmation = true.",
                "3. args must include the best-effort payload for the referenced tool "
                "(title, description, priority, tags, requester).",
                "4. Use risk to describe blast radius if the action is executed incorrectly.",
                "5. If there is not enough information to safely act, return an empty proposedActions array "
                "and add clarification steps to nextSteps.",
            ]
        )

    def build_user_input(self, input: TicketHandlerInput, context: AgentContext) -> str:
        parts = [
            f"User request:\n{input.request}",
            f"Additional context:\n{input.context}" if input.context else None,
            f"Urgency: {input.urgency.value}",
            f"Tenant: {context.tenant_id}",
        ]
        return "\n\n".join(part for part in parts if part)

    async def handle_messages(
        self,
        *,
        input: TicketHandlerInput,
        context: AgentContext,
        model: LanguageModel,
        messages: Sequence[ModelMessage],
        source: MessageSource,
    ) -> ActionHelperOutput:
        plan: ActionHelperOutput = await self.run_structured_extraction(
            schema=ActionHelperOutput, messages=messages, model=model, context=context, input=input, strict=False
        )
        return plan.model_copy(update={"proposed_actions": ensure_action_ids(plan.proposed_actions or [])})
