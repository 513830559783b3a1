"""Product Q&A agent: answers product questions, using tools when they help."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from ..runtime.models import AgentContext
from ..schemas.base import ApiSchema
from .base import BaseAgent

AGENT_ID = "product-qa"


class ProductQAInput(ApiSchema):
    question: str = Field(min_length=1, description="The user's product question")
    product_context: Optional[str] = Field(default=None, description="Extra product details supplied by the UI")


class AnswerConfidence(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class ProductQAOutput(ApiSchema):
    answer: str
    confidence: AnswerConfidence
    sources: Optional[List[str]] = Field(default_factory=list)
    suggested_follow_ups: Optional[List[str]] = Field(default_factory=list)

    @field_validator("sources", "suggested_follow_ups", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value


class ProductQAAgent(BaseAgent):
    def __init__(self, **kwargs) -> None:
        super().__init__(
            id=AGENT_ID, name="Product Q&A", input_schema=ProductQAInput, output_schema=ProductQAOutput, **kwargs
        )

    def should_use_tool_loop(self, input: ProductQAInput, context: AgentContext) -> bool:
        return True

    def build_system_prompt(self, input: ProductQAInput, context: AgentContext) -> str:
        sections = [
            "You are a Product Q&A copilot.",
            "Use tools when needed. If a tool is not necessary, answer directly.",
            "Do not invent tool results.",
            f"Product Context:\n{input.product_context}" if input.product_context else "",
            f"User: {context.user_id} | Tenant: {context.tenant_id}",
        ]
        return "\n\n".join(section for section in sections if section)

    def build_user_input(self, input: ProductQAInput, context: AgentContext) -> str:
        return input.question
