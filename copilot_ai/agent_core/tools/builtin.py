from __future__ import annotations

"""Built-in tools shipped with the copilot.

- ``calculator``: basic arithmetic.
- ``time``: current time in a timezone.
- ``create-ticket``: write tool that records a ticket; requires confirmation.
- ``search-docs``: documentation search delegating to a ``DocumentSearch``.

All built-ins require the ``admin`` role and the ``dev-tenant`` tenant.
Outputs are serialized for the model with camelCase keys.
"""

import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional
from zoneinfo import ZoneInfo

from pydantic import Field

from ..abstraction.base import DocumentSearch
from ..runtime.models import AgentContext
from ..schemas.base import ApiSchema
from ..schemas.domain import ToolEffect
from .definitions import ToolDefinition, ToolPermissions

DEV_PERMISSIONS = ToolPermissions(required_roles=["admin"], allowed_tenants=["dev-tenant"])

SNIPPET_LENGTH = 320


# ---------------------------------------------------------------------------
# calculator
# ---------------------------------------------------------------------------


class CalculatorOperation(str, Enum):
    add = "add"
    subtract = "subtract"
    multiply = "multiply"
    divide = "divide"


class CalculatorInput(ApiSchema):
    operation: CalculatorOperation
    a: float
    b: float


class CalculatorInputs(ApiSchema):
    a: float
    b: float


class CalculatorOutput(ApiSchema):
    result: float
    operation: str
    inputs: CalculatorInputs


async def _calculate(data: CalculatorInput, _context: AgentContext) -> CalculatorOutput:
    if data.operation is CalculatorOperation.add:
        result = data.a + data.b
    elif data.operation is CalculatorOperation.subtract:
        result = data.a - data.b
    elif data.operation is CalculatorOperation.multiply:
        result = data.a * data.b
    else:
        if data.b == 0:
            raise ZeroDivisionError("Division by zero")
        result = data.a / data.b
    return CalculatorOutput(
        result=result, operation=data.operation.value, inputs=CalculatorInputs(a=data.a, b=data.b)
    )


calculator_tool = ToolDefinition(
    id="calculator",
    name="Calculator",
    description="Performs basic arithmetic: add, subtract, multiply or divide two numbers.",
    permissions=DEV_PERMISSIONS,
    effect=ToolEffect.read,
    input_schema=CalculatorInput,
    output_schema=CalculatorOutput,
    run=_calculate,
)


# ---------------------------------------------------------------------------
# time
# ---------------------------------------------------------------------------


class TimeInput(ApiSchema):
    timezone: str = Field(default="UTC", description="IANA timezone name, e.g. Europe/Berlin")


class TimeOutput(ApiSchema):
    current_time: str
    timezone: str
    timestamp: int = Field(description="Milliseconds since the Unix epoch")


async def _current_time(data: TimeInput, _context: AgentContext) -> TimeOutput:
    now = datetime.now(timezone.utc)
    local = now if data.timezone.upper() == "UTC" else now.astimezone(ZoneInfo(data.timezone))
    return TimeOutput(current_time=local.isoformat(), timezone=data.timezone, timestamp=int(now.timestamp() * 1000))


time_tool = ToolDefinition(
    id="time",
    name="Current Time",
    description="Returns the current time in the requested timezone.",
    permissions=DEV_PERMISSIONS,
    effect=ToolEffect.read,
    input_schema=TimeInput,
    output_schema=TimeOutput,
    run=_current_time,
)


# ---------------------------------------------------------------------------
# create-ticket
# ---------------------------------------------------------------------------


class TicketPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class CreateTicketInput(ApiSchema):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1, description="Detailed summary of the user request.")
    priority: TicketPriority = Field(
        default=TicketPriority.medium, description="Relative urgency so downstream workflows can triage."
    )
    tags: List[str] = Field(default_factory=list, description="Optional tags that help categorize the ticket.")
    requester: Optional[str] = None


class CreateTicketOutput(ApiSchema):
    ticket_id: str
    status: Literal["created"] = "created"
    created_at: str
    preview: str


async def _create_ticket(data: CreateTicketInput, _context: AgentContext) -> CreateTicketOutput:
    ticket_id = f"TICKET-{uuid.uuid4().hex[:8].upper()}"
    return CreateTicketOutput(
        ticket_id=ticket_id,
        created_at=datetime.now(timezone.utc).isoformat(),
        preview=f'Ticket "{data.title}" captured with {data.priority.value} priority ({ticket_id}).',
    )


create_ticket_tool = ToolDefinition(
    id="create-ticket",
    name="Create Ticket",
    description="Creates a placeholder ticket and returns its id.",
    permissions=DEV_PERMISSIONS,
    effect=ToolEffect.write,
    requires_confirmation=True,
    input_schema=CreateTicketInput,
    output_schema=CreateTicketOutput,
    run=_create_ticket,
)


# ---------------------------------------------------------------------------
# search-docs
# ---------------------------------------------------------------------------


class SearchDocsInput(ApiSchema):
    query: str = Field(min_length=1)
    limit: int = Field(default=3, ge=1, le=20)


class SearchDocsResult(ApiSchema):
    doc_id: str
    chunk_id: str
    title: str
    snippet: str
    score: float


class SearchDocsOutput(ApiSchema):
    results: List[SearchDocsResult]
    query: str
    count: int


def summarize_snippet(text: str) -> str:
    condensed = re.sub(r"\s+", " ", text).strip()
    if len(condensed) <= SNIPPET_LENGTH:
        return condensed
    return f"{condensed[:SNIPPET_LENGTH].rstrip()}…"


def make_search_docs_tool(search: DocumentSearch) -> ToolDefinition:
    """Build the ``search-docs`` tool over ``search``."""

    async def _search_docs(data: SearchDocsInput, _context: AgentContext) -> SearchDocsOutput:
        query = data.query.strip()
        if not query:
            raise ValueError("Query is required")
        try:
            matches = await search.search(query, data.limit)
        except Exception as exc:
            raise RuntimeError(f"Documentation search failed: {exc}") from exc
        results = [
            SearchDocsResult(
                doc_id=match.doc_id,
                chunk_id=match.chunk_id,
                title=match.title or match.doc_id,
                snippet=summarize_snippet(match.snippet),
                score=match.score,
            )
            for match in matches
        ]
        return SearchDocsOutput(results=results, query=query, count=len(results))

    return ToolDefinition(
        id="search-docs",
        name="Search Documentation",
        description="Search the ingested platform documentation and return the most relevant chunks.",
        permissions=DEV_PERMISSIONS,
        effect=ToolEffect.read,
        input_schema=SearchDocsInput,
        output_schema=SearchDocsOutput,
        run=_search_docs,
    )


def builtin_tools(search: DocumentSearch) -> List[ToolDefinition]:
    return [calculator_tool, time_tool, create_ticket_tool, make_search_docs_tool(search)]
