"""
Agent API Endpoints.

This module exposes agent execution and agent metadata:

- Run an agent and wait for the validated result (``POST /run``)
- Run an agent as a Server-Sent Events stream (``POST /stream``)
- List agents and read a single agent's metadata
- Read and replace an agent's tool allowlist

Agent schemas and run logic never leave the process; callers only see
``{id, name}`` metadata.
"""

import json

from fastapi import APIRouter, Request
from sse_starlette.sse import EventSourceResponse, ServerSentEvent

from copilot_ai.agent_core.runtime.streaming import StreamEvent
from copilot_ai.agent_core.schemas.api import (
    AgentToolsResponse,
    GetAgentResponse,
    ListAgentsResponse,
    RunAgentRequest,
    RunAgentSuccessResponse,
    SetAgentToolsRequest,
)
from copilot_ai.core.logging_config import get_logger
from copilot_ai.server.services.deps import AuthDep, CopilotServiceDep

logger = get_logger(__name__)
router = APIRouter()


def serialize_event(event: StreamEvent) -> ServerSentEvent:
    return ServerSentEvent(event=event.event, data=json.dumps(event.data, default=str))


@router.post(
    "/run",
    response_model=RunAgentSuccessResponse,
    summary="Run Agent",
    description="Execute an agent with validated input and return its schema-conforming output.",
    response_description="The agent result and execution time.",
)
async def run_agent(body: RunAgentRequest, service: CopilotServiceDep, auth: AuthDep):
    """
    Run an agent to completion.

    Errors are returned in the ``{ok: false, error, code}`` envelope with
    ``AGENT_NOT_FOUND`` (404), ``VALIDATION_ERROR`` (400), ``TIMEOUT_ERROR``
    (408) or ``MODEL_ERROR`` (500).
    """
    return await service.run_agent(body, auth)


@router.post(
    "/stream",
    summary="Stream Agent Run",
    description="Execute an agent and stream status, tool, result, error and done events over SSE.",
    responses={
        200: {
            "description": "SSE stream established",
            "content": {"text/event-stream": {"example": 'event: status\ndata: {"status": "started"}\n\n'}},
        }
    },
)
async def stream_agent(body: RunAgentRequest, request: Request, service: CopilotServiceDep, auth: AuthDep):
    """
    Stream an agent run via Server-Sent Events (SSE).

    The stream ends after the ``done`` event. Closing the connection cancels
    the run, including any in-flight model or tool call.
    """
    session = service.stream_agent(body, auth, is_disconnected=request.is_disconnected)
    logger.info(f"Starting event stream for agent: {session.agent_id}")

    async def event_generator():
        async for event in session.events():
            yield serialize_event(event)

    return EventSourceResponse(event_generator())


@router.get("/agents", response_model=ListAgentsResponse, summary="List Agents")
async def list_agents(service: CopilotServiceDep):
    return service.list_agents()


@router.get("/agents/{agent_id}", response_model=GetAgentResponse, summary="Get Agent")
async def get_agent(agent_id: str, service: CopilotServiceDep):
    return service.get_agent(agent_id)


@router.get(
    "/agents/{agent_id}/tools",
    response_model=AgentToolsResponse,
    summary="Get Agent Tools",
    description="List the tools the agent may use and every registered tool.",
)
async def get_agent_tools(agent_id: str, service: CopilotServiceDep):
    return service.get_agent_tools(agent_id)


@router.put(
    "/agents/{agent_id}/tools",
    response_model=AgentToolsResponse,
    summary="Set Agent Tools",
    description="Replace the agent's tool allowlist. Unknown tool ids are rejected.",
)
async def set_agent_tools(agent_id: str, body: SetAgentToolsRequest, service: CopilotServiceDep):
    return service.set_agent_tools(agent_id, body.tool_ids)
