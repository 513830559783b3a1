"""
Health Check Endpoints.

This module provides basic system status endpoints (health, version)
used for monitoring and deployment verification.
"""

from fastapi import APIRouter

from copilot_ai import __version__
from copilot_ai.server.schemas import HealthResponse, VersionResponse
from copilot_ai.server.services.deps import CopilotServiceDep

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check the operational status of the API server.",
    response_description="Status object.",
)
async def health_check(service: CopilotServiceDep):
    """
    Health check endpoint.

    Returns a status indicator together with the size of the agent and tool
    registries.
    """
    return HealthResponse(agents=len(service.agents), tools=len(service.tools))


@router.get("/version", response_model=VersionResponse, summary="Get Version")
async def version():
    return VersionResponse(version=__version__)
