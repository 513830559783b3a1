"""
API Schemas.

Response models owned by the server itself. Agent, tool and action payloads
live in ``copilot_ai.agent_core.schemas.api``.
"""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness payload returned by ``GET /health``."""

    status: Literal["ok"] = Field(default="ok", description="Always 'ok' while the server is serving requests.")
    agents: int = Field(description="Number of registered agents.", examples=[3])
    tools: int = Field(description="Number of registered tools.", examples=[4])


class VersionResponse(BaseModel):
    version: str = Field(examples=["0.1.0"])
