"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS),
registers the exception handlers and includes all API routers. It serves as
the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from copilot_ai import __version__
from copilot_ai.core.logging_config import get_logger, setup_logging
from copilot_ai.core.monitoring import initialize_logfire

from .api.v1 import actions, agents, health
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .services.deps import get_copilot_service

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Builds the copilot service (registries, built-in tools and agents) once at
    startup so the first request does not pay for it.
    """
    logger.info("Starting up Copilot-AI Server...")
    service = get_copilot_service()
    logger.info(f"Copilot service ready: {len(service.agents)} agent(s), {len(service.tools)} tool(s)")

    yield

    logger.info("Shutting down Copilot-AI Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Copilot-AI Server API

    Runs schema-typed copilot agents with allowlisted tools, streams their
    progress, and executes proposed write actions after human confirmation.
    """,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)
initialize_logfire(app)

app.include_router(health.router, tags=["health"])
app.include_router(agents.router, prefix=constant.API_PREFIX, tags=["agents"])
app.include_router(actions.router, prefix=constant.API_PREFIX, tags=["actions"])
