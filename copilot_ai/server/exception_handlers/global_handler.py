"""
Global Exception Handlers for the FastAPI Application.

Every failure leaves the API in the same envelope,
``{ok: false, error, code, details?}``:

- ``CopilotError`` carries its own code and HTTP status,
- request/payload validation failures become ``VALIDATION_ERROR`` (400),
- anything else is logged with full context and becomes ``UNKNOWN_ERROR`` (500).
"""

import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from copilot_ai.agent_core.errors import CopilotError
from copilot_ai.agent_core.schemas.api import RunAgentErrorResponse
from copilot_ai.core.logging_config import get_logger
from copilot_ai.core.monitoring import log_error

logger = get_logger(__name__)


def _error_response(status_code: int, body: RunAgentErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True, exclude_none=True))


async def copilot_error_handler(request: Request, exc: CopilotError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} failed with {exc.code}: {exc.message}")
    return _error_response(exc.status_code, RunAgentErrorResponse(error=exc.message, code=exc.code, details=exc.details))


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map FastAPI request validation and pydantic validation errors to ``VALIDATION_ERROR``."""
    errors = exc.errors() if isinstance(exc, (RequestValidationError, ValidationError)) else []
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "value_error")}
        for err in errors
    ]
    return _error_response(400, RunAgentErrorResponse(error="Invalid request", code="VALIDATION_ERROR", details=details))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    This handler is called for any unhandled exception in the application.
    It logs the full error context and returns the generic error envelope
    with an error ID that clients can use when reporting issues.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with the ``UNKNOWN_ERROR`` envelope
    """
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    log_error(type(exc).__name__, str(exc), {"error_id": error_id, "path": request.url.path})

    return _error_response(
        500, RunAgentErrorResponse(error="Internal server error", code="UNKNOWN_ERROR", details={"errorId": error_id})
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(CopilotError, copilot_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
