"""
Monitoring and Tracing Configuration Module.

Integrates the copilot runtime with Pydantic Logfire:

- a span around every agent run (``agent_span``), so model calls made
  through Pydantic AI and tool audit records nest under the run,
- redacted tool audit events (``log_tool_invocation``),
- agent run start/completion records and error tracking,
- FastAPI endpoint tracing.

Logfire stays off unless ``LOGFIRE_ENABLED`` is true and a ``LOGFIRE_TOKEN``
is configured. Every helper here is best effort: before initialization it
does nothing, and exporter failures are logged at debug level, never raised.
"""

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Optional

from copilot_ai import __version__

if TYPE_CHECKING:
    from copilot_ai.server.core.config import LogfireConfig

logger = logging.getLogger(__name__)

_logfire_ready = False


def _load_logfire_config() -> "LogfireConfig":
    from copilot_ai.server.core.config import settings

    return settings.logfire


def _configured_logfire() -> Any | None:
    """Return the logfire module once ``initialize_logfire`` has succeeded."""
    if not _logfire_ready:
        return None
    import logfire

    return logfire


def initialize_logfire(app: Any | None = None, config: Optional["LogfireConfig"] = None) -> bool:
    """
    Initialize Pydantic Logfire for monitoring and tracing.

    Args:
        app: FastAPI application to instrument (optional).
        config: Logfire options; read from the application settings when omitted.

    Returns:
        True when Logfire was configured, False otherwise.
    """
    config = config or _load_logfire_config()
    if not config.enabled:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    token = config.token.get_secret_value() if config.token else ""
    if not token:
        logger.warning("Logfire is enabled but LOGFIRE_TOKEN is not set; monitoring stays off.")
        return False

    global _logfire_ready

    try:
        import logfire

        logfire.configure(
            token=token,
            service_name=config.service_name,
            service_version=__version__,
            environment=config.environment,
        )
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False

    if config.trace_pydantic_ai:
        try:
            logfire.instrument_pydantic_ai()
        except Exception as e:
            logger.warning(f"Failed to instrument Pydantic AI: {e}")

    if config.trace_fastapi and app is not None:
        try:
            logfire.instrument_fastapi(app=app)
        except Exception as e:
            logger.warning(f"Failed to instrument FastAPI: {e}")

    _logfire_ready = True
    logger.info(f"Logfire monitoring initialized: service={config.service_name}, environment={config.environment}")
    return True


@contextmanager
def agent_span(agent_id: str, trace_id: Optional[str] = None) -> Iterator[None]:
    """Open a Logfire span covering one agent run; a no-op while Logfire is off."""
    logfire = _configured_logfire()
    if logfire is None:
        yield
        return
    with logfire.span("agent run {agent_id}", agent_id=agent_id, trace_id=trace_id):
        yield


def log_agent_run(agent_id: str, tenant_id: str, user_id: str, trace_id: Optional[str] = None) -> None:
    """
    Record the start of an agent invocation.

    Args:
        agent_id: The agent being invoked
        tenant_id: The caller's tenant
        user_id: The requesting user
        trace_id: Trace id shared with the run's tool audit events
    """
    logfire = _configured_logfire()
    if logfire is None:
        return
    try:
        logfire.info("Agent run started", agent_id=agent_id, tenant_id=tenant_id, user_id=user_id, trace_id=trace_id)
    except Exception:
        logger.debug(f"Could not log agent run to Logfire: agent_id={agent_id}")


def log_agent_completion(agent_id: str, ok: bool, duration_ms: float, code: Optional[str] = None) -> None:
    """Record the end of an agent invocation; ``code`` is the error code of a failed run."""
    logfire = _configured_logfire()
    if logfire is None:
        return
    try:
        logfire.info("Agent run completed", agent_id=agent_id, ok=ok, duration_ms=duration_ms, code=code)
    except Exception:
        logger.debug(f"Could not log agent completion to Logfire: agent_id={agent_id}")


def log_tool_invocation(event: dict[str, Any]) -> None:
    """Forward a redacted ``tool_invocation_start`` / ``tool_invocation_end`` event."""
    logfire = _configured_logfire()
    if logfire is None:
        return
    try:
        logfire.info("Tool audit {type}", **event)
    except Exception:
        logger.debug(f"Could not log tool audit event to Logfire: {event.get('tool_id')}")


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    logfire = _configured_logfire()
    if logfire is None:
        return
    try:
        logfire.error(f"{error_type}: {error_message}", **(context or {}))
    except Exception:
        logger.debug(f"Could not log error to Logfire: {error_type}")
