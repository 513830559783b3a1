"""
Logging Configuration Module.

This module provides centralized logging configuration for the Copilot-AI project.

Every record carries the correlation ids of the agent run that produced it
(``trace_id``, ``agent_id``, ``request_id``; ``-`` outside a run) so console
lines, the log file and the tool audit trail can be joined on them.

Features:
- One console handler, optional file handler, ``simple | detailed | json`` output
- Per-module log levels for the runtime packages and noisy third-party libraries
- ``get_run_logger`` for loggers bound to a single agent run
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple

RUN_FIELDS: Tuple[str, ...] = ("trace_id", "agent_id", "request_id")
LOG_FILE_NAME = "copilot_ai.log"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _load_logging_settings() -> Dict[str, Any]:
    """Read logging options from the settings model, or the environment when it cannot be built."""
    try:
        from copilot_ai.server.core.config import settings

        return {
            "log_level": settings.log_level,
            "log_format": settings.log_format,
            "log_file_dir": settings.log_file_dir,
            "enable_file_logging": settings.enable_file_logging,
        }
    except Exception:
        return {
            "log_level": os.getenv("COPILOT_AI_LOG_LEVEL", "INFO"),
            "log_format": os.getenv("LOG_FORMAT", "detailed"),
            "log_file_dir": os.getenv("LOG_FILE_DIR", "logs"),
            "enable_file_logging": os.getenv("ENABLE_FILE_LOGGING", "false").lower() in ("true", "1", "yes"),
        }


_settings = _load_logging_settings()
LOG_LEVEL: str = _settings["log_level"].upper()
LOG_FORMAT: str = _settings["log_format"]
LOG_FILE_DIR: str = _settings["log_file_dir"]
ENABLE_FILE_LOGGING: bool = _settings["enable_file_logging"]


SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [trace=%(trace_id)s agent=%(agent_id)s] "
    "[%(filename)s:%(lineno)d] - %(message)s"
)

MODULE_LOG_LEVELS = {
    "copilot_ai.agent_core": "DEBUG",
    "copilot_ai.agent_core.runtime": "DEBUG",
    "copilot_ai.agent_core.agents": "DEBUG",
    "copilot_ai.agent_core.tools": "INFO",
    "copilot_ai.agent_core.actions": "INFO",
    "copilot_ai.agent_core.service": "DEBUG",
    "copilot_ai.server": "INFO",
    "copilot_ai.server.api": "DEBUG",
    "copilot_ai.server.core": "INFO",
    # Third-party libraries
    "httpx": "WARNING",
    "openai": "WARNING",
    "asyncio": "WARNING",
    "sse_starlette": "INFO",
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
}


class RunContextFilter(logging.Filter):
    """Give every record the run correlation fields, ``-`` when unset."""

    def filter(self, record: logging.LogRecord) -> bool:
        for name in RUN_FIELDS:
            if getattr(record, name, None) is None:
                setattr(record, name, "-")
        return True


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.filename,
            "line": record.lineno,
        }
        for name in RUN_FIELDS:
            payload[name] = getattr(record, name, "-")
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RunLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter stamping the ids of one agent run onto each record."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JsonFormatter(datefmt=DATE_FORMAT)
    if fmt == "simple":
        return logging.Formatter(SIMPLE_FORMAT, datefmt=DATE_FORMAT)
    return logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    Configure logging for the application.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_level: Override the configured level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Override the configured format (simple, detailed, json)
        enable_file: Allow the file handler; it is only added when file logging is enabled in settings
    """
    level = (log_level or LOG_LEVEL).upper()
    fmt = log_format or LOG_FORMAT
    formatter = build_formatter(fmt)
    run_filter = RunContextFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(run_filter)
    root_logger.addHandler(console_handler)

    write_file = enable_file and ENABLE_FILE_LOGGING
    if write_file:
        log_dir = Path(LOG_FILE_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(run_filter)
        root_logger.addHandler(file_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info(f"Logging configured: level={level}, format={fmt}, file_logging={write_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A configured logger instance
    """
    return logging.getLogger(name)


def get_run_logger(name: str, **ids: Optional[str]) -> RunLoggerAdapter:
    """Get a logger bound to one agent run.

    Only the known run fields are bound; unknown keyword arguments are ignored.

    Example::

        log = get_run_logger(__name__, trace_id=ctx.trace_id, agent_id=ctx.agent_id)
        log.info("tool_invocation_start: ...")
    """
    extra: Mapping[str, Optional[str]] = {key: ids.get(key) for key in RUN_FIELDS}
    return RunLoggerAdapter(logging.getLogger(name), dict(extra))
