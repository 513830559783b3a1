"""
Core utilities and configuration for Copilot-AI.

This package provides core functionality including logging configuration
and monitoring helpers shared by the runtime and the server.
"""

from copilot_ai.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
