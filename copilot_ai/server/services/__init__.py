"""Dependencies shared by the API routers."""

from .deps import AuthDep, CopilotServiceDep, get_auth_context, get_copilot_service

__all__ = ["AuthDep", "CopilotServiceDep", "get_auth_context", "get_copilot_service"]
