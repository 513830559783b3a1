"""
Request Dependencies.

Provides the process-wide ``CopilotService`` and the caller identity for API
endpoints.

The identity is read from the ``copilot_auth`` cookie, a JSON object
``{userId, tenantId, roles?}``. A missing or malformed cookie falls back to the
configured development identity so the API stays usable before a login flow
sets the cookie.
"""

import json
from typing import Annotated, List, Optional
from urllib.parse import unquote

from fastapi import Cookie, Depends
from pydantic import ConfigDict, Field, ValidationError

from copilot_ai.agent_core.factory import build_copilot_service
from copilot_ai.agent_core.schemas.base import ApiSchema
from copilot_ai.agent_core.schemas.domain import AuthContext
from copilot_ai.agent_core.service import CopilotService
from copilot_ai.core.logging_config import get_logger
from copilot_ai.server.core.config import settings

logger = get_logger(__name__)

_service: Optional[CopilotService] = None


class AuthCookie(ApiSchema):
    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(min_length=1)
    tenant_id: str = Field(min_length=1)
    roles: Optional[List[str]] = None


def get_copilot_service() -> CopilotService:
    global _service
    if _service is None:
        _service = build_copilot_service(settings)
    return _service


def _dev_identity() -> AuthContext:
    dev = settings.dev_auth
    return AuthContext(user_id=dev.user_id, tenant_id=dev.tenant_id, roles=list(dev.roles))


def parse_auth_cookie(raw: Optional[str]) -> AuthContext:
    """Resolve the caller identity from the raw cookie value."""
    fallback = _dev_identity()
    if not raw:
        return fallback
    try:
        cookie = AuthCookie.model_validate(json.loads(unquote(raw)))
    except (ValueError, ValidationError) as e:
        logger.debug(f"Ignoring malformed auth cookie: {e}")
        return fallback
    return AuthContext(user_id=cookie.user_id, tenant_id=cookie.tenant_id, roles=cookie.roles or fallback.roles)


def get_auth_context(copilot_auth: Annotated[Optional[str], Cookie()] = None) -> AuthContext:
    return parse_auth_cookie(copilot_auth)


CopilotServiceDep = Annotated[CopilotService, Depends(get_copilot_service)]
AuthDep = Annotated[AuthContext, Depends(get_auth_context)]
