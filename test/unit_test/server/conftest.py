import json
from typing import AsyncGenerator, Optional
from urllib.parse import quote

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from copilot_ai.agent_core.factory import build_copilot_service
from copilot_ai.agent_core.service import CopilotService
from copilot_ai.server.core.config import Settings


@pytest.fixture
def model(make_model):
    """The scripted model every agent run in the app talks to; tests adjust it in place."""
    return make_model()


@pytest.fixture
def service(model) -> CopilotService:
    return build_copilot_service(Settings(), model_factory=lambda options: model)


@pytest_asyncio.fixture(name="client")
async def client_fixture(service: CopilotService) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client whose app is wired to the scripted copilot service."""
    from copilot_ai.server.main import app
    from copilot_ai.server.services.deps import get_copilot_service

    app.dependency_overrides[get_copilot_service] = lambda: service

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_cookie():
    def _cookie(user_id: str, tenant_id: str, roles: Optional[list] = None) -> dict:
        payload = {"userId": user_id, "tenantId": tenant_id}
        if roles is not None:
            payload["roles"] = roles
        return {"cookie": f"copilot_auth={quote(json.dumps(payload))}"}

    return _cookie
