"""Unit tests for server configuration settings model.

Tests verify that the Settings model binds environment variables by alias and
that the grouped configuration properties expose them.
"""

import pytest

from copilot_ai.server.core.config import (
    AgentRuntimeConfig,
    CORSConfig,
    DevAuthConfig,
    LogfireConfig,
    OpenAIConfig,
    Settings,
)

ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "COPILOT_AI_AGENT_TIMEOUT_MS",
    "COPILOT_AI_TOOL_TIMEOUT_MS",
    "COPILOT_AI_MAX_TOOL_STEPS",
    "COPILOT_AI_ACTION_TTL_SECONDS",
    "COPILOT_AI_TOOL_FALLBACK_TO_ALL",
    "COPILOT_AI_DEV_USER_ID",
    "COPILOT_AI_DEV_TENANT_ID",
    "COPILOT_AI_DEV_ROLES",
    "CORS_ORIGINS",
    "LOGFIRE_ENABLED",
    "LOGFIRE_TOKEN",
    "LOGFIRE_SERVICE_NAME",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestDefaults:
    def test_runtime_defaults(self):
        runtime = _settings().runtime

        assert isinstance(runtime, AgentRuntimeConfig)
        assert runtime.agent_timeout_ms == 30_000
        assert runtime.tool_timeout_ms == 8_000
        assert runtime.max_tool_steps == 6
        assert runtime.action_ttl_seconds == 600.0
        assert runtime.tool_fallback_to_all is False

    def test_dev_auth_defaults(self):
        assert _settings().dev_auth == DevAuthConfig(user_id="dev-user", tenant_id="dev-tenant", roles=["admin"])

    def test_openai_defaults(self):
        openai = _settings().openai

        assert isinstance(openai, OpenAIConfig)
        assert openai.api_key is None
        assert openai.model == "gpt-4o-mini"

    def test_cors_defaults(self):
        cors = _settings().cors

        assert isinstance(cors, CORSConfig)
        assert cors.origins == ["http://localhost:3000"]
        assert cors.allow_credentials is True


class TestEnvironmentBinding:
    def test_runtime_limits_from_env(self, monkeypatch):
        monkeypatch.setenv("COPILOT_AI_AGENT_TIMEOUT_MS", "1500")
        monkeypatch.setenv("COPILOT_AI_MAX_TOOL_STEPS", "2")
        monkeypatch.setenv("COPILOT_AI_TOOL_FALLBACK_TO_ALL", "true")

        runtime = _settings().runtime

        assert runtime.agent_timeout_ms == 1500
        assert runtime.max_tool_steps == 2
        assert runtime.tool_fallback_to_all is True

    def test_list_values_are_json(self, monkeypatch):
        monkeypatch.setenv("COPILOT_AI_DEV_ROLES", '["viewer", "admin"]')
        monkeypatch.setenv("CORS_ORIGINS", '["https://app.example.com"]')

        settings = _settings()

        assert settings.dev_auth.roles == ["viewer", "admin"]
        assert settings.cors.origins == ["https://app.example.com"]

    def test_api_key_is_secret(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        openai = _settings().openai

        assert openai.api_key.get_secret_value() == "sk-test"
        assert "sk-test" not in repr(openai)

    def test_field_names_are_accepted(self):
        settings = _settings(agent_timeout_ms=10, openai_model="gpt-4o")

        assert settings.runtime.agent_timeout_ms == 10
        assert settings.openai.model == "gpt-4o"

    def test_invalid_limits_are_rejected(self):
        with pytest.raises(ValueError):
            _settings(max_tool_steps=0)

    def test_logfire_is_off_by_default(self):
        logfire = _settings().logfire

        assert isinstance(logfire, LogfireConfig)
        assert logfire.enabled is False
        assert logfire.token is None
        assert logfire.service_name == "copilot-ai-api"

    def test_logfire_binds_environment(self, monkeypatch):
        monkeypatch.setenv("LOGFIRE_ENABLED", "true")
        monkeypatch.setenv("LOGFIRE_TOKEN", "lf-secret")

        logfire = _settings().logfire

        assert logfire.enabled is True
        assert logfire.token.get_secret_value() == "lf-secret"
