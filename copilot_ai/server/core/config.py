"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# LLM Provider Configuration Models
# =====================================================================


class OpenAIConfig(BaseModel):
    """OpenAI API configuration."""

    api_key: Optional[SecretStr] = Field(
        default=None, alias="OPENAI_API_KEY", description="OpenAI API key for authentication"
    )
    model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL", description="Default OpenAI model to use")
    base_url: Optional[str] = Field(
        default=None, alias="OPENAI_BASE_URL", description="Custom OpenAI API base URL (optional)"
    )

    model_config = {"populate_by_name": True}


class AgentRuntimeConfig(BaseModel):
    """Limits and defaults applied by the agent runtime."""

    agent_timeout_ms: int = Field(
        default=30_000,
        ge=1,
        alias="COPILOT_AI_AGENT_TIMEOUT_MS",
        description="Whole-run timeout used when a request does not specify one",
    )
    tool_timeout_ms: int = Field(
        default=8_000, ge=1, alias="COPILOT_AI_TOOL_TIMEOUT_MS", description="Per tool call timeout"
    )
    max_tool_steps: int = Field(
        default=6, ge=1, alias="COPILOT_AI_MAX_TOOL_STEPS", description="Model turns allowed in the tool-calling loop"
    )
    action_ttl_seconds: float = Field(
        default=600.0,
        gt=0,
        alias="COPILOT_AI_ACTION_TTL_SECONDS",
        description="How long a proposed write action stays confirmable",
    )
    stream_heartbeat_seconds: float = Field(
        default=15.0, gt=0, alias="COPILOT_AI_STREAM_HEARTBEAT_SECONDS", description="Idle interval between pings"
    )
    tool_fallback_to_all: bool = Field(
        default=False,
        alias="COPILOT_AI_TOOL_FALLBACK_TO_ALL",
        description="Dev convenience: expose every registered tool to agents without an allowlist",
    )

    model_config = {"populate_by_name": True}


class DevAuthConfig(BaseModel):
    """Identity used when a request carries no auth cookie."""

    user_id: str = Field(default="dev-user", alias="COPILOT_AI_DEV_USER_ID")
    tenant_id: str = Field(default="dev-tenant", alias="COPILOT_AI_DEV_TENANT_ID")
    roles: list[str] = Field(default=["admin"], alias="COPILOT_AI_DEV_ROLES")

    model_config = {"populate_by_name": True}


class LogfireConfig(BaseModel):
    """Pydantic Logfire monitoring configuration."""

    enabled: bool = Field(
        default=False, alias="LOGFIRE_ENABLED", description="Send traces and audit records to Logfire"
    )
    token: Optional[SecretStr] = Field(default=None, alias="LOGFIRE_TOKEN", description="Logfire write token")
    environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")
    service_name: str = Field(default="copilot-ai-api", alias="LOGFIRE_SERVICE_NAME")
    trace_pydantic_ai: bool = Field(
        default=True, alias="LOGFIRE_TRACE_PYDANTIC_AI", description="Instrument model calls made through Pydantic AI"
    )
    trace_fastapi: bool = Field(default=True, alias="LOGFIRE_TRACE_FASTAPI", description="Instrument FastAPI endpoints")

    model_config = {"populate_by_name": True}


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(
        default=["http://localhost:3000"], alias="CORS_ORIGINS", description="Allowed CORS origins"
    )
    allow_credentials: bool = Field(
        default=True, alias="CORS_ALLOW_CREDENTIALS", description="Allow credentials in CORS requests"
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Copilot-AI Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="Copilot-AI server host address to bind to",
        alias="COPILOT_AI_SERVER_HOST",
    )
    server_port: int = Field(
        default=3001,
        description="Copilot-AI server port number",
        alias="COPILOT_AI_SERVER_PORT",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="COPILOT_AI_LOG_LEVEL",
    )
    log_format: str = Field(default="detailed", description="simple, detailed or json", alias="LOG_FORMAT")
    log_file_dir: str = Field(default="logs", alias="LOG_FILE_DIR")
    enable_file_logging: bool = Field(default=False, alias="ENABLE_FILE_LOGGING")

    # =====================================================================
    # Provider Configuration (flat env vars, grouped below)
    # =====================================================================
    openai_api_key: Optional[SecretStr] = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")

    # =====================================================================
    # Runtime Configuration
    # =====================================================================
    agent_timeout_ms: int = Field(default=30_000, ge=1, alias="COPILOT_AI_AGENT_TIMEOUT_MS")
    tool_timeout_ms: int = Field(default=8_000, ge=1, alias="COPILOT_AI_TOOL_TIMEOUT_MS")
    max_tool_steps: int = Field(default=6, ge=1, alias="COPILOT_AI_MAX_TOOL_STEPS")
    action_ttl_seconds: float = Field(default=600.0, gt=0, alias="COPILOT_AI_ACTION_TTL_SECONDS")
    stream_heartbeat_seconds: float = Field(default=15.0, gt=0, alias="COPILOT_AI_STREAM_HEARTBEAT_SECONDS")
    tool_fallback_to_all: bool = Field(default=False, alias="COPILOT_AI_TOOL_FALLBACK_TO_ALL")

    dev_user_id: str = Field(default="dev-user", alias="COPILOT_AI_DEV_USER_ID")
    dev_tenant_id: str = Field(default="dev-tenant", alias="COPILOT_AI_DEV_TENANT_ID")
    dev_roles: list[str] = Field(default=["admin"], alias="COPILOT_AI_DEV_ROLES")

    cors_origins: list[str] = Field(default=["http://localhost:3000"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    # =====================================================================
    # Monitoring Configuration
    # =====================================================================
    logfire_enabled: bool = Field(default=False, alias="LOGFIRE_ENABLED")
    logfire_token: Optional[SecretStr] = Field(default=None, alias="LOGFIRE_TOKEN")
    logfire_environment: str = Field(default="development", alias="LOGFIRE_ENVIRONMENT")
    logfire_service_name: str = Field(default="copilot-ai-api", alias="LOGFIRE_SERVICE_NAME")
    logfire_trace_pydantic_ai: bool = Field(default=True, alias="LOGFIRE_TRACE_PYDANTIC_AI")
    logfire_trace_fastapi: bool = Field(default=True, alias="LOGFIRE_TRACE_FASTAPI")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def openai(self) -> OpenAIConfig:
        """Get OpenAI configuration from environment variables."""
        return OpenAIConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def runtime(self) -> AgentRuntimeConfig:
        """Get agent runtime limits from environment variables."""
        return AgentRuntimeConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def dev_auth(self) -> DevAuthConfig:
        """Get the fallback dev identity from environment variables."""
        return DevAuthConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def logfire(self) -> LogfireConfig:
        """Get Logfire monitoring configuration from environment variables."""
        return LogfireConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration from environment variables."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
