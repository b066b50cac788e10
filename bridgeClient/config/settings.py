"""Environment-bound configuration for the bridge client.

Settings load from the environment and ``.env`` with several accepted names per
field, so an existing ``GEMINI_API_KEY`` or ``OPENAI_API_KEY`` works unchanged.

Example:
    from bridgeClient.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    max_rounds = settings.governance.max_tool_rounds
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()

DEFAULT_MCP_CONFIG = Path(__file__).resolve().parent / "mcp_servers.yaml"
GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class ModelSettings(BaseSettings):
    """Chat model identifier and credentials.

    The client talks to any OpenAI-compatible endpoint. The default points at
    Gemini's OpenAI-compatible API.
    """

    model_id: str = Field(
        default="gemini-2.5-flash",
        validation_alias=AliasChoices("MODEL_ID", "MODEL_CHAT_ID", "BRIDGE_MODEL"),
    )
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MODEL_API_KEY", "GEMINI_API_KEY", "OPENAI_API_KEY"),
    )
    base_url: Optional[str] = Field(
        default=GEMINI_OPENAI_BASE_URL,
        validation_alias=AliasChoices("MODEL_BASE_URL", "OPENAI_BASE_URL"),
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=2.0,
        validation_alias=AliasChoices("MODEL_TEMPERATURE"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        protected_namespaces=(),
    )


class GovernanceSettings(BaseSettings):
    """Bounds on the agent loop and the transport.

    - max_tool_rounds: tool rounds per query before a text reply is forced
    - model_timeout: seconds allowed per model call
    - request_timeout / connect_timeout: seconds per MCP request / handshake
    """

    max_tool_rounds: int = Field(default=8, ge=1, le=50, alias="MAX_TOOL_ROUNDS")
    model_timeout: float = Field(default=120.0, gt=0, alias="MODEL_TIMEOUT")
    request_timeout: float = Field(default=60.0, gt=0, alias="MCP_REQUEST_TIMEOUT")
    connect_timeout: float = Field(default=30.0, gt=0, alias="MCP_CONNECT_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        protected_namespaces=(),
    )


class BridgeSettings(BaseSettings):
    """Top-level settings container.

    - models: chat model routing (ModelSettings)
    - governance: loop and transport bounds (GovernanceSettings)
    """

    models: ModelSettings = Field(default_factory=ModelSettings)
    governance: GovernanceSettings = Field(default_factory=GovernanceSettings)
    mcp_config_path: Path = Field(default=DEFAULT_MCP_CONFIG, alias="MCP_CONFIG_PATH")
    system_prompt: str = Field(default="", alias="BRIDGE_SYSTEM_PROMPT")
    log_level: str = Field(default="INFO", alias="BRIDGE_LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="BRIDGE_LOG_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> BridgeSettings:
    """Return a cached singleton settings instance."""
    return BridgeSettings()
