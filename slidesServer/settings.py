"""Environment-bound configuration for the slides server."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()


class SlidesServerSettings(BaseSettings):
    """Settings for the stdio slides server.

    - server_name / server_version: reported in the MCP handshake
    - backend: "google" for the Slides API, "memory" for a dry-run backend
    - log_level / log_dir: file logging (console logging goes to stderr)
    """

    server_name: str = Field(default="slides-tools", alias="SLIDES_SERVER_NAME")
    server_version: str = Field(default="1.0.0", alias="SLIDES_SERVER_VERSION")
    backend: Literal["google", "memory"] = Field(
        default="google",
        validation_alias=AliasChoices("SLIDES_BACKEND", "SLIDES_SERVER_BACKEND"),
    )
    log_level: str = Field(default="INFO", alias="SLIDES_SERVER_LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="SLIDES_SERVER_LOG_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> SlidesServerSettings:
    """Return a cached singleton settings instance."""
    return SlidesServerSettings()
