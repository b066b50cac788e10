"""Chat model construction from settings."""

from __future__ import annotations

from typing import Dict

from langchain_openai import ChatOpenAI

from bridgeClient.config.settings import ModelSettings


def _chat_kwargs(settings: ModelSettings) -> Dict[str, object]:
    if not settings.api_key:
        raise RuntimeError(
            f"Missing API key for model {settings.model_id}; "
            "set MODEL_API_KEY (or GEMINI_API_KEY / OPENAI_API_KEY) in .env."
        )
    kwargs: Dict[str, object] = {
        "model": settings.model_id,
        "api_key": settings.api_key,
        "temperature": settings.temperature,
    }
    if settings.base_url:
        kwargs["base_url"] = settings.base_url
    return kwargs


def build_chat_model(settings: ModelSettings) -> ChatOpenAI:
    """Return an OpenAI-compatible chat client for ``settings``.

    Raises:
        RuntimeError: If no API key is configured
    """
    return ChatOpenAI(**_chat_kwargs(settings))
