"""Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and ensures proper test environment setup.
"""

import asyncio
import sys
from pathlib import Path
from typing import Any, List, Optional

import pytest
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


class ScriptedChatModel(BaseChatModel):
    """Chat model that replays a fixed list of replies.

    Each reply is either a message or an exception to raise. ``calls`` records
    the messages of every call and ``bindings`` the tool names and options of
    every ``bind_tools``.
    """

    script: List[Any] = Field(default_factory=list)
    delay: float = 0.0
    calls: List[List[BaseMessage]] = Field(default_factory=list)
    bindings: List[tuple] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def bind_tools(self, tools, **kwargs):
        self.bindings.append(([tool.name for tool in tools], kwargs))
        return self

    def _next_result(self, messages: List[BaseMessage]) -> ChatResult:
        self.calls.append(list(messages))
        if not self.script:
            raise AssertionError("ScriptedChatModel ran out of replies")
        reply = self.script.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, str):
            reply = AIMessage(content=reply)
        return ChatResult(generations=[ChatGeneration(message=reply)])

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        return self._next_result(messages)

    async def _agenerate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self._next_result(messages)


def tool_call(name: str, args: dict, call_id: Optional[str] = None) -> AIMessage:
    """An AI message requesting one tool call."""
    return AIMessage(
        content="",
        tool_calls=[{"name": name, "args": args, "id": call_id or f"call_{name}", "type": "tool_call"}],
    )


@pytest.fixture
def scripted_model():
    """Factory for ScriptedChatModel instances."""

    def _make(*script: Any, delay: float = 0.0) -> ScriptedChatModel:
        return ScriptedChatModel(script=list(script), delay=delay)

    return _make


@pytest.fixture
def tool_call_message():
    return tool_call
