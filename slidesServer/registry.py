"""Tool registration and dispatch."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from shared.errors import SchemaValidationError, SessionStateError
from shared.logging_utils import log_tool_call, log_tool_result
from shared.protocol import Failure, Success, ToolDescriptor, ToolInvocationRequest, ToolInvocationResult

from .context import DEFAULT_SESSION_KEY, SessionContext, SessionContextStore

LOGGER = logging.getLogger(__name__)

HandlerResult = Union[ToolInvocationResult, str]
ToolHandler = Callable[[BaseModel, SessionContext], Union[HandlerResult, Awaitable[HandlerResult]]]


@dataclass(frozen=True, slots=True)
class RegisteredTool:
    """A descriptor plus the typed argument model and handler behind it."""

    descriptor: ToolDescriptor
    arguments_model: Type[BaseModel]
    handler: ToolHandler


class ToolRegistry:
    """Maps tool names to handlers and dispatches validated invocations.

    ``invoke`` never raises: unknown tools, bad arguments, missing session state
    and handler crashes all come back as ``Failure`` so one bad call cannot end
    the session. Calls for the same session run one at a time; different
    sessions do not wait for each other.
    """

    def __init__(self, contexts: Optional[SessionContextStore] = None) -> None:
        self.contexts = contexts if contexts is not None else SessionContextStore()
        self._tools: Dict[str, RegisteredTool] = {}
        self._session_locks: Dict[str, asyncio.Lock] = {}

    def register(
        self,
        descriptor: ToolDescriptor,
        handler: ToolHandler,
        arguments_model: Type[BaseModel],
    ) -> None:
        """Register a tool, replacing any handler already registered under its name."""
        if descriptor.name in self._tools:
            LOGGER.info(f"Replacing handler for tool: {descriptor.name}")
        self._tools[descriptor.name] = RegisteredTool(descriptor, arguments_model, handler)

    def get(self, name: str) -> RegisteredTool:
        if name not in self._tools:
            raise KeyError(f"Unknown tool: {name}")
        return self._tools[name]

    def list_tools(self) -> List[ToolDescriptor]:
        return [entry.descriptor for entry in self._tools.values()]

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def invoke(
        self,
        request: ToolInvocationRequest,
        session_key: str = DEFAULT_SESSION_KEY,
    ) -> ToolInvocationResult:
        """Validate ``request`` against its tool's schema and run the handler.

        Args:
            request: Tool name and raw arguments
            session_key: Which SessionContext the handler receives

        Returns:
            ``Success`` with the handler's content, or ``Failure`` with a message
            the model can read
        """
        name = request.tool_name
        entry = self._tools.get(name)
        if entry is None:
            available = ", ".join(sorted(self._tools)) or "none"
            LOGGER.warning(f"Unknown tool requested: {name}")
            return Failure(message=f"Unknown tool: {name}. Available tools: {available}")

        log_tool_call(LOGGER, name, request.arguments)
        try:
            arguments = self._validate(entry, request.arguments)
        except SchemaValidationError as e:
            log_tool_result(LOGGER, name, e, success=False)
            return Failure(message=str(e))

        async with self._lock_for(session_key):
            result = await self._run_handler(entry, arguments, self.contexts.get(session_key))

        log_tool_result(LOGGER, name, result.as_text(), success=not result.is_error)
        return result

    async def _run_handler(
        self,
        entry: RegisteredTool,
        arguments: BaseModel,
        context: SessionContext,
    ) -> ToolInvocationResult:
        name = entry.descriptor.name
        try:
            result = entry.handler(arguments, context)
            if inspect.isawaitable(result):
                result = await result
        except SessionStateError as e:
            return Failure(message=f"{name}: {e}")
        except Exception as e:
            LOGGER.exception(f"Tool {name} failed")
            return Failure(message=f"{name}: Tool execution failed: {e}")

        if isinstance(result, str):
            return Success.from_text(result)
        return result

    @staticmethod
    def _validate(entry: RegisteredTool, arguments: Dict) -> BaseModel:
        try:
            return entry.arguments_model.model_validate(arguments)
        except ValidationError as e:
            field_errors = [
                (".".join(str(part) for part in error["loc"]) or "arguments", error["msg"])
                for error in e.errors()
            ]
            raise SchemaValidationError(entry.descriptor.name, field_errors) from e

    def end_session(self, session_key: str) -> None:
        """Forget the context and lock of a session that has disconnected."""
        self._session_locks.pop(session_key, None)
        self.contexts.discard(session_key)

    def _lock_for(self, session_key: str) -> asyncio.Lock:
        lock = self._session_locks.get(session_key)
        if lock is None:
            lock = self._session_locks[session_key] = asyncio.Lock()
        return lock
