"""MCP wiring for the tool registry.

Discovery returns the registry's descriptors verbatim. Invocation goes through
``ToolRegistry.invoke`` with the SDK's own input validation turned off, so
arguments are validated once, by the registry. Successes and failures both
travel as ordinary text content; errors are never protocol faults.
"""

from __future__ import annotations

import itertools
import logging
import weakref
from typing import Any, Callable, Dict, List

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from shared.protocol import ToolDescriptor, ToolInvocationRequest

from .registry import ToolRegistry

LOGGER = logging.getLogger(__name__)


def to_mcp_tool(descriptor: ToolDescriptor) -> types.Tool:
    return types.Tool(
        name=descriptor.name,
        description=descriptor.description,
        inputSchema=descriptor.parameter_schema,
    )


def build_server(registry: ToolRegistry, name: str, version: str) -> Server:
    """Create an MCP server that serves ``registry``."""
    app = Server(name, version=version)
    session_keys = SessionKeys(on_end=registry.end_session)

    @app.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [to_mcp_tool(descriptor) for descriptor in registry.list_tools()]

    @app.call_tool(validate_input=False)
    async def call_tool(tool_name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        request = ToolInvocationRequest(tool_name=tool_name, arguments=arguments or {})
        result = await registry.invoke(request, session_key=session_keys.key_for(app.request_context.session))
        return [types.TextContent(type="text", text=block.text) for block in result.content_blocks()]

    return app


class SessionKeys:
    """Assigns each client connection a key that is never reused.

    When a connection's session object is garbage collected, ``on_end`` is
    called with its key so per-session state can be dropped.
    """

    def __init__(self, on_end: Callable[[str], None]) -> None:
        self._on_end = on_end
        self._keys: "weakref.WeakKeyDictionary[Any, str]" = weakref.WeakKeyDictionary()
        self._counter = itertools.count(1)

    def key_for(self, session: Any) -> str:
        key = self._keys.get(session)
        if key is None:
            key = self._keys[session] = f"session-{next(self._counter)}"
            weakref.finalize(session, self._on_end, key)
            LOGGER.debug(f"New client session: {key}")
        return key

    def __len__(self) -> int:
        return len(self._keys)


async def serve(app: Server) -> None:
    """Run ``app`` over stdin/stdout until the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        LOGGER.info(f"{app.name}: opened a connection on stdio transport")
        await app.run(read_stream, write_stream, app.create_initialization_options())
