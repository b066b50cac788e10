"""Stdio transport channel to an MCP tool server.

One channel owns exactly one child process and the JSON-RPC session running
over its stdin/stdout. Requests are correlated by the MCP session; every
request is bounded by a timeout so a hung server surfaces as an error instead
of blocking forever.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import sys
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.shared.exceptions import McpError

from .errors import TransportError, TransportTimeoutError
from .protocol import Failure, Success, TextBlock, ToolDescriptor, ToolInvocationResult

LOGGER = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_REQUEST_TIMEOUT = 60.0

T = TypeVar("T")


def resolve_env(env: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Merge ``env`` over the current environment, expanding ``${VAR}`` references."""
    full_env = os.environ.copy()
    for key, value in (env or {}).items():
        if value.startswith("${") and value.endswith("}"):
            full_env[key] = os.environ.get(value[2:-1], "")
        else:
            full_env[key] = value
    return full_env


def resolve_server_command(script_path: str | Path) -> Tuple[str, List[str]]:
    """Return the command line that runs a server script.

    ``.py`` scripts run under the current interpreter and ``.js`` scripts under
    node.

    Raises:
        TransportError: If the script is missing or has another suffix
    """
    path = Path(script_path)
    if path.suffix not in (".py", ".js"):
        raise TransportError(f"Server script must be a .py or .js file: {path}")
    if not path.is_file():
        raise TransportError(f"Server script not found: {path}")
    command = sys.executable if path.suffix == ".py" else "node"
    return command, [str(path)]


class StdioChannel:
    """Duplex stdio channel to a single MCP server process."""

    def __init__(
        self,
        server_id: str,
        command: str,
        args: Optional[List[str]] = None,
        env: Optional[Dict[str, str]] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.server_id = server_id
        self.command = command
        self.args = list(args or [])
        self.env = dict(env or {})
        self.connect_timeout = connect_timeout
        self.request_timeout = request_timeout
        self._exit_stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None
        self._closed = False

    def __repr__(self) -> str:
        return f"StdioChannel(server_id={self.server_id!r}, command={self.command!r}, open={self.is_open})"

    @property
    def is_open(self) -> bool:
        return self._session is not None

    async def connect(self) -> None:
        """Spawn the server process and perform the MCP handshake.

        Raises:
            TransportError: If the command is not executable, the process cannot
                be spawned or the handshake fails
            TransportTimeoutError: If the handshake does not finish in time
        """
        if self._closed:
            raise TransportError(f"Channel to '{self.server_id}' is already closed", self.server_id)
        if self._session is not None:
            return

        if shutil.which(self.command) is None:
            raise TransportError(
                f"Cannot start MCP server '{self.server_id}': '{self.command}' is not an executable",
                self.server_id,
            )

        LOGGER.debug(f"  Starting stdio server: {self.command} {' '.join(self.args)}")
        params = StdioServerParameters(command=self.command, args=self.args, env=resolve_env(self.env))

        stack = AsyncExitStack()
        try:
            read_stream, write_stream = await stack.enter_async_context(stdio_client(params))
            session = await stack.enter_async_context(ClientSession(read_stream, write_stream))
            await asyncio.wait_for(session.initialize(), timeout=self.connect_timeout)
        except asyncio.TimeoutError as e:
            await self._discard(stack)
            raise TransportTimeoutError(
                f"MCP server '{self.server_id}' did not finish its handshake within {self.connect_timeout}s",
                self.server_id,
            ) from e
        except Exception as e:
            await self._discard(stack)
            raise TransportError(
                f"Failed to start MCP server '{self.server_id}' ({self.command}): {e}",
                self.server_id,
            ) from e

        self._exit_stack = stack
        self._session = session
        LOGGER.debug(f"  ✓ Stdio connection established for server: {self.server_id}")

    async def list_tools(self) -> List[ToolDescriptor]:
        """Discover the server's tools."""
        try:
            result = await self._request("tools/list", lambda session: session.list_tools())
        except McpError as e:
            raise TransportError(
                f"MCP server '{self.server_id}' rejected tool discovery: {e.error.message}",
                self.server_id,
            ) from e

        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description or "",
                parameter_schema=tool.inputSchema or {},
            )
            for tool in result.tools
        ]

    async def call_tool(self, tool_name: str, arguments: Dict[str, Any]) -> ToolInvocationResult:
        """Invoke a tool on the server.

        A JSON-RPC error or an ``isError`` result is returned as a ``Failure``;
        only a broken or hung channel raises.

        Raises:
            TransportError: If the channel is closed or broke mid-call
            TransportTimeoutError: If no response arrives in time
        """
        LOGGER.debug(f"  Calling tool: {tool_name} on server {self.server_id}")
        try:
            result = await self._request(
                f"tools/call {tool_name}",
                lambda session: session.call_tool(tool_name, arguments),
            )
        except McpError as e:
            return Failure(message=f"{tool_name}: {e.error.message}")

        blocks = []
        for item in result.content:
            if getattr(item, "type", None) == "text":
                blocks.append(TextBlock(text=item.text))
            else:
                LOGGER.debug(f"  Dropping non-text content block from {tool_name}: {item.type}")

        if result.isError:
            message = "\n".join(block.text for block in blocks) or f"{tool_name} failed"
            return Failure(message=message)
        return Success(content=tuple(blocks))

    async def close(self) -> None:
        """Close the session and terminate the server process (first call only)."""
        if self._closed:
            return
        self._closed = True

        stack, self._exit_stack, self._session = self._exit_stack, None, None
        if stack is None:
            return
        await self._discard(stack)
        LOGGER.debug(f"  ✓ Closed stdio connection for server: {self.server_id}")

    async def _request(self, method: str, call: Callable[[ClientSession], Awaitable[T]]) -> T:
        if self._session is None:
            raise TransportError(f"Channel to '{self.server_id}' is not open", self.server_id)
        try:
            return await asyncio.wait_for(call(self._session), timeout=self.request_timeout)
        except asyncio.TimeoutError as e:
            raise TransportTimeoutError(
                f"{method} on '{self.server_id}' timed out after {self.request_timeout}s",
                self.server_id,
            ) from e
        except McpError:
            raise
        except Exception as e:
            raise TransportError(f"{method} on '{self.server_id}' failed: {e}", self.server_id) from e

    async def _discard(self, stack: AsyncExitStack) -> None:
        try:
            await stack.aclose()
        except Exception as e:
            LOGGER.warning(f"  Error closing stdio channel for {self.server_id}: {e}")


async def open_channel(
    command: str,
    args: Optional[List[str]] = None,
    env: Optional[Dict[str, str]] = None,
    server_id: Optional[str] = None,
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> StdioChannel:
    """Spawn a server and return a connected channel.

    Args:
        command: Executable to run
        args: Arguments for the executable
        env: Extra environment variables (``${VAR}`` references are expanded)
        server_id: Identifier used in logs and errors (default: script stem)
        connect_timeout: Seconds allowed for spawn + handshake
        request_timeout: Seconds allowed per request/response

    Raises:
        TransportError: If the server cannot be started
    """
    args = list(args or [])
    if server_id is None:
        server_id = Path(args[0]).stem if args else Path(command).stem
    channel = StdioChannel(
        server_id=server_id,
        command=command,
        args=args,
        env=env,
        connect_timeout=connect_timeout,
        request_timeout=request_timeout,
    )
    await channel.connect()
    return channel


__all__ = [
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_REQUEST_TIMEOUT",
    "StdioChannel",
    "open_channel",
    "resolve_env",
    "resolve_server_command",
]
