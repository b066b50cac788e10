"""Client orchestrator: channels, aggregated tools, conversation and agent loop."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from langchain_core.messages import BaseMessage

from bridgeClient.config.settings import BridgeSettings, get_settings
from bridgeClient.conversation import (
    Conversation,
    ConversationPhase,
    ConversationTurn,
    Snapshot,
    message_text,
)
from bridgeClient.graph import build_bridge_graph, recursion_limit_for
from bridgeClient.loader import load_mcp_config, server_launches
from bridgeClient.model_resolver import build_chat_model
from bridgeClient.tools import ChannelTool
from shared.errors import BridgeError, ModelReplyError, TransportError
from shared.logging_utils import log_agent_response, log_error, log_user_message
from shared.protocol import Failure, ToolInvocationResult
from shared.transport import StdioChannel, open_channel, resolve_server_command

LOGGER = logging.getLogger(__name__)

ACCESS_TOKEN_TOOL = "set-access-token"


class BridgeClient:
    """Connects to MCP tool servers and relays conversation turns to a model.

    Tools from every connected server form one tool set; names must be
    disjoint across servers. ``process_query`` calls are serialized, so one
    query runs start to finish before the next touches the history.

    Examples:
        >>> client = BridgeClient()
        >>> await client.connect_to_server("slidesServer/main.py")
        >>> await client.send_access_token(token)
        >>> reply = await client.process_query("Make a deck for Acme")
        >>> await client.cleanup()
    """

    def __init__(self, model: Any = None, settings: Optional[BridgeSettings] = None):
        """Initialize the client.

        Args:
            model: LangChain chat model (default: built from settings on first use)
            settings: Client settings (default: cached environment settings)
        """
        self.settings = settings or get_settings()
        self._model = model
        self._channels: Dict[str, StdioChannel] = {}
        self._tools: Dict[str, ChannelTool] = {}
        self._conversation = Conversation()
        self._phase = ConversationPhase.IDLE
        self._lock = asyncio.Lock()
        self._graph = None

    async def __aenter__(self) -> "BridgeClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.cleanup()

    # ========== Introspection ==========

    @property
    def model(self) -> Any:
        if self._model is None:
            self._model = build_chat_model(self.settings.models)
        return self._model

    @property
    def phase(self) -> ConversationPhase:
        return self._phase

    @property
    def history(self) -> Snapshot:
        return self._conversation.turns

    @property
    def tool_names(self) -> List[str]:
        return sorted(self._tools)

    @property
    def server_ids(self) -> List[str]:
        return list(self._channels)

    # ========== Connections ==========

    async def connect_to_server(
        self,
        script_path: str | Path,
        args: Optional[Sequence[str]] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> List[str]:
        """Start a ``.py`` or ``.js`` server script and add its tools.

        Returns:
            Names of the tools the server provides

        Raises:
            TransportError: If the script is invalid or the server cannot start
            BridgeError: If a tool name is already provided by another server
        """
        command, base_args = resolve_server_command(script_path)
        return await self.connect(
            command,
            [*base_args, *(args or [])],
            env=env,
            server_id=Path(script_path).stem,
        )

    async def connect(
        self,
        command: str,
        args: Optional[Sequence[str]] = None,
        env: Optional[Dict[str, str]] = None,
        server_id: Optional[str] = None,
    ) -> List[str]:
        """Open a channel, discover its tools and merge them into the tool set.

        A name collision with an already connected server fails the connect and
        closes the new channel.

        Returns:
            Names of the tools the server provides

        Raises:
            TransportError: If the server cannot be started or discovery fails
            BridgeError: On a server id or tool name collision
        """
        if server_id is not None and server_id in self._channels:
            raise BridgeError(f"MCP server '{server_id}' is already connected")

        governance = self.settings.governance
        channel = await open_channel(
            command,
            list(args or []),
            env=env,
            server_id=server_id,
            connect_timeout=governance.connect_timeout,
            request_timeout=governance.request_timeout,
        )

        try:
            if channel.server_id in self._channels:
                raise BridgeError(f"MCP server '{channel.server_id}' is already connected")
            descriptors = await channel.list_tools()
            clashes = {
                descriptor.name: self._tools[descriptor.name].server_id
                for descriptor in descriptors
                if descriptor.name in self._tools
            }
            if clashes:
                details = ", ".join(f"'{name}' (owned by '{owner}')" for name, owner in clashes.items())
                raise BridgeError(
                    f"MCP server '{channel.server_id}' provides tool names that are already "
                    f"connected: {details}. Servers must use disjoint tool names."
                )
        except Exception:
            await channel.close()
            raise

        self._channels[channel.server_id] = channel
        for descriptor in descriptors:
            self._tools[descriptor.name] = ChannelTool(descriptor, channel)
        self._graph = None

        names = [descriptor.name for descriptor in descriptors]
        LOGGER.info(f"✓ Connected to server {channel.server_id} with tools: {names}")
        return names

    async def connect_configured_servers(self, config: dict) -> List[str]:
        """Connect every enabled server in an ``mcp_servers.yaml`` config.

        On any failure, everything opened so far is closed before re-raising.

        Returns:
            Names of all tools now available
        """
        try:
            for launch in server_launches(config):
                await self.connect(launch.command, launch.args, env=launch.env, server_id=launch.server_id)
        except Exception:
            await self.cleanup()
            raise
        return self.tool_names

    # ========== Conversation ==========

    async def process_query(self, text: str) -> Optional[str]:
        """Run one conversational turn through the model and the tool loop.

        Returns:
            The model's reply; None when the reply was empty or not text (the
            user turn is dropped); or an error description when the model or a
            channel failed (recorded as an agent turn)
        """
        async with self._lock:
            log_user_message(LOGGER, text)
            snapshot = self._conversation.snapshot()
            user_turn = ConversationTurn.user(text)
            self._phase = ConversationPhase.AWAITING_MODEL

            try:
                messages = self._conversation.to_messages(
                    user_turn, system_prompt=self.settings.system_prompt
                )
                reply = await self._run_agent(messages)
            except ModelReplyError as e:
                LOGGER.warning(f"{e}; discarding the user turn")
                self._conversation.restore(snapshot)
                self._phase = ConversationPhase.ROLLED_BACK
                return None
            except Exception as e:
                log_error(LOGGER, e, context="process_query")
                error_text = f"There was an error processing your request:\n{e}"
                self._conversation.commit(user_turn, ConversationTurn.agent(error_text))
                self._phase = ConversationPhase.COMMITTED
                return error_text

            self._conversation.commit(user_turn, ConversationTurn.agent(reply))
            self._phase = ConversationPhase.COMMITTED
            log_agent_response(LOGGER, reply)
            return reply

    async def _run_agent(self, messages: List[BaseMessage]) -> str:
        if self._graph is None:
            self._graph = build_bridge_graph(list(self._tools.values()))

        max_rounds = self.settings.governance.max_tool_rounds
        initial_state = {
            "messages": messages,
            "iterations": 0,
            "max_iterations": max_rounds,
        }
        config = {
            "configurable": {
                "model": self.model,
                "tools": list(self._tools.values()),
                "model_timeout": self.settings.governance.model_timeout,
            },
            "recursion_limit": recursion_limit_for(max_rounds),
        }

        final_state = await self._graph.ainvoke(initial_state, config)
        reply = message_text(final_state["messages"][-1])
        if reply is None or not reply.strip():
            raise ModelReplyError("The model returned an empty or invalid reply")
        return reply

    def reset(self) -> None:
        """Forget the conversation; connections stay open."""
        self._conversation.clear()
        self._phase = ConversationPhase.IDLE

    # ========== Side channel ==========

    async def manual_tool_call(
        self, name: str, arguments: Optional[Dict[str, Any]] = None
    ) -> ToolInvocationResult:
        """Call a tool directly, bypassing the model and the conversation.

        Never raises: an unknown tool or a broken channel becomes a ``Failure``.
        """
        tool = self._tools.get(name)
        if tool is None:
            available = ", ".join(self.tool_names) or "none"
            return Failure(message=f"Unknown tool: {name}. Available tools: {available}")
        try:
            return await tool.invoke_remote(arguments or {})
        except TransportError as e:
            log_error(LOGGER, e, context=f"manual_tool_call({name})")
            return Failure(message=str(e))

    async def send_access_token(self, token: str) -> ToolInvocationResult:
        """Store the user's credential in the server's session context."""
        return await self.manual_tool_call(ACCESS_TOKEN_TOOL, {"accessToken": token})

    # ========== Teardown ==========

    async def cleanup(self) -> None:
        """Close every channel; safe with zero or partially opened channels."""
        channels = list(self._channels.values())
        self._channels.clear()
        self._tools.clear()
        self._graph = None

        for channel in channels:
            try:
                await channel.close()
            except Exception as e:
                LOGGER.warning(f"Error closing channel {channel.server_id}: {e}")
        if channels:
            LOGGER.info(f"Closed {len(channels)} MCP channel(s)")


async def connect_to_mcp(
    settings: Optional[BridgeSettings] = None,
    model: Any = None,
) -> BridgeClient:
    """Build a client and connect the servers listed in the MCP config file.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        TransportError: If a server cannot be started
    """
    settings = settings or get_settings()
    client = BridgeClient(model=model, settings=settings)
    LOGGER.info("MCP ecosystem is booting up...")
    config = load_mcp_config(Path(settings.mcp_config_path))
    await client.connect_configured_servers(config)
    return client
