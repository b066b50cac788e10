"""LangChain tool bound to a remote MCP tool."""

import logging
from typing import Any, Dict

from langchain_core.tools import BaseTool
from pydantic import ConfigDict, Field

from shared.logging_utils import log_tool_call, log_tool_result
from shared.protocol import ToolDescriptor, ToolInvocationResult
from shared.transport import StdioChannel

LOGGER = logging.getLogger(__name__)


class ChannelTool(BaseTool):
    """
    LangChain BaseTool wrapper for a tool discovered on a stdio channel.

    The remote parameter schema is handed to the model unchanged, and the
    arguments the model produces are sent as-is; the server validates them.
    Failures come back as text for the model to read. A broken channel raises.
    """

    server_id: str = Field(description="Owning MCP server identifier")
    channel: Any = Field(description="StdioChannel the tool lives on", exclude=True)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def __init__(self, descriptor: ToolDescriptor, channel: StdioChannel):
        """
        Initialize the wrapper.

        Args:
            descriptor: Descriptor returned by the server's discovery call
            channel: Connected channel that owns the tool
        """
        super().__init__(
            name=descriptor.name,
            description=descriptor.description,
            server_id=channel.server_id,
            channel=channel,
            args_schema=descriptor.parameter_schema or {"type": "object", "properties": {}},
        )

    async def invoke_remote(self, arguments: Dict[str, Any]) -> ToolInvocationResult:
        """Call the tool on its server and log the outcome.

        Raises:
            TransportError: If the channel is closed, broke or timed out
        """
        log_tool_call(LOGGER, self.name, arguments)
        result = await self.channel.call_tool(self.name, arguments)
        log_tool_result(LOGGER, self.name, result.as_text(), success=not result.is_error)
        return result

    async def _arun(self, **kwargs) -> str:
        result = await self.invoke_remote(kwargs)
        return result.as_text()

    def _run(self, **kwargs) -> str:
        raise NotImplementedError(f"{self.name} can only be called asynchronously")
