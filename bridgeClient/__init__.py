"""Bridge client: connects MCP tool servers to a chat model."""

from .conversation import Conversation, ConversationPhase, ConversationTurn
from .orchestrator import BridgeClient, connect_to_mcp
from .prompts import csv_prompt, pdf_prompt

__all__ = [
    "BridgeClient",
    "Conversation",
    "ConversationPhase",
    "ConversationTurn",
    "connect_to_mcp",
    "csv_prompt",
    "pdf_prompt",
]
