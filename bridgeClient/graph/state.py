"""Agent loop state definition."""
from typing import Annotated, Sequence, TypedDict

from langchain_core.messages import BaseMessage
from langgraph.graph.message import add_messages


class BridgeState(TypedDict):
    """State carried through one ``process_query`` run.

    - messages: history plus the pending user turn, then the loop's own
      tool-call and tool-result messages
    - iterations: tool rounds performed so far
    - max_iterations: tool rounds allowed before a text reply is forced
    """

    messages: Annotated[Sequence[BaseMessage], add_messages]
    iterations: int
    max_iterations: int
