"""Agent loop nodes: model decision and forced final reply."""
import asyncio
import logging
from typing import Any, Sequence

from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.runnables import RunnableConfig

from bridgeClient.graph.state import BridgeState
from shared.errors import ModelInvocationError

LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL_TIMEOUT = 120.0


async def _invoke_model(runnable: Any, messages: Sequence[BaseMessage], timeout: float) -> AIMessage:
    try:
        return await asyncio.wait_for(runnable.ainvoke(list(messages)), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ModelInvocationError(f"Model call timed out after {timeout}s") from e


async def agent_node(state: BridgeState, config: RunnableConfig) -> dict:
    """Ask the model for a reply, offering every connected tool.

    Args:
        state: Current loop state
        config: LangGraph config; ``configurable`` carries model, tools and timeout

    Returns:
        State update with the model's message (and the round count when it
        requested tools)
    """
    configurable = config["configurable"]
    model = configurable["model"]
    tools = configurable.get("tools", [])
    timeout = configurable.get("model_timeout", DEFAULT_MODEL_TIMEOUT)

    runnable = model.bind_tools(tools) if tools else model
    response = await _invoke_model(runnable, state["messages"], timeout)

    update: dict = {"messages": [response]}
    if getattr(response, "tool_calls", None):
        update["iterations"] = state.get("iterations", 0) + 1
        LOGGER.info(
            f"Tool round {update['iterations']}/{state.get('max_iterations')}: "
            f"{[call['name'] for call in response.tool_calls]}"
        )
    return update


async def finalize_node(state: BridgeState, config: RunnableConfig) -> dict:
    """Force a text reply once the tool-round budget is spent."""
    configurable = config["configurable"]
    model = configurable["model"]
    tools = configurable.get("tools", [])
    timeout = configurable.get("model_timeout", DEFAULT_MODEL_TIMEOUT)

    LOGGER.warning(f"Tool round limit reached ({state.get('iterations')}); requesting a final reply")
    runnable = model.bind_tools(tools, tool_choice="none") if tools else model
    response = await _invoke_model(runnable, state["messages"], timeout)
    return {"messages": [response]}
