"""LangGraph builder for the bridge agent loop.

START → agent ⇄ tools → (round limit) finalize → END
"""
from typing import Literal

from langgraph.graph import END, StateGraph
from langgraph.prebuilt import ToolNode

from bridgeClient.graph.nodes import agent_node, finalize_node
from bridgeClient.graph.state import BridgeState


def build_bridge_graph(tools: list):
    """Build and compile the agent loop for ``tools``.

    Tool errors are not caught by the tool node: a broken channel aborts the
    run. In-band failures are ordinary tool output.
    """
    workflow = StateGraph(BridgeState)

    workflow.add_node("agent", agent_node)
    workflow.add_node("tools", ToolNode(tools, handle_tool_errors=False))
    workflow.add_node("finalize", finalize_node)

    workflow.set_entry_point("agent")

    workflow.add_conditional_edges(
        "agent",
        should_continue,
        {
            "continue": "tools",
            "end": END,
        },
    )
    workflow.add_conditional_edges(
        "tools",
        after_tools,
        {
            "agent": "agent",
            "finalize": "finalize",
        },
    )
    workflow.add_edge("finalize", END)

    return workflow.compile()


def should_continue(state: BridgeState) -> Literal["continue", "end"]:
    """Run tools when the last model message asks for them."""
    last_message = state["messages"][-1]
    if getattr(last_message, "tool_calls", None):
        return "continue"
    return "end"


def after_tools(state: BridgeState) -> Literal["agent", "finalize"]:
    """Go back to the model, or force a final reply once the budget is spent."""
    if state.get("iterations", 0) >= state.get("max_iterations", 8):
        return "finalize"
    return "agent"


def recursion_limit_for(max_iterations: int) -> int:
    # agent + tools per round, then agent or finalize, plus slack
    return 2 * max_iterations + 5
