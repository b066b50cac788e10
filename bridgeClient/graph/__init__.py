"""Bounded agent loop for the bridge client."""

from .builder import after_tools, build_bridge_graph, recursion_limit_for, should_continue
from .state import BridgeState

__all__ = ["BridgeState", "after_tools", "build_bridge_graph", "recursion_limit_for", "should_continue"]
