"""Slides tool server: registry, dispatcher, session context and presentation tools."""

from .context import SessionContext, SessionContextStore
from .registry import RegisteredTool, ToolRegistry
from .tools import SlidesTool, SlidesToolkit

__all__ = [
    "RegisteredTool",
    "SessionContext",
    "SessionContextStore",
    "SlidesTool",
    "SlidesToolkit",
    "ToolRegistry",
]
