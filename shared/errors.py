"""Error taxonomy for the tool bridge.

Handler-level problems (bad arguments, missing session state) are turned into
in-band ``Failure`` results by the dispatcher. Channel and model problems are
raised and caught at the orchestrator boundary, where they become a visible
agent turn.
"""

from __future__ import annotations

from typing import Optional


class BridgeError(Exception):
    """Base exception for the tool bridge."""

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.user_message = user_message or message


class TransportError(BridgeError):
    """A channel could not be opened or broke mid-call."""

    def __init__(self, message: str, server_id: Optional[str] = None):
        super().__init__(message)
        self.server_id = server_id


class TransportTimeoutError(TransportError):
    """A request did not receive its correlated response in time."""


class SchemaValidationError(BridgeError):
    """Tool arguments do not match the registered parameter schema."""

    def __init__(self, tool_name: str, field_errors: list[tuple[str, str]]):
        self.tool_name = tool_name
        self.field_errors = field_errors
        details = "; ".join(f"{field}: {reason}" for field, reason in field_errors)
        super().__init__(f"{tool_name}: Invalid arguments. {details}")


class SessionStateError(BridgeError):
    """A required SessionContext field is not set."""


class ModelInvocationError(BridgeError):
    """The language model call failed or timed out."""


class ModelReplyError(BridgeError):
    """The model produced an empty or non-text final reply."""
