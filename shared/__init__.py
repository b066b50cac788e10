"""Pieces shared by the slides tool server and the bridge client."""

from .errors import (
    BridgeError,
    ModelInvocationError,
    ModelReplyError,
    SchemaValidationError,
    SessionStateError,
    TransportError,
    TransportTimeoutError,
)
from .protocol import (
    Failure,
    Success,
    TextBlock,
    ToolDescriptor,
    ToolInvocationRequest,
    ToolInvocationResult,
)

__all__ = [
    "BridgeError",
    "ModelInvocationError",
    "ModelReplyError",
    "SchemaValidationError",
    "SessionStateError",
    "TransportError",
    "TransportTimeoutError",
    "Failure",
    "Success",
    "TextBlock",
    "ToolDescriptor",
    "ToolInvocationRequest",
    "ToolInvocationResult",
]
