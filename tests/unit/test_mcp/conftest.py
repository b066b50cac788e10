"""Pytest fixtures for MCP stdio tests."""

from pathlib import Path

import pytest

# Check if MCP SDK is installed
try:
    import mcp  # noqa: F401
    MCP_AVAILABLE = True
except ImportError:
    MCP_AVAILABLE = False

# Skip all MCP tests if SDK not installed
pytestmark = pytest.mark.skipif(
    not MCP_AVAILABLE,
    reason="MCP SDK not installed. Install with: pip install mcp"
)


@pytest.fixture
def slides_server_path():
    """Path to the in-memory slides stdio server."""
    return Path(__file__).parent.parent.parent / "mcp_servers" / "memory_slides_server.py"


@pytest.fixture
def bridge_settings():
    from bridgeClient.config.settings import BridgeSettings, GovernanceSettings

    return BridgeSettings(
        governance=GovernanceSettings(max_tool_rounds=4, request_timeout=30.0, connect_timeout=30.0),
        system_prompt="",
    )
