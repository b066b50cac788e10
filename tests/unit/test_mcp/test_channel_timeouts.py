"""Stdio channel behaviour against servers that stop answering."""
import sys
from pathlib import Path

import pytest

pytest.importorskip("mcp")

from shared.errors import TransportError, TransportTimeoutError  # noqa: E402
from shared.transport import StdioChannel  # noqa: E402

HUNG_SERVER = Path(__file__).parent.parent.parent / "mcp_servers" / "hung_server.py"


def hung_channel(*flags, connect_timeout=30.0, request_timeout=0.5):
    return StdioChannel(
        "hung",
        sys.executable,
        [str(HUNG_SERVER), *flags],
        connect_timeout=connect_timeout,
        request_timeout=request_timeout,
    )


class TestRequestTimeout:
    @pytest.mark.asyncio
    async def test_list_tools_times_out_and_channel_still_closes(self):
        channel = hung_channel()
        await channel.connect()
        try:
            with pytest.raises(TransportTimeoutError, match="tools/list on 'hung' timed out"):
                await channel.list_tools()
        finally:
            await channel.close()

        assert not channel.is_open

    @pytest.mark.asyncio
    async def test_call_tool_times_out(self):
        channel = hung_channel()
        await channel.connect()
        try:
            with pytest.raises(TransportTimeoutError) as exc_info:
                await channel.call_tool("extract-data", {"name": "Acme", "csvFile": "Name\nAcme"})
        finally:
            await channel.close()

        assert exc_info.value.server_id == "hung"
        assert isinstance(exc_info.value, TransportError)


class TestHandshakeTimeout:
    @pytest.mark.asyncio
    async def test_silent_server_fails_connect(self):
        channel = hung_channel("--silent", connect_timeout=1.0)

        with pytest.raises(TransportTimeoutError, match="did not finish its handshake"):
            await channel.connect()

        assert not channel.is_open
        await channel.close()
