"""End-to-end tests: BridgeClient talking to a real slides server over stdio.

Each test opens and closes its own client so the subprocess is torn down in
the task that started it.
"""
import json
import sys

import pytest

pytest.importorskip("mcp")

from bridgeClient.orchestrator import BridgeClient  # noqa: E402
from shared.errors import BridgeError, TransportError  # noqa: E402
from slidesServer.main import build_application  # noqa: E402
from slidesServer.settings import SlidesServerSettings  # noqa: E402
from slidesServer.slides_service import InMemorySlidesService  # noqa: E402

CSV = "Name,ARR\nAcme,100\nBeta,200"


def slide_args(slide_type, presentation_id=""):
    return {
        "slideTitle": "The Problem",
        "slideContent": "Building decks by hand is slow",
        "presentationId": presentation_id,
        "slideType": slide_type,
    }


@pytest.mark.asyncio
async def test_discovery_matches_registered_descriptors(slides_server_path, bridge_settings):
    _, registry = build_application(InMemorySlidesService(), SlidesServerSettings(backend="memory"))
    expected = {descriptor.name: descriptor for descriptor in registry.list_tools()}

    async with BridgeClient(model=object(), settings=bridge_settings) as client:
        names = await client.connect_to_server(slides_server_path)
        [channel] = client._channels.values()
        discovered = await channel.list_tools()

    assert sorted(names) == sorted(expected)
    for descriptor in discovered:
        assert descriptor.description == expected[descriptor.name].description
        assert descriptor.parameter_schema == expected[descriptor.name].parameter_schema


@pytest.mark.asyncio
async def test_extract_data_over_the_wire(slides_server_path, bridge_settings):
    async with BridgeClient(model=object(), settings=bridge_settings) as client:
        await client.connect_to_server(slides_server_path)

        found = await client.manual_tool_call("extract-data", {"name": "Acme", "csvFile": CSV})
        missing = await client.manual_tool_call("extract-data", {"name": "Zzz", "csvFile": CSV})

    assert found.as_text() == '{"Name":"Acme","ARR":"100"}'
    assert "Could not find" in missing.content[0].text


@pytest.mark.asyncio
async def test_presentation_flow(slides_server_path, bridge_settings):
    async with BridgeClient(model=object(), settings=bridge_settings) as client:
        await client.connect_to_server(slides_server_path)

        no_token = await client.manual_tool_call("create-presentation", {"companyName": "Acme"})
        empty_token = await client.send_access_token("")
        await client.send_access_token("ya29.token")
        first = await client.manual_tool_call("create-presentation", {"companyName": "Acme"})
        second = await client.manual_tool_call("create-presentation", {"companyName": "Acme"})
        keynote = await client.manual_tool_call("add-custom-slide", slide_args("Keynote"))
        bullet = await client.manual_tool_call("add-custom-slide", slide_args("Bullet"))

    # Server-side failures travel as ordinary text content
    assert "set-access-token" in no_token.as_text()
    assert "Access token is empty or invalid" in empty_token.as_text()
    assert first.as_text().startswith("Presentation ID: ")
    assert first.as_text() != second.as_text()
    assert "'Paragraph'" in keynote.as_text() and "'Bullet'" in keynote.as_text()
    assert "Successfully created a new custom slide" in bullet.as_text()


@pytest.mark.asyncio
async def test_server_survives_bad_calls(slides_server_path, bridge_settings):
    async with BridgeClient(model=object(), settings=bridge_settings) as client:
        await client.connect_to_server(slides_server_path)
        [channel] = client._channels.values()

        unknown = await channel.call_tool("no-such-tool", {})
        malformed = await channel.call_tool("extract-data", {"name": 42})
        good = await channel.call_tool("extract-data", {"name": "Beta", "csvFile": CSV})

    assert "Unknown tool: no-such-tool" in unknown.as_text()
    assert "csvFile" in malformed.as_text()
    assert json.loads(good.as_text()) == {"Name": "Beta", "ARR": "200"}


@pytest.mark.asyncio
async def test_process_query_with_remote_tool(
    slides_server_path, bridge_settings, scripted_model, tool_call_message
):
    model = scripted_model(
        tool_call_message("extract-data", {"name": "Acme", "csvFile": CSV}),
        "Acme's ARR is 100.",
    )

    async with BridgeClient(model=model, settings=bridge_settings) as client:
        await client.connect_to_server(slides_server_path)
        reply = await client.process_query("What is Acme's ARR?")
        history = client.history

    assert reply == "Acme's ARR is 100."
    assert len(history) == 2
    assert '{"Name":"Acme","ARR":"100"}' in model.calls[1][-1].content


@pytest.mark.asyncio
async def test_second_server_with_same_tools_is_rejected(slides_server_path, bridge_settings):
    async with BridgeClient(model=object(), settings=bridge_settings) as client:
        await client.connect_to_server(slides_server_path)
        with pytest.raises(BridgeError, match="disjoint tool names"):
            await client.connect(sys.executable, [str(slides_server_path)], server_id="slides-2")
        assert client.server_ids == ["memory_slides_server"]


@pytest.mark.asyncio
async def test_bad_server_paths_fail_fast(tmp_path, bridge_settings):
    client = BridgeClient(model=object(), settings=bridge_settings)

    with pytest.raises(TransportError, match=".py or .js"):
        await client.connect_to_server(tmp_path / "server.rb")
    with pytest.raises(TransportError, match="not found"):
        await client.connect_to_server(tmp_path / "missing.py")

    await client.cleanup()
