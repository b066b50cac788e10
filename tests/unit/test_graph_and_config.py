"""Unit tests for loop routing, settings and the MCP server wiring."""
import gc

import pytest
from langchain_core.messages import AIMessage, HumanMessage
from langchain_core.tools import tool
from mcp import types

from bridgeClient.config.settings import BridgeSettings, GovernanceSettings, ModelSettings
from bridgeClient.graph import after_tools, build_bridge_graph, recursion_limit_for, should_continue
from bridgeClient.model_resolver import build_chat_model
from slidesServer.main import build_application, build_slides_service
from slidesServer.server import SessionKeys
from slidesServer.settings import SlidesServerSettings
from slidesServer.slides_service import GoogleSlidesService, InMemorySlidesService


class TestRouting:
    def test_tool_calls_continue(self):
        state = {
            "messages": [AIMessage(content="", tool_calls=[{"name": "extract-data", "args": {}, "id": "1"}])],
            "iterations": 1,
            "max_iterations": 3,
        }
        assert should_continue(state) == "continue"

    def test_text_reply_ends(self):
        state = {"messages": [HumanMessage(content="hi"), AIMessage(content="hello")], "iterations": 0}
        assert should_continue(state) == "end"

    def test_round_budget_forces_finalize(self):
        assert after_tools({"messages": [], "iterations": 2, "max_iterations": 3}) == "agent"
        assert after_tools({"messages": [], "iterations": 3, "max_iterations": 3}) == "finalize"

    def test_recursion_limit_covers_budget(self):
        # agent + tools per round, then the final reply
        assert recursion_limit_for(8) > 2 * 8 + 1


@tool
def echo(text: str) -> str:
    """Echo the text back."""
    return text


def run_config(model, tools, max_rounds=3):
    return {
        "configurable": {"model": model, "tools": tools, "model_timeout": 5.0},
        "recursion_limit": recursion_limit_for(max_rounds),
    }


class TestGraphRun:
    @pytest.mark.asyncio
    async def test_agent_node_receives_configurable(self, scripted_model):
        model = scripted_model("hello")
        graph = build_bridge_graph([])

        result = await graph.ainvoke(
            {"messages": [HumanMessage(content="hi")], "iterations": 0, "max_iterations": 3},
            config=run_config(model, []),
        )

        assert result["messages"][-1].content == "hello"
        assert model.bindings == []

    @pytest.mark.asyncio
    async def test_spent_budget_runs_finalize_without_tools(self, scripted_model, tool_call_message):
        model = scripted_model(tool_call_message("echo", {"text": "ping"}), "done")
        graph = build_bridge_graph([echo])

        result = await graph.ainvoke(
            {"messages": [HumanMessage(content="hi")], "iterations": 0, "max_iterations": 1},
            config=run_config(model, [echo], max_rounds=1),
        )

        assert result["messages"][-1].content == "done"
        assert result["iterations"] == 1
        assert model.bindings[-1] == (["echo"], {"tool_choice": "none"})


class TestSettings:
    def test_governance_defaults(self):
        governance = GovernanceSettings()
        assert governance.max_tool_rounds == 8
        assert governance.model_timeout > 0

    def test_env_aliases(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "g-key")
        monkeypatch.setenv("MAX_TOOL_ROUNDS", "2")
        monkeypatch.delenv("MODEL_API_KEY", raising=False)

        settings = BridgeSettings()

        assert settings.models.api_key == "g-key"
        assert settings.governance.max_tool_rounds == 2

    def test_round_budget_is_bounded(self):
        with pytest.raises(ValueError):
            GovernanceSettings(max_tool_rounds=0)

    def test_model_requires_api_key(self):
        with pytest.raises(RuntimeError, match="Missing API key"):
            build_chat_model(ModelSettings(model_id="gemini-2.5-flash", api_key=None))

    def test_model_built_from_settings(self):
        model = build_chat_model(
            ModelSettings(model_id="gpt-4o-mini", api_key="sk-test", base_url="http://localhost:9999/v1")
        )
        assert model.model_name == "gpt-4o-mini"

    def test_server_backend_selection(self, monkeypatch):
        monkeypatch.setenv("SLIDES_BACKEND", "memory")
        assert isinstance(build_slides_service(SlidesServerSettings()), InMemorySlidesService)
        assert isinstance(build_slides_service(SlidesServerSettings(backend="google")), GoogleSlidesService)


class TestServerWiring:
    @pytest.mark.asyncio
    async def test_list_tools_handler_serves_registry(self):
        app, registry = build_application(InMemorySlidesService(), SlidesServerSettings(backend="memory"))

        handler = app.request_handlers[types.ListToolsRequest]
        result = await handler(types.ListToolsRequest(method="tools/list"))

        tools = {tool.name: tool for tool in result.root.tools}
        for descriptor in registry.list_tools():
            assert tools[descriptor.name].description == descriptor.description
            assert tools[descriptor.name].inputSchema == descriptor.parameter_schema

    def test_server_identity(self):
        app, _ = build_application(
            InMemorySlidesService(),
            SlidesServerSettings(server_name="slides-test", backend="memory"),
        )
        assert app.name == "slides-test"


class FakeSession:
    pass


class TestSessionKeys:
    def test_each_connection_gets_a_stable_unique_key(self):
        keys = SessionKeys(on_end=lambda key: None)
        first, second = FakeSession(), FakeSession()

        assert keys.key_for(first) == keys.key_for(first)
        assert keys.key_for(first) != keys.key_for(second)

    def test_collected_session_ends_and_key_is_not_reused(self):
        ended = []
        keys = SessionKeys(on_end=ended.append)
        session = FakeSession()
        old_key = keys.key_for(session)

        del session
        gc.collect()

        assert ended == [old_key]
        assert len(keys) == 0
        assert keys.key_for(FakeSession()) != old_key
