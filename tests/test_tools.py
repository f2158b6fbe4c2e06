"""Tests for tools and the event-to-tool mapper."""

import pytest
from pydantic import BaseModel, Field

from fsm_agent.errors import ToolNameCollisionError
from fsm_agent.schemas import event_schema
from fsm_agent.state import TransitionData
from fsm_agent.tools import ToolRegistry, ToolSpec, event_tools, tool_name_for_event


def sample_tool(query: str, count: int = 5) -> str:
    """Search for something."""
    return f"Found {count} results for {query}"


class Guess(BaseModel):
    """Guess the secret number."""

    number: int = Field(description="The guessed number")


class TestToolSpec:
    def test_from_callable(self):
        spec = ToolSpec.from_callable(sample_tool)
        assert spec.name == "sample_tool"
        assert spec.description == "Search for something."
        assert spec.parameters["type"] == "object"
        assert spec.parameters["properties"]["query"] == {"type": "string"}
        assert spec.parameters["properties"]["count"] == {"type": "integer"}
        assert spec.parameters["required"] == ["query"]

    def test_custom_name_and_description(self):
        spec = ToolSpec.from_callable(sample_tool, name="search", description="Custom desc")
        assert spec.name == "search"
        assert spec.description == "Custom desc"

    def test_to_openai_schema(self):
        schema = ToolSpec.from_callable(sample_tool).to_openai_schema()
        assert schema["type"] == "function"
        assert schema["function"]["name"] == "sample_tool"
        assert "parameters" in schema["function"]

    def test_execute(self):
        spec = ToolSpec.from_callable(sample_tool)
        assert spec.execute({"query": "test", "count": 3}) == "Found 3 results for test"


class TestToolRegistry:
    def test_register_and_get(self):
        registry = ToolRegistry()
        registry.register(sample_tool)
        assert registry.get("sample_tool").name == "sample_tool"
        assert len(registry) == 1

    def test_instance_isolation(self):
        r1 = ToolRegistry()
        r2 = ToolRegistry()
        r1.register(sample_tool)
        assert r1.get("sample_tool") is not None
        assert r2.get("sample_tool") is None

    def test_execute_by_name(self):
        registry = ToolRegistry()
        registry.register(sample_tool)
        assert "hello" in registry.execute("sample_tool", {"query": "hello"})

    def test_execute_missing_tool(self):
        with pytest.raises(KeyError, match="not_found"):
            ToolRegistry().execute("not_found", {})

    def test_to_openai_schemas(self):
        registry = ToolRegistry()
        registry.register(sample_tool)
        registry.register(ToolSpec.from_callable(sample_tool, name="other"))
        names = [s["function"]["name"] for s in registry.to_openai_schemas()]
        assert names == ["sample_tool", "other"]


class TestEventTools:
    def test_tool_name_sanitizes_dots(self):
        assert tool_name_for_event("user.submit.form") == "user_submit_form"
        assert tool_name_for_event("plain") == "plain"

    def test_only_declared_events_are_offered(self):
        transitions = [TransitionData("guess"), TransitionData("reset")]
        tools = event_tools(transitions, {"guess": Guess})
        assert list(tools) == ["guess"]

    def test_declared_but_disabled_events_are_not_offered(self):
        tools = event_tools([TransitionData("guess")], {"guess": Guess, "giveUp": event_schema()})
        assert list(tools) == ["guess"]

    def test_event_declared_without_schema_has_empty_payload(self):
        tools = event_tools([TransitionData("reset", description="Start over")], {"reset": None})
        assert tools["reset"].description == "Start over"
        assert tools["reset"].parameters == {"type": "object", "properties": {}}
        assert tools["reset"].execute({}) == {"type": "reset"}

        tools = event_tools([TransitionData("reset")], {"reset": None})
        assert tools["reset"].description == "reset"

    def test_dotted_event_type(self):
        tools = event_tools([TransitionData("game.guess")], {"game.guess": Guess})
        assert list(tools) == ["game_guess"]
        assert tools["game_guess"].event_type == "game.guess"
        assert tools["game_guess"].execute({"number": 4}) == {"number": 4, "type": "game.guess"}

    def test_execute_builds_event_without_dispatching(self):
        tools = event_tools([TransitionData("guess")], {"guess": Guess})
        event = tools["guess"].execute({"number": 7})
        assert event == {"type": "guess", "number": 7}

    def test_type_argument_cannot_override_event_type(self):
        tools = event_tools([TransitionData("guess")], {"guess": Guess})
        assert tools["guess"].execute({"type": "cheat", "number": 1})["type"] == "guess"

    def test_duplicate_transitions_yield_one_tool(self):
        transitions = [TransitionData("guess"), TransitionData("guess")]
        assert len(event_tools(transitions, {"guess": Guess})) == 1

    def test_name_collision_raises(self):
        transitions = [TransitionData("a.b"), TransitionData("a_b")]
        events = {"a.b": event_schema(), "a_b": event_schema()}
        with pytest.raises(ToolNameCollisionError) as exc_info:
            event_tools(transitions, events)
        assert exc_info.value.name == "a_b"
        assert exc_info.value.event_types == ("a.b", "a_b")

    def test_description_precedence(self):
        events = {
            "guess": Guess,
            "skip": event_schema(),
            "stop": event_schema(),
        }
        transitions = [
            TransitionData("guess", description="ignored"),
            TransitionData("skip", description="Skip this round"),
            TransitionData("stop"),
        ]
        tools = event_tools(transitions, events)
        assert tools["guess"].description == "Guess the secret number."
        assert tools["skip"].description == "Skip this round"
        assert tools["stop"].description == "stop"

    def test_parameters_come_from_schema(self):
        params = event_tools([TransitionData("guess")], {"guess": Guess})["guess"].parameters
        assert params["type"] == "object"
        assert params["properties"]["number"]["type"] == "integer"
        assert params["properties"]["number"]["description"] == "The guessed number"
        assert params["required"] == ["number"]
        assert "title" not in params
        assert "description" not in params

    def test_inline_schema_fields(self):
        events = {"rate": event_schema("Rate it", score=(int, ...), note=(str, ""))}
        tool = event_tools([TransitionData("rate")], events)["rate"]
        assert tool.description == "Rate it"
        assert set(tool.parameters["properties"]) == {"score", "note"}
        assert tool.parameters["required"] == ["score"]

    def test_custom_filter(self):
        events = {"guess": Guess, "giveUp": event_schema("Give up")}
        transitions = [TransitionData("guess"), TransitionData("giveUp")]
        tools = event_tools(transitions, events, filter=lambda t: t.event_type != "giveUp")
        assert list(tools) == ["guess"]

    def test_custom_filter_cannot_offer_undeclared_events(self):
        tools = event_tools([TransitionData("guess"), TransitionData("reset")], {"guess": Guess}, filter=lambda t: True)
        assert list(tools) == ["guess"]
