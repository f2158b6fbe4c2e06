"""Tests for the Agent."""

from statemachine import State, StateMachine

from fsm_agent.agent import Agent
from fsm_agent.llm.adapter import LLMResponse, Message, ToolCall
from fsm_agent.machine import MachineActor, MachineLogic
from fsm_agent.memory import InMemoryAgentMemory
from fsm_agent.records import RecordKind
from fsm_agent.schemas import event_schema
from fsm_agent.state import ObservedState
from fsm_agent.transitions import get_machine_hash


class Steps(StateMachine):
    first = State(initial=True)
    second = State()
    third = State(final=True)

    doFirst = first.to(second)
    doSecond = second.to(third)


EVENTS = {
    "doFirst": event_schema("Do the first step"),
    "doSecond": event_schema("Do the second step"),
}


class MockLLM:
    """Mock LLM: plain text without tools, first offered tool otherwise."""

    def __init__(self, reply="Hello!"):
        self.reply = reply
        self.requests = []

    def chat(self, messages, *, tools=None, tool_choice=None, **kwargs):
        self.requests.append({"messages": messages, "tools": tools, **kwargs})
        if not tools:
            return LLMResponse(content=self.reply, finish_reason="stop", usage={"total_tokens": 3})
        name = tools[0]["function"]["name"]
        return LLMResponse(tool_calls=[ToolCall(id="call_1", name=name, arguments={})], finish_reason="tool_calls")

    def stream(self, messages, **kwargs):
        self.requests.append({"messages": messages, **kwargs})
        for word in self.reply.split(" "):
            yield word + " "

    def format_tools(self, tools):
        return [t.to_openai_schema() for t in tools]


class TestAgentBasics:
    def test_defaults(self):
        agent = Agent(MockLLM(), EVENTS, name="stepper")
        assert agent.session_id
        assert isinstance(agent.memory, InMemoryAgentMemory)
        assert "stepper" in repr(agent)

    def test_sessions_differ_per_agent(self):
        assert Agent(MockLLM(), EVENTS).session_id != Agent(MockLLM(), EVENTS).session_id

    def test_shared_memory_keeps_sessions_apart(self):
        memory = InMemoryAgentMemory()
        a = Agent(MockLLM(), EVENTS, id="same", memory=memory, session_id="run-1")
        b = Agent(MockLLM(), EVENTS, id="same", memory=memory, session_id="run-2")
        a.add_message("user", "hi")
        assert b.get_messages() == []
        assert sorted(memory.sessions()) == ["run-1"]

    def test_feedback(self):
        agent = Agent(MockLLM(), EVENTS)
        feedback = agent.add_feedback("Win", reward=1.0, attributes={"score": 10}, comment="nice")
        assert agent.get_feedback() == [feedback]
        assert feedback.session_id == agent.session_id


class TestObservations:
    def test_machine_hash_present_with_machine(self):
        agent = Agent(MockLLM(), EVENTS)
        logic = MachineLogic(Steps)
        observation = agent.add_observation(ObservedState(value="second"), machine=logic)
        assert observation.machine_hash == get_machine_hash(logic)

    def test_machine_hash_absent_without_machine(self):
        agent = Agent(MockLLM(), EVENTS)
        observation = agent.add_observation(
            ObservedState(value="second"),
            prev_state=ObservedState(value="first"),
            event={"type": "doFirst"},
        )
        assert observation.machine_hash is None
        assert agent.get_observations() == [observation]

    def test_observe_records_transitions(self):
        agent = Agent(MockLLM(), EVENTS)
        actor = MachineActor(Steps())
        subscription = agent.observe(actor)
        actor.send({"type": "doFirst"})
        subscription.unsubscribe()
        actor.send({"type": "doSecond"})

        (observation,) = agent.get_observations()
        assert observation.prev_state.value == "first"
        assert observation.event == {"type": "doFirst"}
        assert observation.state.value == "second"
        assert observation.machine_hash == get_machine_hash(actor.logic)


class TestObservers:
    def test_on_and_unsubscribe(self):
        agent = Agent(MockLLM(), EVENTS)
        seen = []
        subscription = agent.on(RecordKind.FEEDBACK, seen.append)
        first = agent.add_feedback("a")
        subscription.unsubscribe()
        agent.add_feedback("b")
        assert seen == [first]

    def test_on_message(self):
        agent = Agent(MockLLM(), EVENTS)
        roles = []
        agent.on_message(lambda m: roles.append(m.role))
        agent.generate_text("Hi")
        assert roles == ["user", "assistant"]

    def test_on_accepts_kind_name(self):
        agent = Agent(MockLLM(), EVENTS)
        plans = []
        agent.on("plans", plans.append)
        agent.decide("Move on", ObservedState(value="first"), machine=MachineLogic(Steps))
        assert len(plans) == 1

    def test_on_accepts_singular_kind_names(self):
        agent = Agent(MockLLM(), EVENTS)
        seen = {"message": [], "observation": [], "plan": [], "feedback": []}
        for kind, records in seen.items():
            agent.on(kind, records.append)
        observation = agent.add_observation(ObservedState(value="first"))
        agent.decide("Move on", observation.state, machine=MachineLogic(Steps))
        agent.add_feedback("Move on", reward=1.0)
        assert [len(seen[k]) for k in ("observation", "plan", "feedback")] == [1, 1, 1]
        assert seen["message"]


class TestGenerateText:
    def test_records_exchange(self):
        agent = Agent(MockLLM("Hello!"), EVENTS)
        result = agent.generate_text("Say hi")
        assert result.text == "Hello!"
        assert result.finish_reason == "stop"
        assert result.usage == {"total_tokens": 3}

        user, assistant = agent.get_messages()
        assert user.content == "Say hi"
        assert assistant.content == "Hello!"
        assert assistant.response_id == user.id
        assert assistant.result["finish_reason"] == "stop"

    def test_context_system_and_history(self):
        llm = MockLLM()
        agent = Agent(llm, EVENTS)
        agent.generate_text("First")
        agent.generate_text("Second", context={"k": 1}, system="Be brief", messages=True)

        messages = llm.requests[-1]["messages"]
        assert messages[0] == Message(role="system", content="Be brief")
        assert [m.content for m in messages[1:3]] == ["First", "Hello!"]
        assert messages[-1].content == '<context>{"k": 1}</context>\n\nSecond'

    def test_default_options_are_merged(self):
        llm = MockLLM()
        agent = Agent(llm, EVENTS, default_options={"temperature": 0.2, "max_tokens": 50})
        agent.generate_text("Hi", temperature=0.9)
        assert llm.requests[0]["temperature"] == 0.9
        assert llm.requests[0]["max_tokens"] == 50

    def test_callable_tools(self):
        def add(a: int, b: int) -> int:
            """Add two numbers."""
            return a + b

        class AddingLLM(MockLLM):
            def chat(self, messages, *, tools=None, tool_choice=None, **kwargs):
                self.requests.append({"tools": tools, "tool_choice": tool_choice})
                return LLMResponse(tool_calls=[ToolCall(id="c", name="add", arguments={"a": 2, "b": 3})])

        llm = AddingLLM()
        result = Agent(llm, EVENTS).generate_text("Add", tools=[add], tool_choice="auto")
        assert result.tool_results[0].result == 5
        assert llm.requests[0]["tool_choice"] == "auto"
        assert llm.requests[0]["tools"][0]["function"]["name"] == "add"

    def test_stream_text(self):
        agent = Agent(MockLLM("Hello there"), EVENTS)
        chunks = list(agent.stream_text("Greet"))
        assert "".join(chunks) == "Hello there "
        assert [m.content for m in agent.get_messages()] == ["Greet", "Hello there "]


class TestInteract:
    def test_drives_machine_to_final_state(self):
        agent = Agent(MockLLM(), EVENTS)
        actor = MachineActor(Steps())

        def get_input(observation):
            if observation.state.value == "third":
                return None
            return {"goal": "Reach the end"}

        agent.interact(actor, get_input)

        assert actor.value == "third"
        assert [p.next_event["type"] for p in agent.get_plans()] == ["doFirst", "doSecond"]
        assert [o.state.value for o in agent.get_observations()] == ["first", "second", "third"]
        assert agent.get_observations()[0].prev_state is None

    def test_passive_without_input(self):
        llm = MockLLM()
        agent = Agent(llm, EVENTS)
        actor = MachineActor(Steps())
        agent.interact(actor)
        actor.send("doFirst")
        assert llm.requests == []
        assert len(agent.get_observations()) == 2

    def test_drops_decision_when_machine_moves_meanwhile(self):
        class Door(StateMachine):
            closed = State(initial=True)
            opened = State()
            locked = State(final=True)

            open = closed.to(opened)
            lock = closed.to(locked) | opened.to(locked)

        actor = MachineActor(Door())
        opened_by_someone_else = []

        class SlowLLM(MockLLM):
            def chat(self, messages, *, tools=None, tool_choice=None, **kwargs):
                if not opened_by_someone_else:
                    opened_by_someone_else.append(True)
                    actor.send("open")
                return LLMResponse(tool_calls=[ToolCall(id="call_1", name="open", arguments={})])

        agent = Agent(SlowLLM(), {"open": event_schema("Open"), "lock": event_schema("Lock")})
        agent.interact(actor, lambda o: {"goal": "Open the door"} if o.state.value == "closed" else None)

        assert actor.value == "opened"
        assert agent.get_plans() == []
