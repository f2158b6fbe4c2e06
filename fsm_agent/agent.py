"""The Agent: LLM access, planning and session memory bound together."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any, Callable

from .decision import agent_decide
from .generate import GenerateTextResult, generate_text, stream_text
from .llm.adapter import LLMAdapter
from .machine import MachineActor, Subscription
from .memory import AgentMemory, InMemoryAgentMemory
from .planner import Planner, simple_planner
from .records import Feedback, MessageRecord, Observation, Plan, RecordKind, new_id
from .schemas import EventSchemaMap
from .state import ObservedState
from .transitions import MachineLike, get_machine_hash

logger = logging.getLogger(__name__)

RecordCallback = Callable[[Any], None]


class Agent:
    """An LLM-backed decision maker for state machines.

    Usage:
        agent = Agent(
            OpenAIAdapter(model="gpt-4o"),
            events={"guess": Guess, "giveUp": event_schema("Give up")},
            name="guesser",
        )
        plan = agent.decide("Guess the number", state, machine=logic)

    Attributes:
        id: Stable identifier shared by all sessions of this agent.
        session_id: Identifies this run; every record it appends carries it.
        events: Event schema map of the events the agent may cause.
        memory: Append-only record store (in-process by default).
    """

    def __init__(
        self,
        adapter: LLMAdapter,
        events: EventSchemaMap,
        *,
        id: str | None = None,
        name: str | None = None,
        description: str | None = None,
        planner: Planner = simple_planner,
        memory: AgentMemory | None = None,
        session_id: str | None = None,
        default_options: dict[str, Any] | None = None,
    ):
        self.adapter = adapter
        self.events = dict(events)
        self.id = id or new_id()
        self.name = name
        self.description = description
        self.planner = planner
        self.memory = memory if memory is not None else InMemoryAgentMemory()
        self.session_id = session_id or new_id()
        self.default_options = dict(default_options or {})
        self._observers: dict[RecordKind, list[RecordCallback]] = {kind: [] for kind in RecordKind}

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r}, session_id={self.session_id!r})"

    # -- Observers --

    def on(self, kind: RecordKind | str, callback: RecordCallback) -> Subscription:
        """Call `callback(record)` whenever a record of `kind` is added."""
        observers = self._observers[RecordKind(kind)]
        observers.append(callback)

        def remove() -> None:
            if callback in observers:
                observers.remove(callback)

        return Subscription(remove)

    def on_message(self, callback: Callable[[MessageRecord], None]) -> Subscription:
        return self.on(RecordKind.MESSAGES, callback)

    def _record(self, kind: RecordKind, record: Any) -> None:
        self.memory.append(self.session_id, kind, record)
        for callback in list(self._observers[kind]):
            callback(record)

    # -- Memory --

    def add_message(self, role: str, content: Any, **fields: Any) -> MessageRecord:
        message = MessageRecord(role=role, content=content, session_id=self.session_id, **fields)
        self._record(RecordKind.MESSAGES, message)
        return message

    def get_messages(self) -> list[MessageRecord]:
        return self.memory.get_all(self.session_id, RecordKind.MESSAGES)

    def add_feedback(
        self,
        goal: str,
        *,
        reward: float = 0.0,
        attributes: dict[str, Any] | None = None,
        comment: str | None = None,
    ) -> Feedback:
        feedback = Feedback(
            goal=goal,
            session_id=self.session_id,
            reward=reward,
            attributes=dict(attributes or {}),
            comment=comment,
        )
        self._record(RecordKind.FEEDBACK, feedback)
        return feedback

    def get_feedback(self) -> list[Feedback]:
        return self.memory.get_all(self.session_id, RecordKind.FEEDBACK)

    def add_observation(
        self,
        state: ObservedState,
        *,
        prev_state: ObservedState | None = None,
        event: dict[str, Any] | None = None,
        machine: MachineLike | None = None,
    ) -> Observation:
        """Record a witnessed transition.

        The machine hash is computed only when `machine` is given.
        """
        observation = Observation(
            prev_state=prev_state,
            event=event,
            state=state,
            session_id=self.session_id,
            machine_hash=get_machine_hash(machine) if machine is not None else None,
        )
        self._record(RecordKind.OBSERVATIONS, observation)
        return observation

    def get_observations(self) -> list[Observation]:
        return self.memory.get_all(self.session_id, RecordKind.OBSERVATIONS)

    def add_plan(self, plan: Plan) -> None:
        self._record(RecordKind.PLANS, plan)

    def get_plans(self) -> list[Plan]:
        return self.memory.get_all(self.session_id, RecordKind.PLANS)

    # -- LLM access --

    def generate_text(self, prompt: str, **options: Any) -> GenerateTextResult:
        return generate_text(self, prompt, **options)

    def stream_text(self, prompt: str, **options: Any) -> Iterator[str]:
        return stream_text(self, prompt, **options)

    def decide(
        self,
        goal: str,
        state: ObservedState,
        *,
        machine: MachineLike | None = None,
        execute: Callable[[dict[str, Any]], Any] | None = None,
        **options: Any,
    ) -> Plan | None:
        """Choose the next event for `state` that works towards `goal`."""
        return agent_decide(self, goal, state, machine=machine, execute=execute, **options)

    # -- Hosts --

    def observe(self, actor: MachineActor) -> Subscription:
        """Record every transition of `actor` as an observation."""

        def handle(prev_state, event, state) -> None:
            self.add_observation(state, prev_state=prev_state, event=event, machine=actor.logic)

        return actor.subscribe(handle)

    def interact(
        self,
        actor: MachineActor,
        get_input: Callable[[Observation], dict[str, Any] | None] | None = None,
    ) -> Subscription:
        """Observe `actor` and, when `get_input` asks for it, drive it.

        `get_input(observation)` returns decision input (``{"goal": ...}``
        plus any decide options) or None to stay passive. The actor's
        current state is handled immediately.
        """

        def handle(prev_state, event, state) -> None:
            observation = self.add_observation(
                state, prev_state=prev_state, event=event, machine=actor.logic
            )
            input = get_input(observation) if get_input is not None else None
            if not input:
                return
            input = dict(input)
            goal = input.pop("goal", None) or ""
            epoch = actor.epoch
            self.decide(
                goal,
                observation.state,
                machine=actor.logic,
                execute=actor.send,
                is_current=lambda: actor.epoch == epoch,
                **input,
            )

        subscription = actor.subscribe(handle)
        handle(None, None, actor.get_snapshot())
        return subscription
