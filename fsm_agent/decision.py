"""Deciding the next event, and running agent work inside a host machine."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, Callable, Protocol

from .generate import GenerateTextResult
from .machine import Subscription
from .planner import PlanInput, Planner
from .records import Plan
from .schemas import EventSchemaMap
from .state import ObservedState
from .transitions import MachineLike

if TYPE_CHECKING:
    from .agent import Agent

logger = logging.getLogger(__name__)


def agent_decide(
    agent: Agent,
    goal: str,
    state: ObservedState,
    *,
    machine: MachineLike | None = None,
    events: EventSchemaMap | None = None,
    planner: Planner | None = None,
    execute: Callable[[dict[str, Any]], Any] | None = None,
    is_current: Callable[[], bool] | None = None,
    **options: Any,
) -> Plan | None:
    """Plan the next event and, if one was chosen, record and execute it.

    Args:
        agent: The deciding agent.
        goal: What to achieve.
        state: Observed state to plan from.
        machine: Host machine for enabled-transition lookup.
        events: Event schema map (defaults to the agent's).
        planner: Planner to use (defaults to the agent's).
        execute: Called with the chosen event. The only side effect on the
            host.
        is_current: Checked after planning; a False result means the host has
            moved on and the plan is dropped without recording or executing.
        **options: Forwarded to text generation.
    """
    planner = planner or agent.planner
    plan = planner(
        agent,
        PlanInput(
            goal=goal,
            state=state,
            events=agent.events if events is None else events,
            machine=machine,
            options=options,
        ),
    )

    if plan is None or plan.next_event is None:
        return plan

    if is_current is not None and not is_current():
        logger.info(
            "Discarding stale plan for goal %r: host left state %r while deciding",
            goal,
            state.value,
        )
        return None

    agent.add_plan(plan)
    if execute is not None:
        execute(plan.next_event)
    return plan


class Parent(Protocol):
    """A running host the decision executor can read from and send to."""

    logic: MachineLike
    epoch: int

    def get_snapshot(self) -> ObservedState: ...

    def send(self, event: dict[str, Any]) -> Any: ...


def select_context(parent_context: Mapping[str, Any], selection: Any) -> dict[str, Any] | None:
    """Pick the part of the parent's context to show the model.

    ``True`` selects everything, a mapping is used as given, a list or tuple
    of keys selects those keys. Anything else selects nothing.
    """
    if selection is True:
        return dict(parent_context)
    if isinstance(selection, Mapping):
        return dict(selection)
    if isinstance(selection, (list, tuple)):
        return {k: parent_context[k] for k in selection if k in parent_context}
    return None


class DecisionExecutor:
    """Invocable unit that asks the agent for the parent's next event.

    Bind it to a state with `MachineActor.invoke`, or call `invoke(parent)`
    directly. The chosen event is sent back to the parent; the executor never
    changes the parent's state any other way.
    """

    def __init__(self, agent: Agent, default_input: str | Mapping[str, Any] | None = None):
        self.agent = agent
        self.default_input = self._as_mapping(default_input)

    @staticmethod
    def _as_mapping(input: str | Mapping[str, Any] | None) -> dict[str, Any]:
        if input is None:
            return {}
        if isinstance(input, str):
            return {"goal": input}
        return dict(input)

    def invoke(self, parent: Parent | None = None, input: str | Mapping[str, Any] | None = None) -> Plan | None:
        if parent is None:
            logger.debug("Decision invoked without a parent; nothing to do")
            return None

        resolved = {**self.default_input, **self._as_mapping(input)}
        goal = resolved.pop("goal", None) or ""
        selection = resolved.pop("context", None)

        snapshot = parent.get_snapshot()
        state = ObservedState(
            value=snapshot.value,
            context=select_context(snapshot.context or {}, selection),
        )
        epoch = parent.epoch

        return agent_decide(
            self.agent,
            goal,
            state,
            machine=parent.logic,
            execute=parent.send,
            is_current=lambda: parent.epoch == epoch,
            **resolved,
        )

    __call__ = invoke


def from_decision(agent: Agent, default_input: str | Mapping[str, Any] | None = None) -> DecisionExecutor:
    return DecisionExecutor(agent, default_input)


def _text_request(
    parent: Parent | None,
    default_input: dict[str, Any],
    input: str | Mapping[str, Any] | None,
) -> tuple[str, dict[str, Any]]:
    resolved = {**default_input, **_as_prompt_mapping(input)}
    prompt = resolved.pop("prompt", None) or ""
    selection = resolved.pop("context", None)
    parent_context = (parent.get_snapshot().context or {}) if parent is not None else {}
    resolved["context"] = select_context(parent_context, selection)
    return prompt, resolved


def _as_prompt_mapping(input: str | Mapping[str, Any] | None) -> dict[str, Any]:
    if input is None:
        return {}
    if isinstance(input, str):
        return {"prompt": input}
    return dict(input)


class TextExecutor:
    """Invocable unit that generates text with the agent.

    Input is a prompt string or a mapping with ``prompt``, ``context`` and
    any `generate_text` option. ``context`` is selected from the parent's
    snapshot the same way as for decisions. Unlike `DecisionExecutor` it
    runs without a parent and never sends events.
    """

    def __init__(self, agent: Agent, default_input: str | Mapping[str, Any] | None = None):
        self.agent = agent
        self.default_input = _as_prompt_mapping(default_input)
        self.last_result: GenerateTextResult | None = None

    def invoke(self, parent: Parent | None = None, input: str | Mapping[str, Any] | None = None) -> GenerateTextResult:
        prompt, options = _text_request(parent, self.default_input, input)
        self.last_result = self.agent.generate_text(prompt, **options)
        return self.last_result

    __call__ = invoke


class TextStreamExecutor:
    """Like `TextExecutor`, but streams the reply.

    Subscribers are called with each text delta as it arrives; `invoke`
    returns the full text once the stream ends.
    """

    def __init__(self, agent: Agent, default_input: str | Mapping[str, Any] | None = None):
        self.agent = agent
        self.default_input = _as_prompt_mapping(default_input)
        self._subscribers: list[Callable[[str], None]] = []

    def subscribe(self, callback: Callable[[str], None]) -> Subscription:
        self._subscribers.append(callback)

        def remove() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return Subscription(remove)

    def stream(self, parent: Parent | None = None, input: str | Mapping[str, Any] | None = None) -> Iterator[str]:
        prompt, options = _text_request(parent, self.default_input, input)
        for delta in self.agent.stream_text(prompt, **options):
            for callback in list(self._subscribers):
                callback(delta)
            yield delta

    def invoke(self, parent: Parent | None = None, input: str | Mapping[str, Any] | None = None) -> str:
        return "".join(self.stream(parent, input))

    __call__ = invoke


def from_text(agent: Agent, default_input: str | Mapping[str, Any] | None = None) -> TextExecutor:
    return TextExecutor(agent, default_input)


def from_text_stream(agent: Agent, default_input: str | Mapping[str, Any] | None = None) -> TextStreamExecutor:
    return TextStreamExecutor(agent, default_input)
