"""Binding to python-statemachine as the host runtime.

`MachineLogic` wraps a `StateMachine` class (the machine definition) and
`MachineActor` wraps a running instance. Together they provide what the
planner and the decision executor need from a host: state resolution,
enabled transitions, snapshots and event dispatch.

Compound and parallel states are supported. The observed value of a machine
is the id of its active atomic state, or a list of ids when parallel regions
keep several atomic states active. Resolving a value brings back the whole
active configuration: the atomic states and all of their ancestors.

Example:
    class Steps(StateMachine):
        first = State(initial=True)
        second = State()
        third = State(final=True)

        doFirst = first.to(second)
        doSecond = second.to(third)

    actor = MachineActor(Steps())
    actor.invoke("first", from_decision(agent, "Move on"))
    actor.invoke("second", from_decision(agent, "Finish"))
    actor.start()
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from statemachine import State, StateMachine

from .errors import UnknownStateError
from .state import ObservedState, Snapshot, StateNode, TransitionData

logger = logging.getLogger(__name__)

TransitionCallback = Callable[[ObservedState | None, dict[str, Any] | None, ObservedState], None]


def _event_ids(transition) -> list[str]:
    return [str(e) for e in transition.events]


def _depth(state: State) -> int:
    return sum(1 for _ in state.ancestors())


def _values(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


class MachineLogic:
    """A python-statemachine definition seen as planner-facing logic."""

    def __init__(self, machine: type[StateMachine] | StateMachine):
        self.machine_class: type[StateMachine] = (
            machine if isinstance(machine, type) else type(machine)
        )

    @property
    def name(self) -> str:
        return self.machine_class.__name__

    @property
    def states(self) -> list[State]:
        """Every state, nested ones included, in document order."""
        return list(self.machine_class.states_map.values())

    def get_state(self, value: Any) -> State:
        state = self.machine_class.states_map.get(value)
        if state is not None:
            return state
        for state in self.machine_class.states_map.values():
            if state.id == value:
                return state
        raise UnknownStateError(value, self.name)

    def configuration(self, value: Any) -> list[State]:
        """The active states for an observed value, innermost first.

        Each given state brings its ancestors along. States are ordered by
        depth (deepest first), then document order, which is also the order
        in which python-statemachine gives transitions priority.
        """
        active: dict[str, State] = {}
        for v in _values(value):
            state = self.get_state(v)
            for s in (state, *state.ancestors()):
                active.setdefault(s.id, s)
        return sorted(active.values(), key=lambda s: (-_depth(s), s.document_order))

    def _node(self, state: State) -> StateNode:
        transitions = [
            TransitionData(event_type=event)
            for transition in state.transitions
            for event in _event_ids(transition)
        ]
        return StateNode(id=state.id, transitions=transitions)

    def resolve_state(self, state: ObservedState | Any) -> Snapshot:
        """Resolve an observed state (or bare state value) into a snapshot."""
        if isinstance(state, ObservedState):
            value, context = state.value, state.context
        else:
            value, context = state, None
        nodes = [self._node(s) for s in self.configuration(value)]
        return Snapshot(value=value, context=context, nodes=nodes)

    def describe_transitions(self) -> list[tuple[str, str, str | None]]:
        triples = []
        for state in self.machine_class.states_map.values():
            for transition in state.transitions:
                target = transition.target.id if transition.target is not None else None
                for event in _event_ids(transition):
                    triples.append((state.id, event, target))
        return triples

    def __repr__(self) -> str:
        return f"MachineLogic({self.name})"


@dataclass
class Subscription:
    """Handle returned by subscribe-style calls."""

    _unsubscribe: Callable[[], None]
    closed: bool = False

    def unsubscribe(self) -> None:
        if not self.closed:
            self.closed = True
            self._unsubscribe()


class _TransitionListener:
    """python-statemachine listener forwarding transitions to the actor."""

    def __init__(self, actor: MachineActor):
        self._actor = actor

    def after_transition(self, event, source, target):
        self._actor._on_transition(str(event), source, target)


class MachineActor:
    """A running python-statemachine instance exposed as an agent host.

    Attributes:
        machine: The wrapped StateMachine instance.
        logic: MachineLogic for the instance's class.
        epoch: Number of transitions seen since the actor was created.
    """

    def __init__(
        self,
        machine: StateMachine,
        *,
        context: Mapping[str, Any] | Callable[[], Mapping[str, Any]] | None = None,
    ):
        self.machine = machine
        self.logic = MachineLogic(machine)
        self.epoch = 0
        self._context = context
        self._subscribers: list[TransitionCallback] = []
        self._invocations: dict[str, tuple[Any, Any]] = {}
        self._last_snapshot = self.get_snapshot()
        self._last_active = set(self.active_state_ids)
        machine.add_listener(_TransitionListener(self))

    @property
    def active_state_ids(self) -> list[str]:
        """Ids of every active state, compound and parallel parents included."""
        return [state.id for state in self.machine.configuration]

    @property
    def value(self) -> str | list[str]:
        """Id of the active atomic state, or a list of them for parallel regions."""
        leaves = [state.id for state in self.machine.configuration if state.is_atomic]
        return leaves[0] if len(leaves) == 1 else leaves

    @property
    def context(self) -> dict[str, Any]:
        if self._context is None:
            return self._model_context()
        if callable(self._context):
            return dict(self._context())
        return dict(self._context)

    def _model_context(self) -> dict[str, Any]:
        model = self.machine.model
        if isinstance(model, Mapping):
            return dict(model)
        state_field = getattr(self.machine, "state_field", "state")
        return {
            k: v
            for k, v in vars(model).items()
            if not k.startswith("_") and k != state_field
        }

    def get_snapshot(self) -> ObservedState:
        return ObservedState(value=self.value, context=self.context)

    def send(self, event: Mapping[str, Any] | str) -> Any:
        """Dispatch an event object (``{"type": ..., **payload}``) or event name."""
        if isinstance(event, str):
            return self.machine.send(event)
        payload = {k: v for k, v in event.items() if k != "type"}
        return self.machine.send(event["type"], **payload)

    def subscribe(self, callback: TransitionCallback) -> Subscription:
        """Call ``callback(prev_state, event, state)`` after every transition."""
        self._subscribers.append(callback)

        def remove() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return Subscription(remove)

    def invoke(self, state_id: str, executor: Any, input: Any = None) -> None:
        """Run ``executor.invoke(self, input)`` whenever `state_id` is entered."""
        self.logic.get_state(state_id)
        self._invocations[state_id] = (executor, input)

    def start(self) -> None:
        """Run the invocations bound to the currently active states."""
        for state_id in self.active_state_ids:
            self._run_invocation(state_id)

    def _run_invocation(self, state_id: str) -> None:
        bound = self._invocations.get(state_id)
        if bound is None:
            return
        executor, input = bound
        executor.invoke(self, input)

    def _entered(self, target) -> list[str]:
        # the target and its descendants are (re-)entered even on self-transitions
        entered = []
        for state in self.machine.configuration:
            if (
                state.id not in self._last_active
                or state.id == target.id
                or any(a.id == target.id for a in state.ancestors())
            ):
                entered.append(state.id)
        return entered

    def _on_transition(self, event: str, source, target) -> None:
        if event.startswith("__"):
            # initial activation, not a real transition
            return
        self.epoch += 1
        prev = self._last_snapshot
        current = self.get_snapshot()
        entered = self._entered(target)
        self._last_snapshot = current
        self._last_active = set(self.active_state_ids)
        logger.debug("%s: %s --%s--> %s", self.logic.name, source.id, event, target.id)

        for callback in list(self._subscribers):
            callback(prev, {"type": event}, current)
        for state_id in entered:
            self._run_invocation(state_id)
