"""Observed state, transition data and resolved snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObservedState:
    """A captured state machine configuration and its data.

    Attributes:
        value: The state value (for python-statemachine, the state id).
        context: The data visible to the agent. ``None`` means no context
            was selected, which keeps it out of prompts entirely.
    """

    value: Any
    context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "context": self.context}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ObservedState:
        return cls(value=d["value"], context=d.get("context"))


@dataclass(frozen=True)
class TransitionData:
    """One enabled transition, identified by the event that triggers it."""

    event_type: str
    description: str | None = None


@dataclass
class StateNode:
    """An active state node and the transitions registered on it."""

    id: str
    transitions: list[TransitionData] = field(default_factory=list)


@dataclass
class Snapshot:
    """An ObservedState resolved against a machine.

    `nodes` is the active state configuration in traversal order.
    """

    value: Any
    context: dict[str, Any] | None = None
    nodes: list[StateNode] | None = None
