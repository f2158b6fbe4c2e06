"""Agent memory records: messages, observations, feedback and plans."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from .state import ObservedState


def new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordKind(str, Enum):
    """The four append-only logs kept per session."""

    MESSAGES = "messages"
    OBSERVATIONS = "observations"
    PLANS = "plans"
    FEEDBACK = "feedback"

    @classmethod
    def _missing_(cls, value):
        # singular names: "message", "observation", "plan"
        if isinstance(value, str):
            return cls._value2member_map_.get(value + "s")
        return None


@dataclass(frozen=True)
class MessageRecord:
    """A message sent to or received from the LLM."""

    role: str  # "system", "user", "assistant", "tool"
    content: Any
    session_id: str
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=utcnow)
    response_id: str | None = None
    result: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role,
            "content": self.content,
            "session_id": self.session_id,
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "response_id": self.response_id,
            "result": self.result,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> MessageRecord:
        return cls(
            role=d["role"],
            content=d.get("content"),
            session_id=d["session_id"],
            id=d["id"],
            timestamp=datetime.fromisoformat(d["timestamp"]),
            response_id=d.get("response_id"),
            result=d.get("result"),
        )


@dataclass(frozen=True)
class Observation:
    """A witnessed transition: (prev_state, event, state).

    `machine_hash` is set only when the observing agent was given the
    machine, so observations from different machine versions can be told
    apart later.
    """

    prev_state: ObservedState | None
    event: dict[str, Any] | None
    state: ObservedState
    session_id: str
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=utcnow)
    machine_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "prev_state": self.prev_state.to_dict() if self.prev_state else None,
            "event": self.event,
            "state": self.state.to_dict(),
            "session_id": self.session_id,
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "machine_hash": self.machine_hash,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Observation:
        prev = d.get("prev_state")
        return cls(
            prev_state=ObservedState.from_dict(prev) if prev else None,
            event=d.get("event"),
            state=ObservedState.from_dict(d["state"]),
            session_id=d["session_id"],
            id=d["id"],
            timestamp=datetime.fromisoformat(d["timestamp"]),
            machine_hash=d.get("machine_hash"),
        )


@dataclass(frozen=True)
class Feedback:
    """A reward signal attached to a goal."""

    goal: str
    session_id: str
    reward: float = 0.0
    attributes: dict[str, Any] = field(default_factory=dict)
    comment: str | None = None
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "goal": self.goal,
            "session_id": self.session_id,
            "reward": self.reward,
            "attributes": dict(self.attributes),
            "comment": self.comment,
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Feedback:
        return cls(
            goal=d["goal"],
            session_id=d["session_id"],
            reward=d.get("reward", 0.0),
            attributes=dict(d.get("attributes", {})),
            comment=d.get("comment"),
            id=d["id"],
            timestamp=datetime.fromisoformat(d["timestamp"]),
        )


@dataclass(frozen=True)
class PlanStep:
    event: dict[str, Any]


@dataclass(frozen=True)
class Plan:
    """The outcome of one planning call."""

    goal: str
    state: ObservedState
    session_id: str
    next_event: dict[str, Any] | None = None
    steps: list[PlanStep] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "goal": self.goal,
            "state": self.state.to_dict(),
            "session_id": self.session_id,
            "next_event": self.next_event,
            "steps": [{"event": s.event} for s in self.steps],
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Plan:
        return cls(
            goal=d["goal"],
            state=ObservedState.from_dict(d["state"]),
            session_id=d["session_id"],
            next_event=d.get("next_event"),
            steps=[PlanStep(event=s["event"]) for s in d.get("steps", [])],
            timestamp=datetime.fromisoformat(d["timestamp"]),
        )


RECORD_TYPES: dict[RecordKind, type] = {
    RecordKind.MESSAGES: MessageRecord,
    RecordKind.OBSERVATIONS: Observation,
    RecordKind.PLANS: Plan,
    RecordKind.FEEDBACK: Feedback,
}
