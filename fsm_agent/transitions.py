"""Enumerating enabled transitions and fingerprinting machine structure."""

from __future__ import annotations

import hashlib
import json
import weakref
from typing import Any, Protocol

from .errors import InvalidSnapshotError
from .state import ObservedState, Snapshot, TransitionData


class MachineLike(Protocol):
    """What the planner needs from a host machine definition."""

    def resolve_state(self, state: ObservedState) -> Snapshot: ...

    def describe_transitions(self) -> list[tuple[str, str, str | None]]: ...


def get_all_transitions(snapshot: Snapshot) -> list[TransitionData]:
    """Flatten the transitions of every active node, in traversal order.

    No de-duplication: an event enabled on two active nodes appears twice.
    """
    nodes = getattr(snapshot, "nodes", None)
    if nodes is None:
        raise InvalidSnapshotError(snapshot)
    return [t for node in nodes for t in node.transitions]


_machine_hashes: weakref.WeakKeyDictionary[Any, str] = weakref.WeakKeyDictionary()


def get_machine_hash(machine: MachineLike) -> str:
    """Stable hash of the machine's transitions (source, event, target)."""
    cached = _machine_hashes.get(machine)
    if cached is not None:
        return cached

    triples = sorted(
        [source, event, target if target is not None else ""]
        for source, event, target in machine.describe_transitions()
    )
    digest = hashlib.sha256(json.dumps(triples).encode("utf-8")).hexdigest()
    _machine_hashes[machine] = digest
    return digest
