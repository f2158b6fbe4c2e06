"""Session-scoped, append-only agent memory."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Protocol, runtime_checkable

from .records import RECORD_TYPES, RecordKind

logger = logging.getLogger(__name__)


@runtime_checkable
class AgentMemory(Protocol):
    """Two-operation contract for agent memory backends.

    Implementations must never fail for an unknown session: the first
    append creates it.
    """

    def append(self, session_id: str, kind: RecordKind | str, record: Any) -> None: ...

    def get_all(self, session_id: str, kind: RecordKind | str) -> list[Any]: ...


def _empty_session() -> dict[RecordKind, list[Any]]:
    return {kind: [] for kind in RecordKind}


class InMemoryAgentMemory:
    """Unbounded in-process log of records, keyed by session id.

    No de-duplication, no eviction. Appends are serialized with a lock so
    the store can be shared between threads.
    """

    def __init__(self):
        self._sessions: dict[str, dict[RecordKind, list[Any]]] = {}
        self._lock = threading.Lock()

    def append(self, session_id: str, kind: RecordKind | str, record: Any) -> None:
        kind = RecordKind(kind)
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = self._sessions[session_id] = _empty_session()
                logger.debug("Created memory session %s", session_id)
            session[kind].append(record)

    def get_all(self, session_id: str, kind: RecordKind | str) -> list[Any]:
        kind = RecordKind(kind)
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return []
            return list(session[kind])

    def sessions(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def to_dict(self) -> dict[str, Any]:
        """Serialize every session. Records must provide ``to_dict()``."""
        with self._lock:
            return {
                "sessions": {
                    session_id: {
                        kind.value: [r.to_dict() for r in records]
                        for kind, records in session.items()
                    }
                    for session_id, session in self._sessions.items()
                }
            }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InMemoryAgentMemory:
        memory = cls()
        for session_id, session in data.get("sessions", {}).items():
            memory._sessions[session_id] = _empty_session()
            for kind_name, records in session.items():
                kind = RecordKind(kind_name)
                record_type = RECORD_TYPES[kind]
                memory._sessions[session_id][kind] = [
                    record_type.from_dict(r) for r in records
                ]
        return memory

    def save_to_file(self, filepath: str) -> None:
        """Save memory to a JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2, default=str)

    @classmethod
    def load_from_file(cls, filepath: str) -> InMemoryAgentMemory:
        """Load memory from a JSON file."""
        with open(filepath) as f:
            data = json.load(f)
        return cls.from_dict(data)
