"""Custom exceptions for fsm-agent."""


class AgentError(Exception):
    """General agent error."""
    pass


class InvalidSnapshotError(AgentError):
    """Raised when a snapshot carries no state node structure."""

    def __init__(self, snapshot=None):
        self.snapshot = snapshot
        super().__init__("Snapshot has no active state nodes to enumerate transitions from")


class UnknownStateError(AgentError):
    """Raised when an observed state value does not resolve against a machine."""

    def __init__(self, state, machine_name: str | None = None):
        self.state = state
        self.machine_name = machine_name
        where = f" in machine '{machine_name}'" if machine_name else ""
        super().__init__(f"State '{state}' not found{where}")


class ToolNameCollisionError(AgentError):
    """Raised when two event types sanitize to the same tool name."""

    def __init__(self, name: str, event_types: tuple[str, ...]):
        self.name = name
        self.event_types = event_types
        super().__init__(
            f"Tool name '{name}' is produced by more than one event type: "
            f"{', '.join(event_types)}"
        )
