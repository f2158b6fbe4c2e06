"""Tool specifications, registry and the event-to-tool mapper."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Callable

from .errors import ToolNameCollisionError
from .schemas import EventSchemaMap, describe_event, parameters_schema
from .state import TransitionData

logger = logging.getLogger(__name__)

_JSON_TYPES = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
}


@dataclass
class ToolSpec:
    """A named, schema-described callable offered to the LLM."""

    name: str
    description: str
    parameters: dict[str, Any]
    func: Callable[..., Any]
    event_type: str | None = None

    @classmethod
    def from_callable(
        cls,
        func: Callable[..., Any],
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> ToolSpec:
        """Describe a plain function from its signature and docstring."""
        sig = inspect.signature(func)
        properties: dict[str, Any] = {}
        required: list[str] = []
        for pname, param in sig.parameters.items():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            prop: dict[str, Any] = {}
            json_type = _JSON_TYPES.get(param.annotation)
            if json_type:
                prop["type"] = json_type
            properties[pname] = prop
            if param.default is inspect.Parameter.empty:
                required.append(pname)

        return cls(
            name=name or func.__name__,
            description=description or inspect.getdoc(func) or f"Tool: {name or func.__name__}",
            parameters={"type": "object", "properties": properties, "required": required},
            func=func,
        )

    def to_openai_schema(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def execute(self, arguments: dict[str, Any]) -> Any:
        return self.func(**arguments)


@dataclass
class ToolRegistry:
    """Per-call set of tools, looked up by name."""

    _tools: dict[str, ToolSpec] = field(default_factory=dict)

    def register(self, tool: Callable[..., Any] | ToolSpec, **kwargs) -> ToolSpec:
        spec = tool if isinstance(tool, ToolSpec) else ToolSpec.from_callable(tool, **kwargs)
        self._tools[spec.name] = spec
        return spec

    def get(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def execute(self, name: str, arguments: dict[str, Any]) -> Any:
        spec = self._tools.get(name)
        if spec is None:
            raise KeyError(f"Tool '{name}' is not registered")
        return spec.execute(arguments)

    def list_tools(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def to_openai_schemas(self) -> list[dict[str, Any]]:
        return [t.to_openai_schema() for t in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)


def tool_name_for_event(event_type: str) -> str:
    """Function-name form of an event type. LLM APIs reject dots in names."""
    return event_type.replace(".", "_")


def _event_factory(event_type: str) -> Callable[..., dict[str, Any]]:
    def make_event(**params: Any) -> dict[str, Any]:
        return {**params, "type": event_type}

    make_event.__name__ = tool_name_for_event(event_type)
    return make_event


def event_tools(
    transitions: Iterable[TransitionData],
    events: EventSchemaMap,
    *,
    filter: Callable[[TransitionData], bool] | None = None,
) -> dict[str, ToolSpec]:
    """Map enabled transitions to tools, one per declared event type.

    Transitions whose event type is not declared in `events` are never
    offered, whatever `filter` says. An event declared with a `None` schema
    is offered with an empty payload. Executing a tool only builds the event
    object; dispatching it is the caller's job.

    Raises:
        ToolNameCollisionError: two distinct event types share a tool name.
    """
    tools: dict[str, ToolSpec] = {}
    for transition in transitions:
        if transition.event_type not in events:
            continue
        if filter is not None and not filter(transition):
            continue
        schema = events.get(transition.event_type)

        name = tool_name_for_event(transition.event_type)
        existing = tools.get(name)
        if existing is not None:
            if existing.event_type == transition.event_type:
                continue
            raise ToolNameCollisionError(name, (existing.event_type, transition.event_type))

        tools[name] = ToolSpec(
            name=name,
            description=describe_event(schema) or transition.description or transition.event_type,
            parameters=parameters_schema(schema),
            func=_event_factory(transition.event_type),
            event_type=transition.event_type,
        )

    logger.debug("Mapped %d transition tool(s): %s", len(tools), ", ".join(tools))
    return tools
