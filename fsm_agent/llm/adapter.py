"""LLM adapter protocol and shared data types."""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..tools import ToolSpec


@dataclass
class ToolCall:
    """A tool call requested by the LLM."""

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass
class Message:
    """A chat message."""

    role: str  # "system", "user", "assistant", "tool"
    content: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None
    name: str | None = None


@dataclass
class LLMResponse:
    """Response from an LLM chat call."""

    content: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


@runtime_checkable
class LLMAdapter(Protocol):
    """Minimal protocol for LLM providers.

    Implementations must provide:
      - chat(): send messages, get a response (optionally forcing a tool call
        with ``tool_choice="required"``)
      - stream(): send messages, yield text deltas
      - format_tools(): convert ToolSpecs to provider-specific schema

    Provider-specific code only maps requests and responses; everything else
    (prompting, tool execution, memory) lives above this layer.
    """

    def chat(
        self,
        messages: list[Message],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> LLMResponse: ...

    def stream(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> Iterator[str]: ...

    def format_tools(self, tools: list[ToolSpec]) -> list[dict[str, Any]]: ...


def to_openai_message(m: Message) -> dict[str, Any]:
    """Chat-completions wire format, shared by OpenAI and LiteLLM."""
    msg: dict[str, Any] = {"role": m.role}
    if m.content is not None:
        msg["content"] = m.content
    if m.tool_calls:
        msg["tool_calls"] = [
            {
                "id": tc.id,
                "type": "function",
                "function": {
                    "name": tc.name,
                    "arguments": _dump_arguments(tc.arguments),
                },
            }
            for tc in m.tool_calls
        ]
    if m.tool_call_id is not None:
        msg["tool_call_id"] = m.tool_call_id
    if m.name is not None:
        msg["name"] = m.name
    return msg


def _dump_arguments(arguments: dict[str, Any]) -> str:
    return json.dumps(arguments)


def parse_tool_arguments(raw: str | dict[str, Any] | None) -> dict[str, Any]:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    return json.loads(raw)
