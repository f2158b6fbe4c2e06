"""Text and tool-call generation on behalf of an agent.

Both entry points render the prompt through a template, prepend any
requested history, record the exchange in the agent's memory and delegate
the wire call to the agent's LLM adapter.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from .llm.adapter import LLMResponse, Message, ToolCall
from .records import new_id
from .templates import PromptTemplate, text_template
from .tools import ToolRegistry, ToolSpec

if TYPE_CHECKING:
    from .agent import Agent

    MessagesOption = bool | list[Message] | Callable[["Agent"], list[Message]] | None
    ToolsOption = Mapping[str, ToolSpec] | Iterable[Callable[..., Any] | ToolSpec] | None

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """A tool call from the model and what executing it returned."""

    tool_call_id: str
    tool_name: str
    arguments: dict[str, Any]
    result: Any


@dataclass
class GenerateTextResult:
    text: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


def _history_messages(agent: Agent) -> list[Message]:
    history = []
    for record in agent.get_messages():
        if record.role in ("system", "user", "assistant") and isinstance(record.content, str):
            history.append(Message(role=record.role, content=record.content))
    return history


def _build_messages(
    agent: Agent,
    prompt: str,
    messages: MessagesOption,
    system: str | None,
) -> list[Message]:
    if messages is True:
        history = _history_messages(agent)
    elif callable(messages):
        history = list(messages(agent))
    elif messages:
        history = list(messages)
    else:
        history = []

    result = []
    if system:
        result.append(Message(role="system", content=system))
    result.extend(history)
    result.append(Message(role="user", content=prompt))
    return result


def _build_registry(tools: ToolsOption) -> ToolRegistry:
    registry = ToolRegistry()
    if tools is None:
        return registry
    if isinstance(tools, Mapping):
        for spec in tools.values():
            registry.register(spec)
    else:
        for tool in tools:
            registry.register(tool)
    return registry


def _run_tool_calls(registry: ToolRegistry, response: LLMResponse) -> list[ToolResult]:
    results = []
    for tc in response.tool_calls:
        if registry.get(tc.name) is None:
            logger.warning("Model called unknown tool '%s'; ignoring it", tc.name)
            continue
        results.append(
            ToolResult(
                tool_call_id=tc.id,
                tool_name=tc.name,
                arguments=tc.arguments,
                result=registry.execute(tc.name, tc.arguments),
            )
        )
    return results


def generate_text(
    agent: Agent,
    prompt: str,
    *,
    context: Any = None,
    messages: MessagesOption = None,
    system: str | None = None,
    tools: ToolsOption = None,
    tool_choice: str | None = None,
    template: PromptTemplate | None = None,
    **options: Any,
) -> GenerateTextResult:
    """Generate a completion, executing any tool calls the model makes.

    Args:
        agent: The agent whose adapter and memory are used.
        prompt: The goal/prompt text.
        context: Data rendered into the prompt by the template.
        messages: Prior conversation. ``True`` uses the agent's stored messages.
        system: Optional system prompt.
        tools: ToolSpecs (by name) or callables offered to the model.
        tool_choice: ``"auto"``, ``"required"`` or ``"none"``.
        template: Prompt template; defaults to `text_template`.
        **options: Passed to the adapter (temperature, max_tokens).
    """
    options = {**agent.default_options, **options}
    template = template or text_template
    rendered = template(prompt, context)
    chat_messages = _build_messages(agent, rendered, messages, system)

    request_id = new_id()
    agent.add_message("user", rendered, id=request_id)

    registry = _build_registry(tools)
    if len(registry):
        response = agent.adapter.chat(
            chat_messages,
            tools=agent.adapter.format_tools(registry.list_tools()),
            tool_choice=tool_choice,
            **options,
        )
    else:
        response = agent.adapter.chat(chat_messages, **options)

    tool_results = _run_tool_calls(registry, response)
    result = GenerateTextResult(
        text=response.content or "",
        tool_calls=list(response.tool_calls),
        tool_results=tool_results,
        finish_reason=response.finish_reason,
        usage=dict(response.usage),
    )

    agent.add_message(
        "assistant",
        result.text,
        response_id=request_id,
        result={
            "finish_reason": result.finish_reason,
            "tool_calls": [{"id": tc.id, "name": tc.name, "arguments": tc.arguments} for tc in result.tool_calls],
            "usage": result.usage,
        },
    )
    return result


def stream_text(
    agent: Agent,
    prompt: str,
    *,
    context: Any = None,
    messages: MessagesOption = None,
    system: str | None = None,
    template: PromptTemplate | None = None,
    **options: Any,
) -> Iterator[str]:
    """Yield text deltas; the full reply is recorded once the stream ends."""
    options = {**agent.default_options, **options}
    template = template or text_template
    rendered = template(prompt, context)
    chat_messages = _build_messages(agent, rendered, messages, system)

    request_id = new_id()
    agent.add_message("user", rendered, id=request_id)

    parts: list[str] = []
    for delta in agent.adapter.stream(chat_messages, **options):
        parts.append(delta)
        yield delta

    agent.add_message("assistant", "".join(parts), response_id=request_id)


__all__ = [
    "GenerateTextResult",
    "ToolResult",
    "generate_text",
    "stream_text",
]
