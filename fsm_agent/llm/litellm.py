"""LiteLLM adapter: one code path for Ollama, Anthropic, Gemini and friends."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from ..tools import ToolSpec
from .adapter import LLMResponse, Message, ToolCall, parse_tool_arguments, to_openai_message


class LiteLLMAdapter:
    """Adapter for `litellm.completion`.

    Model names carry the provider prefix, e.g. ``ollama/llama3.1`` or
    ``anthropic/claude-3-5-sonnet-latest``. Extra keyword arguments
    (``api_base``, ``num_retries``...) are forwarded on every request.
    """

    def __init__(self, model: str = "ollama/llama3.1", api_key: str | None = None, **config):
        try:
            import litellm
        except ImportError:
            raise ImportError("Install litellm: pip install 'fsm-agent[litellm]'")
        self.model = model
        self.config = dict(config)
        if api_key:
            self.config["api_key"] = api_key
        self.litellm = litellm

    def format_tools(self, tools: list[ToolSpec]) -> list[dict[str, Any]]:
        return [t.to_openai_schema() for t in tools]

    def _request(
        self,
        messages: list[Message],
        temperature: float,
        max_tokens: int | None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [to_openai_message(m) for m in messages],
            "temperature": temperature,
            **self.config,
        }
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        return kwargs

    def chat(
        self,
        messages: list[Message],
        *,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        kwargs = self._request(messages, temperature, max_tokens)
        if tools:
            kwargs["tools"] = tools
            if tool_choice is not None:
                kwargs["tool_choice"] = tool_choice

        response = self.litellm.completion(**kwargs)
        choice = response.choices[0]
        message = choice.message

        tool_calls = [
            ToolCall(
                id=tc.id,
                name=tc.function.name,
                arguments=parse_tool_arguments(tc.function.arguments),
            )
            for tc in (getattr(message, "tool_calls", None) or [])
        ]

        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=message.content,
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason,
            usage=usage,
        )

    def stream(
        self,
        messages: list[Message],
        *,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        kwargs = self._request(messages, temperature, max_tokens)
        for chunk in self.litellm.completion(stream=True, **kwargs):
            delta = chunk.choices[0].delta.content if chunk.choices else None
            if delta:
                yield delta
