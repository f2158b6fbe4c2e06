"""OpenAI-compatible LLM adapter."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from ..tools import ToolSpec
from .adapter import LLMResponse, Message, ToolCall, parse_tool_arguments, to_openai_message


class OpenAIAdapter:
    """Adapter for the OpenAI chat completions API.

    Any OpenAI-compatible server works through `base_url` (e.g. Ollama at
    ``http://localhost:11434/v1``). Extra keyword arguments such as
    ``max_retries`` or ``timeout`` go to the ``openai.OpenAI`` client.
    """

    def __init__(
        self,
        model: str = "gpt-4o",
        api_key: str | None = None,
        base_url: str | None = None,
        **kwargs,
    ):
        try:
            import openai
        except ImportError:
            raise ImportError("Install openai: pip install 'fsm-agent[openai]'")
        self.model = model
        self._client = openai.OpenAI(api_key=api_key, base_url=base_url, **kwargs)

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

        response = self._client.chat.completions.create(**kwargs)
        choice = response.choices[0]

        tool_calls: list[ToolCall] = []
        if choice.message.tool_calls:
            for tc in choice.message.tool_calls:
                tool_calls.append(
                    ToolCall(
                        id=tc.id,
                        name=tc.function.name,
                        arguments=parse_tool_arguments(tc.function.arguments),
                    )
                )

        usage = {}
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=choice.message.content,
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
        for chunk in self._client.chat.completions.create(stream=True, **kwargs):
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta
