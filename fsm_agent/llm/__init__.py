"""LLM adapter layer."""

from .adapter import LLMAdapter, LLMResponse, Message, ToolCall

__all__ = ["LLMAdapter", "Message", "ToolCall", "LLMResponse"]
