"""
Configuration for fsm-agent.

Settings come from constructor arguments or, via `AgentConfig.from_env()`,
from environment variables (a `.env` file is loaded first if present).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from .llm.adapter import LLMAdapter

PROVIDERS = ("openai", "litellm")


@dataclass
class AgentConfig:
    """LLM provider and logging settings.

    Attributes:
        provider: "openai" or "litellm".
        model: Model name/identifier (litellm models carry a provider prefix).
        api_key: API key, if the provider needs one.
        base_url: Endpoint for OpenAI-compatible servers (e.g. Ollama).
        temperature: Default sampling temperature for agent calls.
        log_level: Level passed to `configure_logging`.
    """

    provider: str = "openai"
    model: str = "gpt-4o"
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = 0.7
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool | str = True) -> AgentConfig:
        """Read FSM_AGENT_* variables (OPENAI_API_KEY is the key fallback).

        `dotenv` is True to load the nearest `.env` from the working
        directory, a path to load that file, or False to skip it. Variables
        already set in the environment win over the file.
        """
        if dotenv:
            load_dotenv(dotenv if isinstance(dotenv, str) else find_dotenv(usecwd=True))
        return cls(
            provider=os.getenv("FSM_AGENT_PROVIDER", cls.provider),
            model=os.getenv("FSM_AGENT_MODEL", cls.model),
            api_key=os.getenv("FSM_AGENT_API_KEY") or os.getenv("OPENAI_API_KEY"),
            base_url=os.getenv("FSM_AGENT_BASE_URL"),
            temperature=float(os.getenv("FSM_AGENT_TEMPERATURE", str(cls.temperature))),
            log_level=os.getenv("FSM_AGENT_LOG_LEVEL", cls.log_level),
        )

    def create_adapter(self, **kwargs) -> LLMAdapter:
        return create_llm_adapter(
            self.provider,
            self.model,
            api_key=self.api_key,
            base_url=self.base_url,
            **kwargs,
        )

    @property
    def default_options(self) -> dict[str, float]:
        return {"temperature": self.temperature}


def create_llm_adapter(
    provider: str = "openai",
    model: str = "gpt-4o",
    api_key: str | None = None,
    base_url: str | None = None,
    **kwargs,
) -> LLMAdapter:
    """Factory function to create an LLM adapter.

    Example:
        adapter = create_llm_adapter("openai", "gpt-4o", api_key="...")
        adapter = create_llm_adapter("litellm", "ollama/llama3.1")
        adapter = create_llm_adapter("openai", "llama3.1", base_url="http://localhost:11434/v1")
    """
    if provider == "openai":
        from .llm.openai import OpenAIAdapter

        return OpenAIAdapter(model=model, api_key=api_key, base_url=base_url, **kwargs)
    if provider == "litellm":
        from .llm.litellm import LiteLLMAdapter

        if base_url:
            kwargs.setdefault("api_base", base_url)
        return LiteLLMAdapter(model=model, api_key=api_key, **kwargs)
    raise ValueError(f"Unknown provider '{provider}'; expected one of {', '.join(PROVIDERS)}")


def configure_logging(level: str | int = "INFO") -> None:
    """Basic console logging for applications and scripts."""
    logging.basicConfig(
        level=level if isinstance(level, int) else level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
