"""Tests for configuration."""

import logging
import os

import pytest

from fsm_agent.config import AgentConfig, configure_logging
from fsm_agent.llm.litellm import LiteLLMAdapter

ENV_VARS = [
    "FSM_AGENT_PROVIDER",
    "FSM_AGENT_MODEL",
    "FSM_AGENT_API_KEY",
    "FSM_AGENT_BASE_URL",
    "FSM_AGENT_TEMPERATURE",
    "FSM_AGENT_LOG_LEVEL",
    "OPENAI_API_KEY",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestAgentConfig:
    def test_defaults(self, clean_env):
        config = AgentConfig.from_env(dotenv=False)
        assert config.provider == "openai"
        assert config.model == "gpt-4o"
        assert config.api_key is None
        assert config.temperature == 0.7
        assert config.default_options == {"temperature": 0.7}

    def test_reads_environment(self, clean_env):
        clean_env.setenv("FSM_AGENT_PROVIDER", "litellm")
        clean_env.setenv("FSM_AGENT_MODEL", "ollama/llama3.1")
        clean_env.setenv("FSM_AGENT_BASE_URL", "http://localhost:11434")
        clean_env.setenv("FSM_AGENT_TEMPERATURE", "0.2")
        clean_env.setenv("FSM_AGENT_LOG_LEVEL", "debug")
        config = AgentConfig.from_env(dotenv=False)
        assert config.provider == "litellm"
        assert config.model == "ollama/llama3.1"
        assert config.base_url == "http://localhost:11434"
        assert config.temperature == 0.2
        assert config.log_level == "debug"

    def test_api_key_fallback(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-fallback")
        assert AgentConfig.from_env(dotenv=False).api_key == "sk-fallback"
        clean_env.setenv("FSM_AGENT_API_KEY", "sk-own")
        assert AgentConfig.from_env(dotenv=False).api_key == "sk-own"

    def test_loads_dotenv_file(self, clean_env, tmp_path):
        # keep variables loaded from the file out of the real environment
        clean_env.setattr(os, "environ", dict(os.environ))
        env_file = tmp_path / ".env"
        env_file.write_text("FSM_AGENT_MODEL=from-dotenv\nFSM_AGENT_TEMPERATURE=0.5\n")
        config = AgentConfig.from_env(dotenv=str(env_file))
        assert config.model == "from-dotenv"
        assert config.temperature == 0.5

    def test_environment_wins_over_dotenv(self, clean_env, tmp_path):
        clean_env.setattr(os, "environ", dict(os.environ))
        clean_env.setenv("FSM_AGENT_MODEL", "from-env")
        env_file = tmp_path / ".env"
        env_file.write_text("FSM_AGENT_MODEL=from-dotenv\n")
        assert AgentConfig.from_env(dotenv=str(env_file)).model == "from-env"

    def test_create_adapter(self):
        config = AgentConfig(provider="litellm", model="ollama/llama3.1", base_url="http://h:1")
        adapter = config.create_adapter()
        assert isinstance(adapter, LiteLLMAdapter)
        assert adapter.config["api_base"] == "http://h:1"

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            AgentConfig(provider="mystery").create_adapter()


class TestConfigureLogging:
    def test_accepts_names_and_numbers(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
        configure_logging("debug")
        configure_logging(logging.WARNING)
        assert [c["level"] for c in calls] == ["DEBUG", logging.WARNING]
