"""fsm-agent: LLM decision-making for python-statemachine machines.

An agent looks at the current state of a machine, offers the enabled
transitions to an LLM as tools, and dispatches the single event the model
picks. Everything it sees and decides is kept in session-scoped,
append-only memory.
"""

__version__ = "0.1.0"

from .agent import Agent
from .config import AgentConfig, configure_logging, create_llm_adapter
from .decision import (
    DecisionExecutor,
    TextExecutor,
    TextStreamExecutor,
    agent_decide,
    from_decision,
    from_text,
    from_text_stream,
)
from .errors import AgentError, InvalidSnapshotError, ToolNameCollisionError, UnknownStateError
from .generate import GenerateTextResult, ToolResult
from .llm.adapter import LLMAdapter, LLMResponse, Message
from .llm.adapter import ToolCall as LLMToolCall
from .machine import MachineActor, MachineLogic, Subscription
from .memory import AgentMemory, InMemoryAgentMemory
from .planner import PlanInput, simple_planner
from .records import Feedback, MessageRecord, Observation, Plan, PlanStep, RecordKind
from .schemas import event_schema
from .state import ObservedState, Snapshot, StateNode, TransitionData
from .tools import ToolRegistry, ToolSpec, event_tools, tool_name_for_event
from .transitions import get_all_transitions, get_machine_hash

__all__ = [
    # Agent
    "Agent",
    "agent_decide",
    "DecisionExecutor",
    "from_decision",
    "TextExecutor",
    "TextStreamExecutor",
    "from_text",
    "from_text_stream",
    # Planning
    "PlanInput",
    "simple_planner",
    "event_tools",
    "tool_name_for_event",
    "get_all_transitions",
    "get_machine_hash",
    # Host binding
    "MachineActor",
    "MachineLogic",
    "Subscription",
    # Data
    "ObservedState",
    "Snapshot",
    "StateNode",
    "TransitionData",
    "event_schema",
    # Memory
    "AgentMemory",
    "InMemoryAgentMemory",
    "RecordKind",
    "MessageRecord",
    "Observation",
    "Feedback",
    "Plan",
    "PlanStep",
    # Tools
    "ToolSpec",
    "ToolRegistry",
    # LLM
    "LLMAdapter",
    "Message",
    "LLMResponse",
    "LLMToolCall",
    "GenerateTextResult",
    "ToolResult",
    # Config
    "AgentConfig",
    "create_llm_adapter",
    "configure_logging",
    # Errors
    "AgentError",
    "InvalidSnapshotError",
    "ToolNameCollisionError",
    "UnknownStateError",
]
