"""Single-step planner: choose the next event with one forced tool call."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from .records import Plan, PlanStep
from .schemas import EventSchemaMap
from .state import ObservedState, TransitionData
from .templates import tool_call_template
from .tools import event_tools
from .transitions import MachineLike, get_all_transitions

if TYPE_CHECKING:
    from .agent import Agent

logger = logging.getLogger(__name__)


@dataclass
class PlanInput:
    """Everything a planner needs for one decision.

    Attributes:
        goal: What the agent should achieve.
        state: The observed state. Its context, if any, goes into the prompt.
        events: Event schema map; only these event types can be chosen.
        machine: Host machine used to find the enabled transitions. Without
            one, every declared event is a candidate.
        options: Extra options forwarded to text generation.
    """

    goal: str
    state: ObservedState
    events: EventSchemaMap
    machine: MachineLike | None = None
    options: dict[str, Any] = field(default_factory=dict)


Planner = Callable[["Agent", PlanInput], "Plan | None"]


def get_transitions(state: ObservedState, machine: MachineLike) -> list[TransitionData]:
    return get_all_transitions(machine.resolve_state(state))


def simple_planner(agent: Agent, input: PlanInput) -> Plan | None:
    """Ask the model for exactly one next event.

    Returns None when no declared event is enabled (nothing to choose) or
    when the model returns no tool result. If the model makes several tool
    calls, the first result wins.
    """
    if input.machine is not None:
        transitions = get_transitions(input.state, input.machine)
    else:
        transitions = [
            TransitionData(event_type=event_type)
            for event_type in input.events
        ]

    tools = event_tools(transitions, input.events)
    if not tools:
        logger.debug("No declared transitions enabled in state %r", input.state.value)
        return None

    prompt = tool_call_template(input.goal, input.state.context)
    result = agent.generate_text(
        prompt,
        tools=tools,
        tool_choice="required",
        **input.options,
    )

    if not result.tool_results:
        logger.warning(
            "No tool call results returned for goal %r (offered: %s)",
            input.goal,
            ", ".join(tools),
        )
        return None

    next_event = result.tool_results[0].result
    return Plan(
        goal=input.goal,
        state=input.state,
        next_event=next_event,
        steps=[PlanStep(event=next_event)],
        session_id=agent.session_id,
    )
