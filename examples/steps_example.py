"""
Example: letting an agent walk a three-step machine

This example demonstrates:
- Declaring the events an agent may cause as pydantic schemas
- Binding decisions to states with MachineActor.invoke
- Reading what the agent saw and decided from its memory

Run with an OpenAI key in the environment (or a .env file), or point
FSM_AGENT_PROVIDER/FSM_AGENT_MODEL at litellm and a local Ollama model.
"""

from statemachine import State, StateMachine

from fsm_agent import (
    Agent,
    AgentConfig,
    MachineActor,
    configure_logging,
    event_schema,
    from_decision,
)


class Steps(StateMachine):
    first = State(initial=True)
    second = State()
    third = State(final=True)

    doFirst = first.to(second)
    doSecond = second.to(third)


def main():
    config = AgentConfig.from_env()
    configure_logging(config.log_level)

    agent = Agent(
        config.create_adapter(),
        events={
            "doFirst": event_schema("Complete the first step"),
            "doSecond": event_schema("Complete the second step"),
        },
        name="stepper",
        default_options=config.default_options,
    )

    actor = MachineActor(Steps())
    agent.observe(actor)
    actor.invoke("first", from_decision(agent, "Move on to the next step"))
    actor.invoke("second", from_decision(agent, "Finish the task"))
    actor.start()

    print(f"Final state: {actor.value}")
    for plan in agent.get_plans():
        print(f"  {plan.state.value}: {plan.goal!r} -> {plan.next_event}")


if __name__ == "__main__":
    main()
