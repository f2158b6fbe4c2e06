"""
Example: a number guessing game played by an agent

This example demonstrates:
- Event payloads (the model fills in the guessed number)
- Sharing machine data with the model through the prompt context
- Agent.interact: observe every transition and decide while playing
- Feedback and saving the session memory to disk
"""

import random

from pydantic import BaseModel, Field
from statemachine import State, StateMachine

from fsm_agent import Agent, AgentConfig, MachineActor, configure_logging, event_schema


class Guess(BaseModel):
    """Guess the secret number between 1 and 10."""

    number: int = Field(description="The guessed number")


class Game:
    def __init__(self):
        self.secret = random.randint(1, 10)
        self.guesses = []
        self.hint = None


class GuessingGame(StateMachine):
    playing = State(initial=True)
    won = State(final=True)
    lost = State(final=True)

    guess = playing.to(won, cond="is_correct") | playing.to(playing)
    giveUp = playing.to(lost)

    def is_correct(self, number: int) -> bool:
        return number == self.model.secret

    def on_guess(self, number: int):
        self.model.guesses.append(number)
        self.model.hint = "higher" if number < self.model.secret else "lower"


def main():
    config = AgentConfig.from_env()
    configure_logging(config.log_level)

    agent = Agent(
        config.create_adapter(),
        events={"guess": Guess, "giveUp": event_schema("Give up the game")},
        name="guesser",
    )
    game = Game()
    actor = MachineActor(
        GuessingGame(game),
        context=lambda: {"previous_guesses": list(game.guesses), "hint": game.hint},
    )

    def get_input(observation):
        if observation.state.value != "playing":
            return None
        if len(game.guesses) >= 6:
            actor.send("giveUp")
            return None
        return {"goal": "Guess the secret number in as few tries as possible."}

    agent.interact(actor, get_input)

    print(f"Secret: {game.secret}, guesses: {game.guesses}, result: {actor.value}")
    agent.add_feedback(
        "Guess the secret number",
        reward=1.0 if actor.value == "won" else 0.0,
        attributes={"guesses": len(game.guesses)},
    )
    agent.memory.save_to_file("guessing_game_memory.json")


if __name__ == "__main__":
    main()
