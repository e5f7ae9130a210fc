"""
Move application for the local squad.
Advances agents by one batch of queued actions once a round result arrives.
"""

from typing import List, Sequence

from geometry import rotate_left, rotate_right
from models import Action, Agent, MoveTo, Nothing, TurnLeft, TurnRight


def apply_action(agent: Agent, action: Action) -> Agent:
    """Return the agent as it stands after a single action."""
    if isinstance(action, Nothing):
        return agent
    if isinstance(action, TurnLeft):
        return Agent(direction=rotate_left(agent.direction), position=agent.position)
    if isinstance(action, TurnRight):
        return Agent(direction=rotate_right(agent.direction), position=agent.position)
    if isinstance(action, MoveTo):
        return Agent(direction=agent.direction, position=action.cell)
    raise TypeError(f"Unknown action: {action!r}")


def apply_moves(agents: Sequence[Agent], moves: Sequence[Action]) -> List[Agent]:
    """
    Advance a squad by one batch of actions.

    Pure: the inputs are left untouched and a new roster is returned in the
    same order. Legality is not re-checked; the batch is trusted to have
    been validated locally or accepted by the server.

    Args:
        agents: Current roster
        moves: One action per agent, index-aligned with the roster

    Returns:
        New roster of the same length
    """
    if len(agents) != len(moves):
        raise ValueError(f"Got {len(moves)} moves for {len(agents)} agents")
    return [apply_action(agent, action) for agent, action in zip(agents, moves)]
