"""
Move legality for the local squad.

Clicks on the board either select an agent or queue a MoveTo for the
selected agent. Illegal destinations are routine while a player explores
the board, so they are recorded in the event log and otherwise ignored.
"""

from enum import Enum
from typing import Set

from geometry import in_vision, is_on_board
from models import ACTION_TYPES, Action, Cell, MoveTo
from state import TurnState, log_event


class ClickOutcome(Enum):
    IGNORED = "ignored"
    SELECTED = "selected"
    REJECTED = "rejected"
    QUEUED = "queued"


class MoveRejected(Exception):
    """Raised when a destination is not a legal move for an agent."""
    pass


def pending_targets(state: TurnState, exclude: int = -1) -> Set[Cell]:
    """Cells already claimed by pending MoveTo actions, optionally skipping one agent."""
    if state.pending_moves is None:
        return set()
    return {
        action.cell
        for index, action in enumerate(state.pending_moves)
        if isinstance(action, MoveTo) and index != exclude
    }


def check_destination(state: TurnState, index: int, cell: Cell) -> None:
    """
    Validate a destination for one agent of the local squad.

    Args:
        state: Current turn state
        index: Roster index of the moving agent
        cell: Candidate destination as (row, col)

    Raises:
        MoveRejected: naming the first rule the destination breaks
    """
    agent = state.agents[index]
    if not is_on_board(cell, state.board.size):
        raise MoveRejected(f"{cell} is off the board")
    if not in_vision(agent.position, agent.direction, cell, state.vision_depth):
        raise MoveRejected(f"{cell} is outside the vision of agent {index}")
    if state.board.is_block(cell):
        raise MoveRejected(f"{cell} is a block")
    if cell in state.visible_opponents:
        raise MoveRejected(f"{cell} is held by an opponent")
    if cell in pending_targets(state, exclude=index):
        raise MoveRejected(f"{cell} is already claimed by another agent")


def _queue(state: TurnState, index: int, action: Action) -> None:
    moves = list(state.pending_moves)
    moves[index] = action
    state.pending_moves = moves


def handle_click(state: TurnState, cell: Cell) -> ClickOutcome:
    """
    Apply a board click to the turn state.

    Selecting takes precedence: a click on one of the local agents selects
    it. Otherwise the click proposes a destination for the selected agent,
    overwriting whatever it had queued.
    """
    if state.pending_moves is None or state.submitted:
        return ClickOutcome.IGNORED

    index = state.agent_at(cell)
    if index is not None:
        state.selected_agent = index
        return ClickOutcome.SELECTED

    if state.selected_agent is None:
        return ClickOutcome.IGNORED

    try:
        check_destination(state, state.selected_agent, cell)
    except MoveRejected as e:
        log_event(state, "move_rejected", agent=state.selected_agent, cell=list(cell), reason=str(e))
        return ClickOutcome.REJECTED

    _queue(state, state.selected_agent, MoveTo(*cell))
    return ClickOutcome.QUEUED


def select_agent(state: TurnState, index: int) -> bool:
    """Select an agent by roster index. Returns False when the buffer is not editable."""
    if state.pending_moves is None or state.submitted:
        return False
    if not 0 <= index < len(state.agents):
        raise IndexError(f"No agent {index} in a squad of {len(state.agents)}")
    state.selected_agent = index
    return True


def set_action(state: TurnState, index: int, action: Action) -> bool:
    """
    Queue an action for one agent, replacing any prior choice.

    Turns and holds are always legal. A MoveTo is held to the same rules as
    a board click.

    Returns:
        True if the buffer changed
    """
    if not isinstance(action, ACTION_TYPES):
        raise TypeError(f"Unknown action: {action!r}")
    if state.pending_moves is None or state.submitted:
        return False
    if not 0 <= index < len(state.agents):
        raise IndexError(f"No agent {index} in a squad of {len(state.agents)}")

    if isinstance(action, MoveTo):
        try:
            check_destination(state, index, action.cell)
        except MoveRejected as e:
            log_event(state, "move_rejected", agent=index, cell=list(action.cell), reason=str(e))
            return False

    _queue(state, index, action)
    return True
