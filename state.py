"""
Turn state management for the squad client.
Holds the per-match state owned by the turn machine, the session bootstrap
that builds it from the server handshake, the event log, and the config
loader.

Board: 20x20 square grid, (row, col) coordinates
Squad: 10 agents per side, deployed on opposite edges facing each other
"""

from __future__ import annotations
import json
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from geometry import VISION_DEPTH, visible_cells
from models import SQUAD_SIZE, Action, Agent, Board, Cell, Direction, Nothing
from protocol import encode_action
from board import board_to_rows

CONFIG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'config.json')

DEFAULT_CONFIG: Dict[str, Any] = {
    'vision_depth': VISION_DEPTH,
    'first_player_row': 1,
    'second_player_row': 18,
    'first_column': 6,
    'server_url': 'ws://localhost:8000/game',
    'bridge_host': '127.0.0.1',
    'bridge_port': 5000,
}


class Phase(Enum):
    AWAITING_START = "AwaitingStart"
    COMPOSING_MOVE = "ComposingMove"
    AWAITING_OPPONENT = "AwaitingOpponent"
    ENDED = "Ended"


@dataclass
class TurnState:
    """
    Complete client-side match state.

    The pending move buffer doubles as the turn marker: it is a full-length
    list of actions while the local side composes its move and None while
    the opponent moves.
    """
    phase: Phase = Phase.AWAITING_START
    game_id: Optional[str] = None  # Known only to the side that created the match
    board: Optional[Board] = None
    is_first_player: Optional[bool] = None
    agents: List[Agent] = field(default_factory=list)  # Local squad, index-stable
    visible_opponents: FrozenSet[Cell] = frozenset()  # Replaced every round
    pending_moves: Optional[List[Action]] = None
    selected_agent: Optional[int] = None
    submitted: bool = False  # A submission is awaiting the round result
    round: int = 0  # Round results received so far
    vision_depth: int = VISION_DEPTH
    log: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_my_turn(self) -> bool:
        return self.pending_moves is not None

    def agent_at(self, cell: Cell) -> Optional[int]:
        """Get the index of the local agent standing on a cell, if any."""
        for index, agent in enumerate(self.agents):
            if agent.position == cell:
                return index
        return None

    def fresh_moves(self) -> List[Action]:
        """An all-Nothing buffer sized to the roster."""
        return [Nothing() for _ in self.agents]


def load_config() -> Dict[str, Any]:
    """Load config.json, falling back to defaults for missing keys or files."""
    config = dict(DEFAULT_CONFIG)
    try:
        with open(CONFIG_PATH, 'r') as f:
            config.update(json.load(f))
    except (FileNotFoundError, json.JSONDecodeError):
        # Use defaults if config file is missing or invalid
        pass
    return config


def resolve_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Fill a partial config from the defaults, or load config.json when none is given."""
    if config is None:
        return load_config()
    return {**DEFAULT_CONFIG, **config}



def log_event(state: TurnState, event: str, **kwargs) -> None:
    """
    Add an event to the state log.

    Args:
        state: Current turn state
        event: Description of the event
        **kwargs: Additional event data to include
    """
    log_entry = {
        'round': state.round,
        'phase': state.phase.value,
        'event': event,
        **kwargs
    }
    state.log.append(log_entry)


def create_squad(is_first_player: bool, config: Optional[Dict[str, Any]] = None) -> List[Agent]:
    """
    Create the starting squad for one side.

    Both squads line up across columns 6..15 on opposite edges, the first
    player on row 1 facing down and the second on row 18 facing up.
    """
    config = resolve_config(config)
    row = config['first_player_row'] if is_first_player else config['second_player_row']
    direction = Direction.DOWN if is_first_player else Direction.UP
    first_column = config['first_column']
    return [
        Agent(direction=direction, position=(row, first_column + k))
        for k in range(SQUAD_SIZE)
    ]


def initialize_session(board: Board, is_first_player: bool,
                       config: Optional[Dict[str, Any]] = None) -> TurnState:
    """
    Build the match state from the server handshake.

    Args:
        board: Board delivered by the Start message
        is_first_player: Whether the local side moves first
        config: Optional overrides merged over the defaults (default: load_config())

    Returns:
        TurnState in ComposingMove if moving first, else AwaitingOpponent
    """
    config = resolve_config(config)
    state = TurnState(
        board=board,
        is_first_player=is_first_player,
        agents=create_squad(is_first_player, config),
        vision_depth=config['vision_depth'],
    )
    if is_first_player:
        state.phase = Phase.COMPOSING_MOVE
        state.pending_moves = state.fresh_moves()
    else:
        state.phase = Phase.AWAITING_OPPONENT
    return state


def get_player_view(state: TurnState) -> Dict[str, Any]:
    """
    Get a JSON-ready snapshot of the state for renderers.

    Args:
        state: Current turn state

    Returns:
        Dictionary with board, squad, vision, and pending move information
    """
    return {
        'phase': state.phase.value,
        'game_id': state.game_id,
        'round': state.round,
        'is_first_player': state.is_first_player,
        'board': board_to_rows(state.board) if state.board is not None else None,
        'agents': [
            {
                'index': index,
                'position': list(agent.position),
                'direction': agent.direction.value
            }
            for index, agent in enumerate(state.agents)
        ],
        'visible_opponents': [list(cell) for cell in sorted(state.visible_opponents)],
        'vision': [list(cell) for cell in sorted(visible_cells(state.agents, state.vision_depth))],
        'selected_agent': state.selected_agent,
        'pending_moves': (
            [encode_action(action) for action in state.pending_moves]
            if state.pending_moves is not None else None
        ),
        'submitted': state.submitted,
    }
