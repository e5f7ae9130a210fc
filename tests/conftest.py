"""Shared test fixtures and helpers."""

import json

import numpy as np
import pytest

from board import board_to_rows
from models import Board
from state import DEFAULT_CONFIG
from turns import TurnMachine


# --- Fixtures ---


@pytest.fixture
def config():
    """Built-in defaults, independent of config.json on disk."""
    return dict(DEFAULT_CONFIG)


@pytest.fixture
def empty_board():
    """20x20 board with no blocks."""
    return Board.empty()


@pytest.fixture
def first_machine(empty_board, config):
    """Machine that has started as the first player on an empty board."""
    machine = TurnMachine(config=config)
    machine.handle_start(empty_board, True)
    return machine


@pytest.fixture
def second_machine(empty_board, config):
    """Machine that has started as the second player on an empty board."""
    machine = TurnMachine(config=config)
    machine.handle_start(empty_board, False)
    return machine


# --- Helper functions ---


def board_with_blocks(*cells):
    """Build a board with blocks on the given cells."""
    blocks = np.zeros((20, 20), dtype=bool)
    for row, col in cells:
        blocks[row, col] = True
    return Board(blocks)


def start_frame(board=None, is_first_player=True):
    """Encode a Start message as the server sends it."""
    board = board or Board.empty()
    return json.dumps({"Start": {"board": board_to_rows(board), "is_first_player": is_first_player}})


def move_played_frame(*cells):
    """Encode a MovePlayed message as the server sends it."""
    return json.dumps({"MovePlayed": {"visible_opponents": [list(cell) for cell in cells]}})
