# Models for squad, board and action elements

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple, Union

import numpy as np

Cell = Tuple[int, int]  # (row, col), row grows downward

BOARD_SIZE = 20
SQUAD_SIZE = 10


class ProtocolError(Exception):
    """Raised when the server and the local engine fall out of sync."""
    pass


class Direction(Enum):
    UP = "Up"
    DOWN = "Down"
    LEFT = "Left"
    RIGHT = "Right"


class Square(Enum):
    EMPTY = "Empty"
    BLOCK = "Block"


@dataclass(frozen=True)
class Agent:
    """
    One member of the local squad.
    Agents are replaced, never mutated: the move applicator returns new
    instances so old snapshots stay valid.
    """
    direction: Direction
    position: Cell  # (row, col)


@dataclass(frozen=True)
class Nothing:
    """Agent holds its position and facing."""


@dataclass(frozen=True)
class TurnLeft:
    """Agent rotates one step along the left cycle."""


@dataclass(frozen=True)
class TurnRight:
    """Agent rotates one step along the right cycle."""


@dataclass(frozen=True)
class MoveTo:
    """Agent relocates to an absolute cell."""
    row: int
    col: int

    @property
    def cell(self) -> Cell:
        return (self.row, self.col)


Action = Union[Nothing, TurnLeft, TurnRight, MoveTo]
ACTION_TYPES = (Nothing, TurnLeft, TurnRight, MoveTo)


class Board:
    """
    Immutable 20x20 grid of Empty/Block squares.

    Backed by a read-only numpy mask where True marks a block, so both the
    legality checks and the renderer can index it directly.
    """

    def __init__(self, blocks: np.ndarray):
        blocks = np.array(blocks, dtype=bool)
        if blocks.shape != (BOARD_SIZE, BOARD_SIZE):
            raise ProtocolError(
                f"Board must be {BOARD_SIZE}x{BOARD_SIZE}, got {blocks.shape}"
            )
        blocks.setflags(write=False)
        self.blocks = blocks

    @classmethod
    def empty(cls) -> "Board":
        return cls(np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=bool))

    @property
    def size(self) -> int:
        return self.blocks.shape[0]

    def square_at(self, cell: Cell) -> Square:
        row, col = cell
        return Square.BLOCK if self.blocks[row, col] else Square.EMPTY

    def is_block(self, cell: Cell) -> bool:
        row, col = cell
        return bool(self.blocks[row, col])

    def rows(self) -> List[List[Square]]:
        """Board as nested rows of squares, row-major."""
        return [
            [Square.BLOCK if blocked else Square.EMPTY for blocked in row]
            for row in self.blocks.tolist()
        ]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return bool(np.array_equal(self.blocks, other.blocks))

    def __repr__(self) -> str:
        return f"Board(blocks={int(self.blocks.sum())})"
