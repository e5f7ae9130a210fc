"""
Board construction for the squad game.
Parses the grid delivered by the server handshake and serializes it back
for renderers.
"""

from typing import Any, List

import numpy as np

from models import BOARD_SIZE, Board, ProtocolError, Square


def parse_board(rows: Any) -> Board:
    """
    Build a Board from the handshake's nested rows of square names.

    Args:
        rows: 20 rows of 20 entries, each "Empty" or "Block"

    Returns:
        Immutable Board

    Raises:
        ProtocolError: if the grid is missing, ragged, wrongly sized, or holds
            an unknown square name
    """
    if not isinstance(rows, list) or len(rows) != BOARD_SIZE:
        raise ProtocolError(f"Board must have {BOARD_SIZE} rows")

    blocks = np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=bool)
    for r, row in enumerate(rows):
        if not isinstance(row, list) or len(row) != BOARD_SIZE:
            raise ProtocolError(f"Board row {r} must have {BOARD_SIZE} squares")
        for c, name in enumerate(row):
            try:
                square = Square(name)
            except ValueError:
                raise ProtocolError(f"Unknown square {name!r} at ({r}, {c})")
            blocks[r, c] = square == Square.BLOCK
    return Board(blocks)


def board_to_rows(board: Board) -> List[List[str]]:
    """Serialize a Board back to nested rows of square names."""
    return [[square.value for square in row] for row in board.rows()]
