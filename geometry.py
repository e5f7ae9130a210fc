"""
Grid geometry for the squad board.
Direction rotation tables and the triangular vision cone, on a square grid
addressed as (row, col) with rows growing downward.
"""

from typing import Dict, Iterable, Set, Tuple

from models import BOARD_SIZE, Agent, Cell, Direction

VISION_DEPTH = 3

# Left cycle, counter-clockwise as drawn: Down -> Right -> Up -> Left -> Down
LEFT_OF: Dict[Direction, Direction] = {
    Direction.DOWN: Direction.RIGHT,
    Direction.RIGHT: Direction.UP,
    Direction.UP: Direction.LEFT,
    Direction.LEFT: Direction.DOWN,
}
RIGHT_OF: Dict[Direction, Direction] = {after: before for before, after in LEFT_OF.items()}

# (forward, lateral) unit vectors as (d_row, d_col)
AXES: Dict[Direction, Tuple[Cell, Cell]] = {
    Direction.DOWN: ((1, 0), (0, 1)),
    Direction.UP: ((-1, 0), (0, 1)),
    Direction.RIGHT: ((0, 1), (1, 0)),
    Direction.LEFT: ((0, -1), (1, 0)),
}


def rotate_left(direction: Direction) -> Direction:
    """Rotate one step along the left cycle."""
    return LEFT_OF[direction]


def rotate_right(direction: Direction) -> Direction:
    """Rotate one step along the right cycle (inverse of rotate_left)."""
    return RIGHT_OF[direction]


def vision_cells(position: Cell, direction: Direction, depth: int = VISION_DEPTH) -> Set[Cell]:
    """
    Enumerate the vision cone of an agent.

    Args:
        position: Agent position as (row, col)
        direction: Facing direction
        depth: Forward reach of the cone (default: 3)

    Returns:
        Set of cells at forward distance 1..depth with lateral offset within
        the forward distance. May contain off-board cells.
    """
    (f_row, f_col), (l_row, l_col) = AXES[direction]
    row, col = position
    cells = set()
    for i in range(1, depth + 1):
        for j in range(-i, i + 1):
            cells.add((row + i * f_row + j * l_row, col + i * f_col + j * l_col))
    return cells


def in_vision(position: Cell, direction: Direction, target: Cell, depth: int = VISION_DEPTH) -> bool:
    """Check whether target lies strictly inside the agent's vision cone."""
    (f_row, f_col), (l_row, l_col) = AXES[direction]
    d_row = target[0] - position[0]
    d_col = target[1] - position[1]
    forward = d_row * f_row + d_col * f_col
    lateral = d_row * l_row + d_col * l_col
    return 0 < forward <= depth and abs(lateral) <= forward


def is_on_board(cell: Cell, size: int = BOARD_SIZE) -> bool:
    """Check if a cell is within the board bounds."""
    row, col = cell
    return 0 <= row < size and 0 <= col < size


def visible_cells(agents: Iterable[Agent], depth: int = VISION_DEPTH) -> Set[Cell]:
    """In-bounds union of the vision cones of a squad."""
    cells: Set[Cell] = set()
    for agent in agents:
        cells |= vision_cells(agent.position, agent.direction, depth)
    return {cell for cell in cells if is_on_board(cell)}
