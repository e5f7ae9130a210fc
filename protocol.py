"""
JSON codec for the match server's messages.

The server speaks externally tagged enums: unit variants are bare strings
("Nothing", "InvalidMove") and data variants are single-key objects
({"Move": [row, col]}, {"Start": {...}}).
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Sequence, Union

from board import parse_board
from models import Action, Board, Cell, MoveTo, Nothing, ProtocolError, TurnLeft, TurnRight


@dataclass(frozen=True)
class StartMessage:
    board: Board
    is_first_player: bool


@dataclass(frozen=True)
class MovePlayedMessage:
    visible_opponents: FrozenSet[Cell]


@dataclass(frozen=True)
class InvalidMoveMessage:
    """Server refused the last submitted batch."""


@dataclass(frozen=True)
class GameCreatedMessage:
    """Lobby reply to a new-game connection, carrying the ID to share."""
    game_id: str


@dataclass(frozen=True)
class JoinedGameMessage:
    """Lobby reply to a successful join."""


@dataclass(frozen=True)
class NoSuchGameMessage:
    """Lobby reply to a join with an unknown ID; the server closes next."""


LobbyMessage = Union[GameCreatedMessage, JoinedGameMessage, NoSuchGameMessage]
ServerMessage = Union[StartMessage, MovePlayedMessage, InvalidMoveMessage, LobbyMessage]

UNIT_ACTIONS = {
    "Nothing": Nothing,
    "TurnLeft": TurnLeft,
    "TurnRight": TurnRight,
}


def encode_action(action: Action) -> Any:
    """Encode a single action in wire form."""
    if isinstance(action, MoveTo):
        return {"Move": [action.row, action.col]}
    if isinstance(action, (Nothing, TurnLeft, TurnRight)):
        return type(action).__name__
    raise TypeError(f"Unknown action: {action!r}")


def decode_action(data: Any) -> Action:
    """Decode a single wire action."""
    if isinstance(data, str):
        if data not in UNIT_ACTIONS:
            raise ProtocolError(f"Unknown action {data!r}")
        return UNIT_ACTIONS[data]()
    if isinstance(data, dict) and list(data) == ["Move"]:
        return MoveTo(*_decode_cell(data["Move"]))
    raise ProtocolError(f"Malformed action {data!r}")


def encode_moves(moves: Sequence[Action]) -> Dict[str, List[Any]]:
    """Build the outbound submission payload."""
    return {"moves": [encode_action(action) for action in moves]}


def _decode_cell(data: Any) -> Cell:
    if (not isinstance(data, (list, tuple)) or len(data) != 2
            or not all(isinstance(v, int) and not isinstance(v, bool) for v in data)):
        raise ProtocolError(f"Malformed cell {data!r}")
    return (data[0], data[1])


def decode_server_message(text: str) -> ServerMessage:
    """
    Decode one text frame from the server.

    Args:
        text: Raw JSON text

    Returns:
        The decoded message: a match event (Start, MovePlayed, InvalidMove)
        or a lobby reply (Game, JoinedGame, NoSuchGame)

    Raises:
        ProtocolError: if the frame is not valid JSON or not a known message
    """
    try:
        message = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"Invalid JSON from server: {e}")

    if message == "InvalidMove":
        return InvalidMoveMessage()
    if message == "JoinedGame":
        return JoinedGameMessage()
    if message == "NoSuchGame":
        return NoSuchGameMessage()

    if not isinstance(message, dict) or len(message) != 1:
        raise ProtocolError(f"Unknown server message: {text}")

    if "Start" in message:
        body = message["Start"]
        if not isinstance(body, dict) or "board" not in body:
            raise ProtocolError("Start message is missing the board")
        is_first_player = body.get("is_first_player")
        if not isinstance(is_first_player, bool):
            raise ProtocolError("Start message is missing is_first_player")
        return StartMessage(board=parse_board(body["board"]), is_first_player=is_first_player)

    if "MovePlayed" in message:
        body = message["MovePlayed"]
        if not isinstance(body, dict) or not isinstance(body.get("visible_opponents"), list):
            raise ProtocolError("MovePlayed message is missing visible_opponents")
        cells = frozenset(_decode_cell(cell) for cell in body["visible_opponents"])
        return MovePlayedMessage(visible_opponents=cells)

    if "Game" in message:
        if not isinstance(message["Game"], str):
            raise ProtocolError("Game message must carry a string ID")
        return GameCreatedMessage(game_id=message["Game"])

    raise ProtocolError(f"Unknown server message: {text}")
