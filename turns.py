"""
Turn state machine for the squad client.

AwaitingStart --Start--> ComposingMove | AwaitingOpponent
ComposingMove <--MovePlayed--> AwaitingOpponent
any --disconnect--> Ended

Every round result flips the phase exactly once. The local squad only moves
when a round result arrives, by applying whatever buffer was pending.
"""

from typing import Any, Callable, Dict, Iterable, Optional

from legality import ClickOutcome, handle_click, select_agent, set_action
from models import Action, Board, Cell, ProtocolError
from moves import apply_moves
from protocol import (
    GameCreatedMessage,
    InvalidMoveMessage,
    JoinedGameMessage,
    MovePlayedMessage,
    NoSuchGameMessage,
    ServerMessage,
    StartMessage,
    encode_moves,
)
from state import Phase, TurnState, initialize_session, log_event, resolve_config


class TurnMachine:
    """Owns the match state and applies inbound events and UI input to it."""

    def __init__(self, on_ended: Optional[Callable[[], None]] = None,
                 config: Optional[Dict[str, Any]] = None):
        self.state = TurnState()
        self.on_ended = on_ended
        self.config = resolve_config(config)

    @property
    def phase(self) -> Phase:
        return self.state.phase

    def _require(self, *phases: Phase) -> None:
        if self.state.phase not in phases:
            expected = ", ".join(p.value for p in phases)
            raise ProtocolError(f"Event not allowed in {self.state.phase.value} (expected {expected})")

    def handle_lobby(self, event: str, game_id: Optional[str] = None) -> TurnState:
        """Record a lobby reply received before the match starts."""
        self._require(Phase.AWAITING_START)
        if game_id is not None:
            self.state.game_id = game_id
        log_event(self.state, event, game_id=self.state.game_id)
        return self.state

    def handle_start(self, board: Board, is_first_player: bool) -> TurnState:
        """Bootstrap the session. Runs exactly once per connection."""
        self._require(Phase.AWAITING_START)
        previous = self.state
        self.state = initialize_session(board, is_first_player, self.config)
        self.state.game_id = previous.game_id
        self.state.log = previous.log
        log_event(self.state, "session_started", is_first_player=is_first_player)
        return self.state

    def handle_round_result(self, visible_opponents: Iterable[Cell]) -> TurnState:
        """
        Close a round.

        Applies the pending buffer (present only if the local side just
        moved), replaces opponent visibility, clears the selection, and
        hands input authority to whichever side did not just move.
        """
        self._require(Phase.COMPOSING_MOVE, Phase.AWAITING_OPPONENT)
        state = self.state
        moved = state.pending_moves is not None

        if moved:
            state.agents = apply_moves(state.agents, state.pending_moves)
        state.visible_opponents = frozenset(visible_opponents)
        state.selected_agent = None
        state.submitted = False
        state.round += 1

        if moved:
            state.pending_moves = None
            state.phase = Phase.AWAITING_OPPONENT
        else:
            state.pending_moves = state.fresh_moves()
            state.phase = Phase.COMPOSING_MOVE

        log_event(state, "round_result", visible_opponents=len(state.visible_opponents))
        return state

    def handle_invalid_move(self) -> TurnState:
        """Server refused our batch: unlock the buffer so it can be fixed and resent."""
        self._require(Phase.COMPOSING_MOVE)
        self.state.submitted = False
        log_event(self.state, "invalid_move")
        return self.state

    def handle_disconnect(self) -> TurnState:
        """Discard the match and notify the host."""
        if self.state.phase == Phase.ENDED:
            return self.state
        log = self.state.log
        self.state = TurnState(phase=Phase.ENDED, log=log)
        log_event(self.state, "disconnected")
        if self.on_ended is not None:
            self.on_ended()
        return self.state

    def handle_click(self, cell: Cell) -> ClickOutcome:
        return handle_click(self.state, cell)

    def select_agent(self, index: int) -> bool:
        return select_agent(self.state, index)

    def set_action(self, index: int, action: Action) -> bool:
        return set_action(self.state, index, action)

    def submit_moves(self) -> Optional[Dict[str, Any]]:
        """
        Produce the outbound submission for the pending buffer.

        Returns:
            {"moves": [...]} with one entry per agent in index order, or None
            when a submission is already awaiting its round result
        """
        self._require(Phase.COMPOSING_MOVE)
        if self.state.submitted:
            return None
        payload = encode_moves(self.state.pending_moves)
        self.state.submitted = True
        log_event(self.state, "moves_submitted", moves=payload["moves"])
        return payload

    def cancel_submission(self) -> TurnState:
        """The batch never reached the server: unlock the buffer again."""
        if self.state.submitted:
            self.state.submitted = False
            log_event(self.state, "submit_failed")
        return self.state

    def dispatch(self, message: ServerMessage) -> TurnState:
        """Route a decoded server message to its handler."""
        if isinstance(message, StartMessage):
            return self.handle_start(message.board, message.is_first_player)
        if isinstance(message, MovePlayedMessage):
            return self.handle_round_result(message.visible_opponents)
        if isinstance(message, InvalidMoveMessage):
            return self.handle_invalid_move()
        if isinstance(message, GameCreatedMessage):
            return self.handle_lobby("game_created", game_id=message.game_id)
        if isinstance(message, JoinedGameMessage):
            return self.handle_lobby("game_joined")
        if isinstance(message, NoSuchGameMessage):
            log_event(self.state, "no_such_game")
            return self.handle_disconnect()
        raise TypeError(f"Unknown server message: {message!r}")
