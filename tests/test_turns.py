"""Tests for the turn state machine."""

import pytest

from legality import ClickOutcome
from models import Agent, Direction, MoveTo, Nothing, ProtocolError, TurnLeft
from protocol import (
    GameCreatedMessage,
    InvalidMoveMessage,
    JoinedGameMessage,
    MovePlayedMessage,
    NoSuchGameMessage,
    StartMessage,
)
from state import Phase
from turns import TurnMachine


class TestAlternation:
    def test_first_player_sequence(self, first_machine):
        phases = [first_machine.phase]
        for _ in range(4):
            first_machine.handle_round_result([])
            phases.append(first_machine.phase)
        assert phases == [
            Phase.COMPOSING_MOVE,
            Phase.AWAITING_OPPONENT,
            Phase.COMPOSING_MOVE,
            Phase.AWAITING_OPPONENT,
            Phase.COMPOSING_MOVE,
        ]

    def test_second_player_sequence(self, second_machine):
        phases = [second_machine.phase]
        for _ in range(3):
            second_machine.handle_round_result([])
            phases.append(second_machine.phase)
        assert phases == [
            Phase.AWAITING_OPPONENT,
            Phase.COMPOSING_MOVE,
            Phase.AWAITING_OPPONENT,
            Phase.COMPOSING_MOVE,
        ]

    def test_buffer_tracks_phase(self, second_machine):
        assert second_machine.state.pending_moves is None
        second_machine.handle_round_result([])
        assert second_machine.state.pending_moves == [Nothing()] * 10
        second_machine.handle_round_result([])
        assert second_machine.state.pending_moves is None


class TestRoundResult:
    def test_submitted_move_applied_on_result(self, first_machine):
        """Agent 0 moves to (4, 6) when the round result arrives."""
        first_machine.handle_click((1, 6))
        assert first_machine.handle_click((4, 6)) == ClickOutcome.QUEUED
        payload = first_machine.submit_moves()
        assert payload["moves"][0] == {"Move": [4, 6]}

        # Position is unchanged until the server round-trips
        assert first_machine.state.agents[0].position == (1, 6)

        first_machine.handle_round_result([(10, 10)])
        state = first_machine.state
        assert state.agents[0] == Agent(direction=Direction.DOWN, position=(4, 6))
        assert state.visible_opponents == frozenset({(10, 10)})
        assert state.phase == Phase.AWAITING_OPPONENT
        assert state.pending_moves is None

    def test_turns_applied_on_result(self, first_machine):
        first_machine.set_action(2, TurnLeft())
        first_machine.handle_round_result([])
        assert first_machine.state.agents[2].direction == Direction.RIGHT

    def test_opponent_result_leaves_squad(self, second_machine):
        before = list(second_machine.state.agents)
        second_machine.handle_round_result([(5, 5)])
        assert second_machine.state.agents == before

    def test_visibility_replaced_not_merged(self, second_machine):
        second_machine.handle_round_result([(5, 5), (6, 6)])
        second_machine.handle_round_result([(7, 7)])
        assert second_machine.state.visible_opponents == frozenset({(7, 7)})

    def test_selection_cleared(self, first_machine):
        first_machine.handle_click((1, 8))
        assert first_machine.state.selected_agent == 2
        first_machine.handle_round_result([])
        assert first_machine.state.selected_agent is None

    def test_round_counter(self, first_machine):
        first_machine.handle_round_result([])
        first_machine.handle_round_result([])
        assert first_machine.state.round == 2

    def test_result_before_start(self, config):
        machine = TurnMachine(config=config)
        with pytest.raises(ProtocolError):
            machine.handle_round_result([])


class TestSubmit:
    def test_payload_shape(self, first_machine):
        payload = first_machine.submit_moves()
        assert payload == {"moves": ["Nothing"] * 10}

    def test_second_submit_is_noop(self, first_machine):
        assert first_machine.submit_moves() is not None
        assert first_machine.submit_moves() is None

    def test_submit_on_opponents_turn(self, second_machine):
        with pytest.raises(ProtocolError):
            second_machine.submit_moves()

    def test_edits_locked_after_submit(self, first_machine):
        first_machine.submit_moves()
        assert not first_machine.set_action(0, TurnLeft())
        assert not first_machine.select_agent(3)
        assert first_machine.state.selected_agent is None
        first_machine.handle_round_result([])
        assert first_machine.state.agents[0].direction == Direction.DOWN

    def test_cancel_submission_unlocks(self, first_machine):
        first_machine.submit_moves()
        first_machine.cancel_submission()
        assert first_machine.state.submitted is False
        assert first_machine.set_action(0, TurnLeft())
        assert first_machine.submit_moves() == {"moves": ["TurnLeft"] + ["Nothing"] * 9}
        assert first_machine.state.log[-2]["event"] == "submit_failed"

    def test_cancel_without_submission_is_noop(self, first_machine):
        first_machine.cancel_submission()
        assert first_machine.state.log[-1]["event"] == "session_started"

    def test_invalid_move_unlocks(self, first_machine):
        first_machine.submit_moves()
        first_machine.handle_invalid_move()
        assert first_machine.phase == Phase.COMPOSING_MOVE
        assert first_machine.set_action(0, TurnLeft())
        assert first_machine.submit_moves() is not None
        assert first_machine.state.log[-2]["event"] == "invalid_move"

    def test_invalid_move_on_opponents_turn(self, second_machine):
        with pytest.raises(ProtocolError):
            second_machine.handle_invalid_move()


class TestStartAndEnd:
    def test_start_only_once(self, first_machine, empty_board):
        with pytest.raises(ProtocolError):
            first_machine.handle_start(empty_board, False)

    def test_disconnect_discards_state(self, first_machine):
        ended = []
        first_machine.on_ended = lambda: ended.append(True)
        first_machine.handle_click((1, 6))
        first_machine.handle_disconnect()

        state = first_machine.state
        assert state.phase == Phase.ENDED
        assert state.board is None
        assert state.agents == []
        assert state.pending_moves is None
        assert state.selected_agent is None
        assert ended == [True]

    def test_disconnect_notifies_once(self, first_machine):
        ended = []
        first_machine.on_ended = lambda: ended.append(True)
        first_machine.handle_disconnect()
        first_machine.handle_disconnect()
        assert ended == [True]

    def test_events_rejected_after_end(self, first_machine):
        first_machine.handle_disconnect()
        with pytest.raises(ProtocolError):
            first_machine.handle_round_result([])
        assert first_machine.handle_click((1, 6)) == ClickOutcome.IGNORED

    def test_disconnect_before_start(self, config):
        machine = TurnMachine(config=config)
        machine.handle_disconnect()
        assert machine.phase == Phase.ENDED

    def test_partial_config(self, empty_board):
        machine = TurnMachine(config={"vision_depth": 3})
        machine.handle_start(empty_board, True)
        assert machine.state.agents[9].position == (1, 15)


class TestDispatch:
    def test_full_exchange(self, empty_board, config):
        machine = TurnMachine(config=config)
        machine.dispatch(GameCreatedMessage(game_id="abc123"))
        machine.dispatch(StartMessage(board=empty_board, is_first_player=True))
        assert machine.state.game_id == "abc123"
        assert machine.phase == Phase.COMPOSING_MOVE

        machine.set_action(0, MoveTo(2, 6))
        machine.submit_moves()
        machine.dispatch(MovePlayedMessage(visible_opponents=frozenset()))
        assert machine.state.agents[0].position == (2, 6)
        assert machine.phase == Phase.AWAITING_OPPONENT

    def test_joined_game(self, config):
        machine = TurnMachine(config=config)
        machine.dispatch(JoinedGameMessage())
        assert machine.state.log[-1]["event"] == "game_joined"
        assert machine.phase == Phase.AWAITING_START

    def test_no_such_game_ends(self, config):
        machine = TurnMachine(config=config)
        machine.dispatch(NoSuchGameMessage())
        assert machine.phase == Phase.ENDED
        events = [entry["event"] for entry in machine.state.log]
        assert events == ["no_such_game", "disconnected"]

    def test_invalid_move_dispatch(self, first_machine):
        first_machine.submit_moves()
        first_machine.dispatch(InvalidMoveMessage())
        assert not first_machine.state.submitted

    def test_unknown_message(self, first_machine):
        with pytest.raises(TypeError):
            first_machine.dispatch({"Start": {}})
