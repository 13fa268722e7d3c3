"""
Tests for two-phase card actions.
"""

import pytest

from ..card_schema.card_dsl import (
    NEXT_PLAYER_ACTION,
    VariableRef,
    all_selector,
    move_action,
    move_back_action,
)
from ..engine_core.card_actions import (
    ActionNotResolvedError,
    MoveAction,
    MoveBackAction,
    NextPlayerAction,
    action_from_spec,
)
from ..engine_core.scope import ResolvedVariable, VariableScope
from ..engine_core.state import GamePhase


def run_once(state, spec, source, scope=None):
    action = action_from_spec(spec, source, scope)
    action.resolve(state)
    return action.run(state)


class TestMove:
    """Tests for Move."""

    def test_move_forward(self, board_state):
        state = board_state.with_player_position(0, 5)
        state = run_once(state, move_action(3), state.get_player(0))
        assert state.get_player(0).position == 8

    def test_move_clamped_at_last_square(self, board_state):
        state = board_state.with_player_position(0, 9)
        state = run_once(state, move_action(3), state.get_player(0))
        assert state.get_player(0).position == 9

    def test_move_clamped_at_start(self, board_state):
        state = board_state.with_player_position(0, 1)
        state = run_once(state, move_action(-4), state.get_player(0))
        assert state.get_player(0).position == 0

    def test_zero_offset_is_noop(self, board_state):
        state = run_once(board_state, move_action(0), board_state.get_player(0))
        assert state is board_state

    def test_moves_every_selected_player(self, board_state):
        state = run_once(board_state, move_action(2, (all_selector(),)), board_state.get_player(0))
        assert [p.position for p in state.players] == [2, 2, 2, 2]
        assert state.moved_player_ids == (0, 1, 2, 3)

    def test_offset_from_variable(self, board_state):
        scope = VariableScope()
        scope.add(ResolvedVariable("n", 4, "4"))
        state = run_once(board_state, move_action(VariableRef("n")), board_state.get_player(1), scope)
        assert state.get_player(1).position == 4

    def test_resolve_does_not_change_state(self, board_state):
        action = action_from_spec(move_action(3), board_state.get_player(0))
        action.resolve(board_state)
        assert board_state.get_player(0).position == 0
        assert action.offset == 3
        assert action.player_ids == [0]

    def test_previous_snapshot_untouched(self, board_state):
        new_state = run_once(board_state, move_action(3), board_state.get_player(0))
        assert new_state.get_player(0).position == 3
        assert board_state.get_player(0).position == 0


class TestMoveBack:
    """Tests for MoveBack."""

    def test_is_negated_move(self, board_state):
        """MoveBack{2} equals Move{-2} from every position."""
        for position in range(board_state.board_length):
            state = board_state.with_player_position(0, position)
            source = state.get_player(0)
            back = run_once(state, move_back_action(2), source)
            forward = run_once(state, move_action(-2), source)
            assert back.get_player(0).position == forward.get_player(0).position

    def test_class_registered(self, board_state):
        action = action_from_spec(move_back_action(1), board_state.get_player(0))
        assert isinstance(action, MoveBackAction)


class TestNextPlayer:
    """Tests for NextPlayer."""

    def test_advances_and_sets_turn(self, board_state):
        state = board_state.with_current_player(3).with_phase(GamePhase.IN_TURN)
        state = run_once(state, NEXT_PLAYER_ACTION, state.get_player(3))

        assert state.current_player_idx == 0
        assert state.phase == GamePhase.TURN


class TestLifecycle:
    """Tests for the resolve/run contract."""

    def test_run_before_resolve_fails(self, board_state):
        action = MoveAction(move_action(1), board_state.get_player(0))
        with pytest.raises(ActionNotResolvedError):
            action.run(board_state)

    def test_missing_spec_fails(self, board_state):
        with pytest.raises(ValueError):
            NextPlayerAction(None, board_state.get_player(0))

    def test_missing_source_fails(self):
        with pytest.raises(ValueError):
            MoveAction(move_action(1), None)
