"""
Tests for card resolution and option execution.
"""

from ..card_schema.card_dsl import (
    NEXT_PLAYER_ACTION,
    CardSpec,
    IntegerRange,
    OptionSpec,
    VariableRef,
    VariableSpec,
    VariableType,
    move_action,
    self_selector,
)
from ..engine_core.card_resolver import resolve_card, resolve_text, run_option
from ..engine_core.scope import ResolvedVariable, VariableScope
from ..engine_core.state import GamePhase


class TestResolveText:
    """Tests for placeholder substitution."""

    def test_placeholders_replaced(self):
        scope = VariableScope()
        scope.add(ResolvedVariable("a", [1], "Bob"))
        scope.add(ResolvedVariable("b", 3, "3"))

        assert resolve_text("<a> moves <b>", scope) == "Bob moves 3"

    def test_unknown_placeholder_becomes_name(self):
        assert resolve_text("go <c>!", VariableScope()) == "go c!"

    def test_text_without_placeholders(self):
        assert resolve_text("a < b > c", VariableScope()) == "a < b > c"


class TestResolveCard:
    """Tests for resolve_card."""

    def test_text_and_options_resolved(self, board_state):
        card = CardSpec(
            text="<me> rolls <n>",
            variables=(
                VariableSpec("me", VariableType.SELECTORS, selectors=(self_selector(),)),
                VariableSpec("n", VariableType.RANDOM_INTEGER, range=IntegerRange(4, 4)),
            ),
            options=(OptionSpec("Move <n>", (move_action(VariableRef("n")),)),),
        )
        source = board_state.get_player(2)

        resolved = resolve_card(card, board_state, source)

        assert resolved.text == "Cyd rolls 4"
        assert resolved.options[0].text == "Move 4"
        assert resolved.source == source
        assert all(a.resolved for a in resolved.options[0].actions)

    def test_resolution_does_not_mutate(self, board_state):
        card = CardSpec(text="x", actions=(move_action(3),))
        resolve_card(card, board_state, board_state.get_player(0))
        assert board_state.get_player(0).position == 0


class TestRunOption:
    """Tests for the card-then-option pipeline."""

    def test_card_actions_then_option_actions(self, board_state):
        card = CardSpec(
            actions=(move_action(2),),
            options=(OptionSpec("go", (move_action(3), NEXT_PLAYER_ACTION)),),
        )
        state = board_state.with_phase(GamePhase.IN_TURN)
        resolved = resolve_card(card, state, state.get_player(0))

        new_state = run_option(state, resolved.actions, resolved.options[0])

        assert new_state.get_player(0).position == 5
        assert new_state.moved_player_ids == (0, 0)
        assert new_state.current_player_idx == 1
        assert new_state.phase == GamePhase.TURN

    def test_offsets_captured_at_resolve(self, board_state):
        """Running uses the positions at run time but the offset captured at resolve time."""
        card = CardSpec(options=(OptionSpec("go", (move_action(1),)),))
        resolved = resolve_card(card, board_state, board_state.get_player(0))

        moved = board_state.with_player_position(0, 4)
        new_state = run_option(moved, resolved.actions, resolved.options[0])

        assert new_state.get_player(0).position == 5
