"""
Tests for the content normalizer.

Tests:
- Card defaults and clamping
- Synthetic "next"/"skip" options and the auto-advance guarantee
- Dropping of unknown or incomplete actions, selectors and variables
- Variable reference checks
"""

import pytest

from ..card_schema.card_dsl import (
    ActionType,
    OrderPolicy,
    SelectorType,
    VariableRef,
    VariableType,
)
from ..card_schema.normalizer import (
    MAX_NESTING_DEPTH,
    normalize_cards,
    normalize_deck_document,
)


def one_card(raw_card):
    cards = normalize_cards([raw_card])
    assert len(cards) == 1
    return cards[0]


class TestCardDefaults:
    """Tests for scalar card fields."""

    def test_empty_card_gets_defaults(self):
        """A card with no fields is playable."""
        card = one_card({})

        assert card.text == ""
        assert card.frequency == 1.0
        assert (card.appearance.lower, card.appearance.upper) == (0.0, 1.0)
        assert [o.text for o in card.options] == ["next"]
        assert card.options[0].actions[0].action_type == ActionType.NEXT_PLAYER

    @pytest.mark.parametrize("raw, expected", [(1.7, 1.0), (-0.3, 0.0), (0.25, 0.25), ("high", 1.0)])
    def test_frequency_clamped(self, raw, expected):
        assert one_card({"frequency": raw}).frequency == expected

    def test_appearance_clamped_and_ordered(self):
        """Bounds are clamped into [0, 1] and swapped when reversed."""
        card = one_card({"appearance": {"lower": 1.5, "upper": 0.4}})
        assert card.appearance.lower == 0.4
        assert card.appearance.upper == 1.0

    def test_malformed_appearance_defaults(self):
        card = one_card({"appearance": {"lower": "a"}})
        assert (card.appearance.lower, card.appearance.upper) == (0.0, 1.0)

    def test_text_coerced(self):
        assert one_card({"text": 42}).text == ""

    def test_invariants_hold_for_messy_cards(self):
        """Frequency, appearance and option count invariants on odd input."""
        raw_cards = [
            {"frequency": 5, "appearance": {"lower": -1, "upper": 9}},
            {"options": "nope"},
            {"options": [], "actions": [{"type": "dance"}]},
            {"options": [{"text": "a"}, 17]},
            {"appearance": None, "frequency": None},
        ]
        for card in normalize_cards(raw_cards):
            assert 0 <= card.frequency <= 1
            assert 0 <= card.appearance.lower <= card.appearance.upper <= 1
            assert len(card.options) >= 1


class TestOptions:
    """Tests for synthetic options and the auto-advance guarantee."""

    def test_empty_list_same_as_missing(self):
        card = one_card({"options": []})
        assert [o.text for o in card.options] == ["next"]

    def test_skip_appended_to_authored_options(self):
        card = one_card({"options": [{"text": "Yes"}, {"text": "No"}]})
        assert [o.text for o in card.options] == ["Yes", "No", "skip"]

    def test_empty_options_get_next_player_when_card_has_no_actions(self):
        """Every empty option gets exactly one NextPlayer action."""
        card = one_card({
            "options": [
                {"text": "Go", "actions": [{"type": "move", "offset": 1, "selectors": [{"type": "self"}]}]},
                {"text": "Stay"},
            ],
        })

        go, stay, skip = card.options
        assert [a.action_type for a in go.actions] == [ActionType.MOVE]
        assert [a.action_type for a in stay.actions] == [ActionType.NEXT_PLAYER]
        assert [a.action_type for a in skip.actions] == [ActionType.NEXT_PLAYER]

    def test_options_stay_empty_when_card_has_actions(self):
        card = one_card({
            "actions": [{"type": "move", "offset": 2, "selectors": [{"type": "self"}]}],
        })
        assert card.options[0].actions == ()
        assert card.actions[0].offset == 2


class TestActions:
    """Tests for action normalization."""

    def test_unknown_action_dropped(self):
        result = normalize_deck_document([
            {"name": "A", "cards": [{"actions": [{"type": "teleport"}, {"type": "nextPlayer"}]}]}
        ])
        card = result.deck.categories[0].cards[0]

        assert [a.action_type for a in card.actions] == [ActionType.NEXT_PLAYER]
        assert any("teleport" in w for w in result.warnings)

    def test_move_without_selectors_dropped(self):
        card = one_card({"actions": [{"type": "move", "offset": 3}]})
        assert card.actions == ()

    def test_move_offset_defaults_to_zero(self):
        card = one_card({"actions": [{"type": "moveBack", "selectors": [{"type": "self"}]}]})
        assert card.actions[0].action_type == ActionType.MOVE_BACK
        assert card.actions[0].offset == 0

    def test_fractional_offset_rounded(self):
        card = one_card({"actions": [{"type": "move", "offset": 2.6, "selectors": [{"type": "self"}]}]})
        assert card.actions[0].offset == 3


class TestSelectors:
    """Tests for selector normalization."""

    def test_unknown_selector_dropped(self):
        card = one_card({
            "actions": [{"type": "move", "offset": 1, "selectors": [{"type": "everyoneElse"}, {"type": "self"}]}],
        })
        assert [s.selector_type for s in card.actions[0].selectors] == [SelectorType.SELF]

    def test_nested_selectors_and_exclusions(self):
        card = one_card({
            "actions": [{
                "type": "move",
                "offset": 1,
                "selectors": [{
                    "type": "indexOffset",
                    "offset": -1,
                    "selectors": [{"type": "all", "excluded": [{"type": "self"}]}],
                }],
            }],
        })
        selector = card.actions[0].selectors[0]

        assert selector.selector_type == SelectorType.INDEX_OFFSET
        assert selector.offset == -1
        inner = selector.selectors[0]
        assert inner.selector_type == SelectorType.ALL
        assert inner.excluded[0].selector_type == SelectorType.SELF

    def test_index_offset_without_selectors_dropped(self):
        card = one_card({
            "actions": [{"type": "move", "offset": 1, "selectors": [{"type": "indexOffset", "offset": 1}]}],
        })
        assert card.actions[0].selectors == ()

    def test_random_player_self_flag(self):
        card = one_card({
            "actions": [{"type": "move", "offset": 1, "selectors": [{"type": "randomPlayer", "self": False}]}],
        })
        assert card.actions[0].selectors[0].include_self is False

    def test_deep_nesting_dropped(self):
        """Selector trees deeper than the cap lose their innermost nodes."""
        node = {"type": "self"}
        for _ in range(MAX_NESTING_DEPTH + 5):
            node = {"type": "firstElementFromSelectors", "selectors": [node]}

        result = normalize_deck_document([
            {"name": "A", "cards": [{"actions": [{"type": "move", "offset": 1, "selectors": [node]}]}]}
        ])

        assert any("nested too deeply" in w for w in result.warnings)


class TestVariables:
    """Tests for variable declarations and references."""

    def test_variable_types(self):
        card = one_card({
            "variables": [
                {"name": "n", "type": "randomInteger", "range": {"bottom": 1, "top": 3}},
                {"name": "who", "type": "selectors", "selectors": [{"type": "all"}]},
                {"name": "what", "type": "randomStringFromList", "strings": ["a", "b"]},
            ],
        })
        assert [v.variable_type for v in card.variables] == [
            VariableType.RANDOM_INTEGER,
            VariableType.SELECTORS,
            VariableType.RANDOM_STRING,
        ]

    def test_reversed_range_swapped(self):
        card = one_card({"variables": [{"name": "n", "type": "randomInteger", "range": {"bottom": 6, "top": 2}}]})
        assert (card.variables[0].range.bottom, card.variables[0].range.top) == (2, 6)

    @pytest.mark.parametrize("raw", [
        {"type": "randomInteger", "range": {"bottom": 1, "top": 2}},
        {"name": "x", "type": "coinFlip"},
        {"name": "x", "type": "randomInteger"},
        {"name": "x", "type": "randomStringFromList", "strings": []},
        {"name": "x", "type": "selectors"},
    ])
    def test_invalid_variables_dropped(self, raw):
        assert one_card({"variables": [raw]}).variables == ()

    def test_duplicate_variable_first_wins(self):
        card = one_card({
            "variables": [
                {"name": "x", "type": "randomStringFromList", "strings": ["first"]},
                {"name": "x", "type": "randomStringFromList", "strings": ["second"]},
            ],
        })
        assert len(card.variables) == 1
        assert card.variables[0].strings == ("first",)

    def test_references_checked_against_declarations(self):
        """Integer fields need randomInteger variables, selector lists need selectors variables."""
        card = one_card({
            "variables": [
                {"name": "n", "type": "randomInteger", "range": {"bottom": 1, "top": 3}},
                {"name": "who", "type": "selectors", "selectors": [{"type": "self"}]},
            ],
            "actions": [
                {"type": "move", "offset": {"type": "variable", "name": "n"},
                 "selectors": {"type": "variable", "name": "who"}},
                {"type": "move", "offset": {"type": "variable", "name": "who"},
                 "selectors": {"type": "variable", "name": "n"}},
            ],
        })
        good, bad = card.actions

        assert good.offset == VariableRef("n")
        assert good.selectors == VariableRef("who")
        assert bad.offset == 0
        assert bad.selectors == ()


class TestDeckDocument:
    """Tests for whole documents."""

    def test_envelope_and_settings(self):
        result = normalize_deck_document({
            "settings": {"board": True, "finishTypeName": "End"},
            "data": [
                {"name": "A", "frequency": 0.5, "order": "shuffledGlobal", "cards": []},
                {"name": "End", "cards": [{"text": "You won"}]},
            ],
        })

        assert result.clean
        assert result.deck.settings.finish_type_name == "End"
        a = result.deck.get_category("A")
        assert a.order == OrderPolicy.SHUFFLED_GLOBAL
        assert a.frequency == 0.5
        assert result.deck.get_category("End").frequency == 0.0

    def test_bare_list_accepted(self):
        result = normalize_deck_document([{"name": "A", "cards": [{}]}])
        assert len(result.deck.categories) == 1

    def test_unknown_order_defaults_to_random(self):
        result = normalize_deck_document([{"name": "A", "order": "alphabetic", "cards": []}])
        assert result.deck.categories[0].order == OrderPolicy.RANDOM
        assert not result.clean

    def test_unknown_finish_category_warns(self):
        result = normalize_deck_document({"settings": {"finishTypeName": "Nope"}, "data": []})
        assert any("finishTypeName" in w for w in result.warnings)

    def test_garbage_document(self):
        result = normalize_deck_document("not a deck")
        assert result.deck.categories == ()
        assert not result.clean

    def test_bundled_deck_is_clean(self, bundled_library):
        """The shipped deck normalizes without repairs."""
        result = bundled_library.load("Classic")
        assert result.clean, result.warnings
        assert len(result.deck.categories) == 4
