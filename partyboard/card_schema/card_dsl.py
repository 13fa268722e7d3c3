"""
Card DSL - Normalized content model for decks.

This module defines the canonical, already-validated form of deck content.
Raw deck JSON is turned into these types by the normalizer; the engine only
ever sees these.

Content is:
- Declarative: cards carry text, options, actions, selectors and variables
- Recursive: selectors nest other selectors (and exclusions)
- Closed: every node has an enum type tag, one variant per known tag
- Immutable: frozen dataclasses and tuples, safe to share between games

Any numeric or selector-list field can hold a VariableRef instead of a
literal. The reference is looked up in the per-card variable scope at
resolution time.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class SelectorType(Enum):
    """Types of player selectors."""
    ALL = "all"
    SELF = "self"
    FIRST_ELEMENT = "firstElementFromSelectors"
    RANDOM_ORDER = "randomOrderOfSelectors"
    RANDOM_PLAYER = "randomPlayer"
    INDEX_OFFSET = "indexOffset"
    SAME_SQUARE = "sameSquare"


class VariableType(Enum):
    """Types of card variables."""
    RANDOM_INTEGER = "randomInteger"
    SELECTORS = "selectors"
    RANDOM_STRING = "randomStringFromList"


class ActionType(Enum):
    """Types of card actions."""
    MOVE = "move"
    MOVE_BACK = "moveBack"
    NEXT_PLAYER = "nextPlayer"


class OrderPolicy(Enum):
    """Draw-order policy of a category."""
    RANDOM = "random"
    SHUFFLED_GLOBAL = "shuffledGlobal"
    SHUFFLED_INDIVIDUAL = "shuffledIndividual"


@dataclass(frozen=True)
class VariableRef:
    """
    Reference to a card variable, written as {"type": "variable", "name": ...}.
    """
    name: str


@dataclass(frozen=True)
class Selector:
    """
    A node of a selector expression tree.

    Only the fields relevant to selector_type are meaningful:
    - selectors: FIRST_ELEMENT, RANDOM_ORDER, INDEX_OFFSET, SAME_SQUARE
    - offset: INDEX_OFFSET
    - include_self: RANDOM_PLAYER

    Every selector may carry `excluded`, a selector list whose result is
    subtracted from this node's result.

    Examples:
    - Selector(SelectorType.ALL, excluded=(Selector(SelectorType.SELF),))
    - Selector(SelectorType.INDEX_OFFSET, offset=1, selectors=(Selector(SelectorType.SELF),))
    """
    selector_type: SelectorType
    excluded: SelectorList = ()
    selectors: SelectorList = ()
    offset: IntInput = 0
    include_self: bool = True


# A selector list is either literal nodes or a reference to a "selectors" variable.
SelectorList = Union[tuple[Selector, ...], VariableRef]
IntInput = Union[int, VariableRef]


@dataclass(frozen=True)
class IntegerRange:
    """Inclusive integer range with bottom <= top."""
    bottom: int
    top: int


@dataclass(frozen=True)
class VariableSpec:
    """
    A variable declaration on a card.

    Resolved once per card resolution into a value plus a display string.
    """
    name: str
    variable_type: VariableType
    range: IntegerRange | None = None  # RANDOM_INTEGER
    selectors: tuple[Selector, ...] = ()  # SELECTORS
    strings: tuple[str, ...] = ()  # RANDOM_STRING


@dataclass(frozen=True)
class ActionSpec:
    """
    A card action before resolution.

    MOVE and MOVE_BACK use selectors and offset; NEXT_PLAYER uses neither.
    """
    action_type: ActionType
    selectors: SelectorList = ()
    offset: IntInput = 0


@dataclass(frozen=True)
class OptionSpec:
    """An option shown next to a card. Its text may contain <name> placeholders."""
    text: str
    actions: tuple[ActionSpec, ...] = ()


@dataclass(frozen=True)
class Appearance:
    """
    Window of relative board position in which a card may be drawn.

    0 <= lower <= upper <= 1.
    """
    lower: float = 0.0
    upper: float = 1.0

    def contains(self, relative_position: float) -> bool:
        return self.lower <= relative_position <= self.upper


@dataclass(frozen=True)
class CardSpec:
    """
    A normalized card.

    Invariants (established by the normalizer):
    - 0 <= frequency <= 1
    - at least one option
    - if actions is empty, no option has an empty action list
    """
    text: str = ""
    frequency: float = 1.0
    appearance: Appearance = field(default_factory=Appearance)
    options: tuple[OptionSpec, ...] = ()
    actions: tuple[ActionSpec, ...] = ()
    variables: tuple[VariableSpec, ...] = ()


@dataclass(frozen=True)
class CategorySpec:
    """A named group of cards with a board weight and draw-order policy."""
    name: str
    frequency: float = 0.0
    icon: str = ""
    order: OrderPolicy = OrderPolicy.RANDOM
    cards: tuple[CardSpec, ...] = ()


@dataclass(frozen=True)
class DeckSettings:
    """Deck-level settings from the document envelope."""
    board: bool = True
    finish_type_name: str | None = None


@dataclass(frozen=True)
class DeckDocument:
    """A whole normalized deck document."""
    settings: DeckSettings = field(default_factory=DeckSettings)
    categories: tuple[CategorySpec, ...] = ()

    def get_category(self, name: str) -> CategorySpec | None:
        for category in self.categories:
            if category.name == name:
                return category
        return None


# ============================================================================
# Factory functions for common content patterns
# ============================================================================

NEXT_PLAYER_ACTION = ActionSpec(action_type=ActionType.NEXT_PLAYER)


def virtual_option(text: str, actions: tuple[ActionSpec, ...] = ()) -> OptionSpec:
    """Create an option that was not authored in the deck ("next", "skip")."""
    return OptionSpec(text=text, actions=actions)


def self_selector() -> Selector:
    return Selector(selector_type=SelectorType.SELF)


def all_selector(excluded: SelectorList = ()) -> Selector:
    return Selector(selector_type=SelectorType.ALL, excluded=excluded)


def random_player_selector(include_self: bool = True) -> Selector:
    """
    Expand "randomPlayer" into its primitive form:
    firstElementFromSelectors(randomOrderOfSelectors(all, excluded=self?)).
    """
    excluded: tuple[Selector, ...] = () if include_self else (self_selector(),)
    shuffled = Selector(
        selector_type=SelectorType.RANDOM_ORDER,
        selectors=(all_selector(),),
        excluded=excluded,
    )
    return Selector(selector_type=SelectorType.FIRST_ELEMENT, selectors=(shuffled,))


def move_action(offset: IntInput, selectors: SelectorList | None = None) -> ActionSpec:
    """Create a move action; targets the card's source by default."""
    return ActionSpec(
        action_type=ActionType.MOVE,
        selectors=selectors if selectors is not None else (self_selector(),),
        offset=offset,
    )


def move_back_action(offset: IntInput, selectors: SelectorList | None = None) -> ActionSpec:
    """Create a move-back action; targets the card's source by default."""
    return ActionSpec(
        action_type=ActionType.MOVE_BACK,
        selectors=selectors if selectors is not None else (self_selector(),),
        offset=offset,
    )


DEFAULT_WIN_CARD = CardSpec(
    text="<winner> has reached the finish and won the game!",
    options=(virtual_option("next", (NEXT_PLAYER_ACTION,)),),
    variables=(
        VariableSpec(
            name="winner",
            variable_type=VariableType.SELECTORS,
            selectors=(self_selector(),),
        ),
    ),
)

FALLBACK_CARD = CardSpec(
    text="Nothing happens.",
    options=(virtual_option("next", (NEXT_PLAYER_ACTION,)),),
)
