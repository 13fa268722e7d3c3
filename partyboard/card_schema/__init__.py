"""Card schema - the deck content DSL, its normalizer and the deck loader."""

from .card_dsl import (
    ActionSpec,
    ActionType,
    Appearance,
    CardSpec,
    CategorySpec,
    DeckDocument,
    DeckSettings,
    IntegerRange,
    OptionSpec,
    OrderPolicy,
    Selector,
    SelectorType,
    VariableRef,
    VariableSpec,
    VariableType,
)
from .normalizer import (
    NormalizationResult,
    normalize_cards,
    normalize_deck_document,
)
from .loader import DeckLibrary, DeckListing, DeckLoadError, load_deck_file

__all__ = [
    "ActionSpec",
    "ActionType",
    "Appearance",
    "CardSpec",
    "CategorySpec",
    "DeckDocument",
    "DeckSettings",
    "IntegerRange",
    "OptionSpec",
    "OrderPolicy",
    "Selector",
    "SelectorType",
    "VariableRef",
    "VariableSpec",
    "VariableType",
    "NormalizationResult",
    "normalize_cards",
    "normalize_deck_document",
    "DeckLibrary",
    "DeckListing",
    "DeckLoadError",
    "load_deck_file",
]
