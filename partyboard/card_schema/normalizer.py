"""
Content Normalizer - Turns untrusted deck JSON into the card DSL.

Normalization never aborts on bad content. Instead:
1. Invalid fragments (unknown type tags, missing required fields) are dropped
2. Invalid scalar fields are replaced with their defaults
3. Numeric ranges are clamped into [0, 1]
4. Every dropped/defaulted fragment produces a warning

Guarantees on every normalized card:
- 0 <= frequency <= 1 and 0 <= appearance.lower <= appearance.upper <= 1
- at least one option ("next" if none were authored, "skip" appended otherwise)
- if the card has no unconditional actions, every option without actions
  advances to the next player, so the game can never stall
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any
import logging
import math

from .card_dsl import (
    ActionSpec,
    ActionType,
    Appearance,
    CardSpec,
    CategorySpec,
    DeckDocument,
    DeckSettings,
    IntegerRange,
    IntInput,
    NEXT_PLAYER_ACTION,
    OptionSpec,
    OrderPolicy,
    Selector,
    SelectorList,
    SelectorType,
    VariableRef,
    VariableSpec,
    VariableType,
    virtual_option,
)

logger = logging.getLogger(__name__)

# Selector trees come from content authors; cap them anyway.
MAX_NESTING_DEPTH = 16

_SELECTORS_REQUIRED = {
    SelectorType.FIRST_ELEMENT,
    SelectorType.RANDOM_ORDER,
    SelectorType.INDEX_OFFSET,
    SelectorType.SAME_SQUARE,
}


@dataclass
class NormalizationResult:
    """Normalized deck plus every warning raised while normalizing it."""
    deck: DeckDocument
    warnings: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.warnings


def normalize_deck_document(raw: Any) -> NormalizationResult:
    """
    Normalize a whole deck document.

    Accepts the {"settings": {...}, "data": [...]} envelope or a bare list
    of categories.
    """
    normalizer = ContentNormalizer()
    deck = normalizer.deck_document(raw)
    return NormalizationResult(deck=deck, warnings=normalizer.warnings)


def normalize_cards(raw: Any) -> tuple[CardSpec, ...]:
    """Normalize a raw list of cards."""
    return ContentNormalizer().cards(raw, "cards")


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _clamp_unit(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def _is_variable_ref(value: Any) -> bool:
    return isinstance(value, dict) and value.get("type") == "variable"


class ContentNormalizer:
    """
    Walks raw deck JSON and builds the normalized form.

    Stateful only for collecting warnings; create one per document.
    """

    def __init__(self):
        self.warnings: list[str] = []

    def _warn(self, path: str, message: str):
        text = f"{path}: {message}"
        logger.warning("Deck content %s", text)
        self.warnings.append(text)

    # =========================================================================
    # Document / categories
    # =========================================================================

    def deck_document(self, raw: Any) -> DeckDocument:
        if isinstance(raw, list):
            return DeckDocument(categories=self.categories(raw, "data"))

        if not isinstance(raw, dict):
            self._warn("deck", "document is neither an object nor a list of categories")
            return DeckDocument()

        settings = self.settings(raw.get("settings"), "settings")
        categories = self.categories(raw.get("data"), "data")

        if settings.finish_type_name is not None:
            if not any(c.name == settings.finish_type_name for c in categories):
                self._warn(
                    "settings.finishTypeName",
                    f"unknown category '{settings.finish_type_name}', default win card is used",
                )

        return DeckDocument(settings=settings, categories=categories)

    def settings(self, raw: Any, path: str) -> DeckSettings:
        if raw is None:
            return DeckSettings()
        if not isinstance(raw, dict):
            self._warn(path, "settings is not an object")
            return DeckSettings()

        board = raw.get("board", True)
        if not isinstance(board, bool):
            self._warn(f"{path}.board", "not a boolean, using true")
            board = True

        finish = raw.get("finishTypeName")
        if finish is not None and not isinstance(finish, str):
            self._warn(f"{path}.finishTypeName", "not a string, ignored")
            finish = None

        return DeckSettings(board=board, finish_type_name=finish)

    def categories(self, raw: Any, path: str) -> tuple[CategorySpec, ...]:
        if not isinstance(raw, list):
            self._warn(path, "categories are not a list")
            return ()

        result: list[CategorySpec] = []
        seen: set[str] = set()
        for i, raw_category in enumerate(raw):
            category = self.category(raw_category, f"{path}[{i}]")
            if category is None:
                continue
            if category.name in seen:
                self._warn(f"{path}[{i}]", f"duplicate category '{category.name}' dropped")
                continue
            seen.add(category.name)
            result.append(category)
        return tuple(result)

    def category(self, raw: Any, path: str) -> CategorySpec | None:
        if not isinstance(raw, dict):
            self._warn(path, "category is not an object, dropped")
            return None

        name = raw.get("name")
        if not isinstance(name, str):
            self._warn(path, "category has no name, dropped")
            return None

        frequency = raw.get("frequency")
        if frequency is None:
            frequency = 0.0
        elif _is_number(frequency):
            frequency = _clamp_unit(frequency)
        else:
            self._warn(f"{path}.frequency", "not a number, using 0")
            frequency = 0.0

        icon = raw.get("icon", "")
        if not isinstance(icon, str):
            self._warn(f"{path}.icon", "not a string, ignored")
            icon = ""

        order = OrderPolicy.RANDOM
        raw_order = raw.get("order")
        if raw_order is not None:
            try:
                order = OrderPolicy(raw_order)
            except ValueError:
                self._warn(f"{path}.order", f"unknown order '{raw_order}', using random")

        return CategorySpec(
            name=name,
            frequency=frequency,
            icon=icon,
            order=order,
            cards=self.cards(raw.get("cards"), f"{path}.cards"),
        )

    # =========================================================================
    # Cards / options
    # =========================================================================

    def cards(self, raw: Any, path: str) -> tuple[CardSpec, ...]:
        if not isinstance(raw, list):
            self._warn(path, "cards are not a list")
            return ()
        result = (self.card(c, f"{path}[{i}]") for i, c in enumerate(raw))
        return tuple(c for c in result if c is not None)

    def card(self, raw: Any, path: str) -> CardSpec | None:
        if not isinstance(raw, dict):
            self._warn(path, "card is not an object, dropped")
            return None

        text = raw.get("text", "")
        if not isinstance(text, str):
            self._warn(f"{path}.text", "not a string, using empty text")
            text = ""

        frequency = raw.get("frequency")
        if frequency is None:
            frequency = 1.0
        elif _is_number(frequency):
            frequency = _clamp_unit(frequency)
        else:
            self._warn(f"{path}.frequency", "not a number, using 1")
            frequency = 1.0

        appearance = self.appearance(raw.get("appearance"), f"{path}.appearance")

        variables = self.variables(raw.get("variables"), f"{path}.variables")
        declared = {v.name: v.variable_type for v in variables}
        options = self.options(raw.get("options"), declared, f"{path}.options")
        actions = self.actions(raw.get("actions"), declared, f"{path}.actions")

        if not actions:
            options = tuple(
                o if o.actions else replace(o, actions=(NEXT_PLAYER_ACTION,))
                for o in options
            )

        return CardSpec(
            text=text,
            frequency=frequency,
            appearance=appearance,
            options=options,
            actions=actions,
            variables=variables,
        )

    def appearance(self, raw: Any, path: str) -> Appearance:
        if raw is None:
            return Appearance()
        if (
            not isinstance(raw, dict)
            or not _is_number(raw.get("lower"))
            or not _is_number(raw.get("upper"))
        ):
            self._warn(path, "malformed appearance, using 0-1")
            return Appearance()

        lower = _clamp_unit(raw["lower"])
        upper = _clamp_unit(raw["upper"])
        if lower > upper:
            self._warn(path, "lower bound above upper bound, swapped")
            lower, upper = upper, lower
        return Appearance(lower=lower, upper=upper)

    def options(
        self,
        raw: Any,
        declared: dict[str, VariableType],
        path: str,
    ) -> tuple[OptionSpec, ...]:
        if raw is not None and not isinstance(raw, list):
            self._warn(path, "options are not a list, using a single 'next' option")
        if not isinstance(raw, list) or not raw:
            return (virtual_option("next"),)

        options = [self.option(o, declared, f"{path}[{i}]") for i, o in enumerate(raw)]
        return tuple(o for o in options if o is not None) + (virtual_option("skip"),)

    def option(
        self,
        raw: Any,
        declared: dict[str, VariableType],
        path: str,
    ) -> OptionSpec | None:
        if not isinstance(raw, dict):
            self._warn(path, "option is not an object, dropped")
            return None

        text = raw.get("text", "")
        if not isinstance(text, str):
            self._warn(f"{path}.text", "not a string, using empty text")
            text = ""

        return OptionSpec(
            text=text,
            actions=self.actions(raw.get("actions"), declared, f"{path}.actions"),
        )

    # =========================================================================
    # Actions
    # =========================================================================

    def actions(
        self,
        raw: Any,
        declared: dict[str, VariableType],
        path: str,
    ) -> tuple[ActionSpec, ...]:
        if raw is None:
            return ()
        if not isinstance(raw, list):
            self._warn(path, "actions are not a list")
            return ()
        result = (self.action(a, declared, f"{path}[{i}]") for i, a in enumerate(raw))
        return tuple(a for a in result if a is not None)

    def action(
        self,
        raw: Any,
        declared: dict[str, VariableType],
        path: str,
    ) -> ActionSpec | None:
        if not isinstance(raw, dict):
            self._warn(path, "action is not an object, dropped")
            return None

        try:
            action_type = ActionType(raw.get("type"))
        except ValueError:
            self._warn(path, f"action with unknown type '{raw.get('type')}', dropped")
            return None

        if action_type == ActionType.NEXT_PLAYER:
            return ActionSpec(action_type=action_type)

        selectors = self.selector_list(raw.get("selectors"), declared, f"{path}.selectors", 0)
        if selectors is None:
            self._warn(path, f"'{action_type.value}' action without selectors, dropped")
            return None

        return ActionSpec(
            action_type=action_type,
            selectors=selectors,
            offset=self.int_input(raw.get("offset"), declared, f"{path}.offset"),
        )

    # =========================================================================
    # Selectors
    # =========================================================================

    def selector_list(
        self,
        raw: Any,
        declared: dict[str, VariableType],
        path: str,
        depth: int,
    ) -> SelectorList | None:
        """
        Normalize a selector list or selector-variable reference.

        Returns None when the field is missing or of the wrong shape, so
        callers that require it can drop their node.
        """
        if _is_variable_ref(raw):
            name = raw.get("name")
            if declared.get(name) == VariableType.SELECTORS:
                return VariableRef(name=name)
            self._warn(path, f"reference to unknown selectors variable '{name}', using []")
            return ()

        if not isinstance(raw, list):
            if raw is not None:
                self._warn(path, "selectors are not a list")
            return None

        result = (
            self.selector(s, declared, f"{path}[{i}]", depth + 1)
            for i, s in enumerate(raw)
        )
        return tuple(s for s in result if s is not None)

    def selector(
        self,
        raw: Any,
        declared: dict[str, VariableType],
        path: str,
        depth: int,
    ) -> Selector | None:
        if depth > MAX_NESTING_DEPTH:
            self._warn(path, "selector nested too deeply, dropped")
            return None
        if not isinstance(raw, dict):
            self._warn(path, "selector is not an object, dropped")
            return None

        try:
            selector_type = SelectorType(raw.get("type"))
        except ValueError:
            self._warn(path, f"selector with unknown type '{raw.get('type')}', dropped")
            return None

        excluded = self.selector_list(raw.get("excluded"), declared, f"{path}.excluded", depth)
        fields: dict[str, Any] = {"excluded": excluded if excluded is not None else ()}

        if selector_type in _SELECTORS_REQUIRED:
            selectors = self.selector_list(raw.get("selectors"), declared, f"{path}.selectors", depth)
            if selectors is None:
                self._warn(path, f"'{selector_type.value}' selector without selectors, dropped")
                return None
            fields["selectors"] = selectors

        if selector_type == SelectorType.INDEX_OFFSET:
            fields["offset"] = self.int_input(raw.get("offset"), declared, f"{path}.offset")

        if selector_type == SelectorType.RANDOM_PLAYER:
            include_self = raw.get("self", True)
            if not isinstance(include_self, bool):
                self._warn(f"{path}.self", "not a boolean, using true")
                include_self = True
            fields["include_self"] = include_self

        return Selector(selector_type=selector_type, **fields)

    def int_input(
        self,
        raw: Any,
        declared: dict[str, VariableType],
        path: str,
        default: int = 0,
    ) -> IntInput:
        if raw is None:
            return default
        if _is_variable_ref(raw):
            name = raw.get("name")
            if declared.get(name) == VariableType.RANDOM_INTEGER:
                return VariableRef(name=name)
            self._warn(path, f"reference to unknown integer variable '{name}', using {default}")
            return default
        if _is_number(raw):
            if raw != int(raw):
                self._warn(path, f"{raw} is not an integer, rounded")
            return int(round(raw))
        self._warn(path, f"not a number, using {default}")
        return default

    # =========================================================================
    # Variables
    # =========================================================================

    def variables(self, raw: Any, path: str) -> tuple[VariableSpec, ...]:
        if raw is None:
            return ()
        if not isinstance(raw, list):
            self._warn(path, "variables are not a list")
            return ()

        result: list[VariableSpec] = []
        names: set[str] = set()
        for i, raw_variable in enumerate(raw):
            variable = self.variable(raw_variable, f"{path}[{i}]")
            if variable is None:
                continue
            if variable.name in names:
                self._warn(f"{path}[{i}]", f"duplicate variable '{variable.name}' dropped")
                continue
            names.add(variable.name)
            result.append(variable)
        return tuple(result)

    def variable(self, raw: Any, path: str) -> VariableSpec | None:
        if not isinstance(raw, dict):
            self._warn(path, "variable is not an object, dropped")
            return None

        name = raw.get("name")
        if not isinstance(name, str) or not name:
            self._warn(path, "variable without name, dropped")
            return None

        try:
            variable_type = VariableType(raw.get("type"))
        except ValueError:
            self._warn(path, f"variable with unknown type '{raw.get('type')}', dropped")
            return None

        if variable_type == VariableType.RANDOM_INTEGER:
            range_ = raw.get("range")
            if (
                not isinstance(range_, dict)
                or not _is_number(range_.get("bottom"))
                or not _is_number(range_.get("top"))
            ):
                self._warn(path, "randomInteger without numeric range, dropped")
                return None
            bottom, top = int(range_["bottom"]), int(range_["top"])
            if bottom > top:
                self._warn(f"{path}.range", "bottom above top, swapped")
                bottom, top = top, bottom
            return VariableSpec(
                name=name,
                variable_type=variable_type,
                range=IntegerRange(bottom=bottom, top=top),
            )

        if variable_type == VariableType.SELECTORS:
            # Selectors inside a declaration cannot reference other variables.
            selectors = self.selector_list(raw.get("selectors"), {}, f"{path}.selectors", 0)
            if not isinstance(selectors, tuple):
                self._warn(path, "selectors variable without a selector list, dropped")
                return None
            return VariableSpec(name=name, variable_type=variable_type, selectors=selectors)

        strings = raw.get("strings")
        if not isinstance(strings, list):
            self._warn(path, "randomStringFromList without strings, dropped")
            return None
        usable = tuple(s for s in strings if isinstance(s, str))
        if len(usable) != len(strings):
            self._warn(f"{path}.strings", "non-string entries ignored")
        if not usable:
            self._warn(path, "randomStringFromList with no strings, dropped")
            return None
        return VariableSpec(name=name, variable_type=variable_type, strings=usable)
