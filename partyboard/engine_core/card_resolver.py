"""
Card Resolver - Turns a normalized card into a display-ready card instance.

Resolution order:
1. Resolve the card's variables against the current state and source player
2. Substitute <name> placeholders in the card text and every option text
3. Resolve (but do not run) the card actions and every option's actions

Running is deferred until the player picks an option; run_option() then
executes the card actions followed by the option's actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable
import logging
import re

from ..card_schema.card_dsl import ActionSpec, Appearance, CardSpec
from .card_actions import CardAction, action_from_spec
from .scope import VariableScope
from .variables import resolve_variables

if TYPE_CHECKING:
    from .state import GameState, PlayerState

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"<(\w+)>")


@dataclass(frozen=True)
class ResolvedOption:
    text: str
    actions: tuple[CardAction, ...] = ()


@dataclass(frozen=True)
class ResolvedCard:
    """A card bound to the player who triggered it, ready to display."""
    text: str
    options: tuple[ResolvedOption, ...]
    actions: tuple[CardAction, ...]
    source: PlayerState
    frequency: float = 1.0
    appearance: Appearance = field(default_factory=Appearance)


def resolve_text(text: str, scope: VariableScope) -> str:
    """
    Replace every <name> with the named variable's display string.

    Unknown names are replaced by the bare name.
    """
    def substitute(match: re.Match) -> str:
        name = match.group(1)
        variable = scope.get(name)
        return variable.string if variable is not None else name

    return PLACEHOLDER_PATTERN.sub(substitute, text)


def resolve_actions(
    state: GameState,
    specs: Iterable[ActionSpec],
    source: PlayerState,
    scope: VariableScope,
) -> tuple[CardAction, ...]:
    actions = []
    for spec in specs:
        action = action_from_spec(spec, source, scope)
        if action is not None:
            actions.append(action.resolve(state))
    return tuple(actions)


def resolve_card(card: CardSpec, state: GameState, source: PlayerState) -> ResolvedCard:
    """Resolve variables, text and actions of a card for one source player."""
    scope = resolve_variables(state, card.variables, source)
    options = tuple(
        ResolvedOption(
            text=resolve_text(option.text, scope),
            actions=resolve_actions(state, option.actions, source, scope),
        )
        for option in card.options
    )
    return ResolvedCard(
        text=resolve_text(card.text, scope),
        options=options,
        actions=resolve_actions(state, card.actions, source, scope),
        source=source,
        frequency=card.frequency,
        appearance=card.appearance,
    )


def run_actions(state: GameState, actions: Iterable[CardAction]) -> GameState:
    """Thread the state through each action in order."""
    for action in actions:
        state = action.run(state)
    return state


def run_option(
    state: GameState,
    card_actions: Iterable[CardAction],
    option: ResolvedOption,
) -> GameState:
    """Run the card's unconditional actions, then the chosen option's actions."""
    state = run_actions(state, card_actions)
    return run_actions(state, option.actions)
