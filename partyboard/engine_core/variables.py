"""
Variable Resolver - Computes the per-card variable scope.

Each declared variable is resolved once per card resolution into a value and
the string used for <name> placeholders:
- randomInteger: uniform integer in [bottom, top], string is its decimal text
- selectors: resolved player ids, string is the comma-joined player names
- randomStringFromList: one uniformly chosen entry, used as value and string
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Iterable
import logging

from ..card_schema.card_dsl import VariableSpec, VariableType
from .scope import ResolvedVariable, VariableScope
from .selectors import resolve_selectors

if TYPE_CHECKING:
    from .state import GameState, PlayerState

logger = logging.getLogger(__name__)

EMPTY_SELECTION_TEXT = "(empty)"


def resolve_variables(
    state: GameState,
    specs: Iterable[VariableSpec],
    source: PlayerState,
) -> VariableScope:
    """Resolve variable declarations in order into a fresh scope."""
    scope = VariableScope()
    for spec in specs:
        variable = resolve_variable(state, spec, source)
        if variable is not None:
            scope.add(variable)
    return scope


def resolve_variable(
    state: GameState,
    spec: VariableSpec,
    source: PlayerState,
) -> ResolvedVariable | None:
    if spec.variable_type == VariableType.RANDOM_INTEGER:
        if spec.range is None:
            logger.warning("Variable %s: randomInteger without range", spec.name)
            return None
        value = state.rng.randint(spec.range.bottom, spec.range.top)
        return ResolvedVariable(spec.name, value, str(value))

    if spec.variable_type == VariableType.SELECTORS:
        # Selector variables cannot see other variables
        ids = resolve_selectors(state, spec.selectors, source, VariableScope())
        names = [state.get_player(pid).name for pid in ids if state.get_player(pid)]
        return ResolvedVariable(spec.name, ids, ", ".join(names) or EMPTY_SELECTION_TEXT)

    if spec.variable_type == VariableType.RANDOM_STRING:
        if not spec.strings:
            logger.warning("Variable %s: randomStringFromList without strings", spec.name)
            return None
        value = state.rng.choice(spec.strings)
        return ResolvedVariable(spec.name, value, value)

    logger.warning("Variable %s: unknown type %s", spec.name, spec.variable_type)
    return None
