"""
Selector Resolver - Evaluates selector trees into player id lists.

A selector list resolves to player ids in first-occurrence order with
duplicates removed. Each node subtracts its own `excluded` list before
returning. Randomized nodes draw from the state's random generator, so they
re-randomize on every resolution.
"""

from __future__ import annotations
from typing import Callable, TYPE_CHECKING
import logging

from ..card_schema.card_dsl import (
    Selector,
    SelectorList,
    SelectorType,
    VariableRef,
    random_player_selector,
)
from .randomness import shuffle_list
from .scope import VariableScope, resolve_variable_input

if TYPE_CHECKING:
    from .state import GameState, PlayerState

logger = logging.getLogger(__name__)


def resolve_selectors(
    state: GameState,
    selectors: SelectorList,
    source: PlayerState,
    scope: VariableScope | None = None,
) -> list[int]:
    """
    Resolve a selector list into unique player ids.

    A VariableRef in place of the list is replaced by the referenced
    "selectors" variable's pre-resolved ids.
    """
    if isinstance(selectors, VariableRef):
        value = resolve_variable_input(selectors, scope, [])
        return _unique(value if isinstance(value, list) else [])

    ids: list[int] = []
    for node in selectors:
        ids.extend(resolve_selector(state, node, source, scope))
    return _unique(ids)


def resolve_selector(
    state: GameState,
    node: Selector,
    source: PlayerState,
    scope: VariableScope | None = None,
) -> list[int]:
    """Resolve a single selector node, then apply its exclusions."""
    handler = _HANDLERS.get(node.selector_type)
    if handler is None:
        logger.warning("Unknown selector type: %s", node.selector_type)
        return []

    ids = handler(state, node, source, scope)
    if node.excluded:
        excluded = set(resolve_selectors(state, node.excluded, source, scope))
        ids = [pid for pid in ids if pid not in excluded]
    return ids


def _unique(ids: list[int]) -> list[int]:
    return list(dict.fromkeys(ids))


def _resolve_all(state, node, source, scope) -> list[int]:
    return [p.player_id for p in state.players]


def _resolve_self(state, node, source, scope) -> list[int]:
    return [source.player_id]


def _resolve_first_element(state, node, source, scope) -> list[int]:
    return resolve_selectors(state, node.selectors, source, scope)[:1]


def _resolve_random_order(state, node, source, scope) -> list[int]:
    ids = resolve_selectors(state, node.selectors, source, scope)
    shuffle_list(ids, state.rng)
    return ids


def _resolve_random_player(state, node, source, scope) -> list[int]:
    return resolve_selector(state, random_player_selector(node.include_self), source, scope)


def _resolve_index_offset(state, node, source, scope) -> list[int]:
    if not state.players:
        return []
    offset = resolve_variable_input(node.offset, scope, 0)
    if not isinstance(offset, int):
        offset = 0

    result = []
    for pid in resolve_selectors(state, node.selectors, source, scope):
        index = state.index_of(pid)
        if index is None:
            logger.warning("indexOffset: unknown player id %s", pid)
            continue
        result.append(state.players[(index + offset) % len(state.players)].player_id)
    return result


def _resolve_same_square(state, node, source, scope) -> list[int]:
    positions = set()
    for pid in resolve_selectors(state, node.selectors, source, scope):
        player = state.get_player(pid)
        if player is None:
            logger.warning("sameSquare: unknown player id %s", pid)
            continue
        positions.add(player.position)
    return [p.player_id for p in state.players if p.position in positions]


_Handler = Callable[["GameState", Selector, "PlayerState", "VariableScope | None"], list[int]]

_HANDLERS: dict[SelectorType, _Handler] = {
    SelectorType.ALL: _resolve_all,
    SelectorType.SELF: _resolve_self,
    SelectorType.FIRST_ELEMENT: _resolve_first_element,
    SelectorType.RANDOM_ORDER: _resolve_random_order,
    SelectorType.RANDOM_PLAYER: _resolve_random_player,
    SelectorType.INDEX_OFFSET: _resolve_index_offset,
    SelectorType.SAME_SQUARE: _resolve_same_square,
}
