"""
Card Actions - Two-phase units of game-state mutation.

Lifecycle of an action instance:
    action = action_from_spec(spec, source, scope)   # unresolved
    action.resolve(state)                            # captures data, no mutation
    state = action.run(state)                        # applies it, exactly once

resolve() reads the state it is given but never changes it. run() returns a
new state and must only be called once per resolved instance; running twice
applies the effect twice.

New action types register under their ActionType with @register_action.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Callable
import logging

from ..card_schema.card_dsl import ActionSpec, ActionType
from .scope import VariableScope, resolve_variable_input
from .selectors import resolve_selectors
from .state import GamePhase

if TYPE_CHECKING:
    from .state import GameState, PlayerState

logger = logging.getLogger(__name__)


class ActionNotResolvedError(RuntimeError):
    """run() was called on an action that was never resolved."""


class CardAction:
    """Base class for all card actions."""

    def __init__(self, spec: ActionSpec, source: PlayerState, scope: VariableScope | None = None):
        if spec is None:
            raise ValueError("Card action needs a spec")
        if source is None:
            raise ValueError("Card action needs a source player")
        self.spec = spec
        self.source = source
        self.scope = scope if scope is not None else VariableScope()
        self.resolved = False

    @property
    def action_type(self) -> ActionType:
        return self.spec.action_type

    def resolve(self, state: GameState) -> CardAction:
        self._resolve(state)
        self.resolved = True
        return self

    def run(self, state: GameState) -> GameState:
        if not self.resolved:
            raise ActionNotResolvedError(f"{self.action_type.value} action run before resolve")
        return self._run(state)

    def _resolve(self, state: GameState):
        """Capture whatever run() needs. Default: nothing."""

    def _run(self, state: GameState) -> GameState:
        raise NotImplementedError


ACTION_TYPES: dict[ActionType, type[CardAction]] = {}


def register_action(action_type: ActionType) -> Callable[[type[CardAction]], type[CardAction]]:
    def decorator(cls: type[CardAction]) -> type[CardAction]:
        ACTION_TYPES[action_type] = cls
        return cls
    return decorator


@register_action(ActionType.MOVE)
class MoveAction(CardAction):
    """Move the selected players by offset squares, clamped to the board."""

    def __init__(self, spec, source, scope=None):
        super().__init__(spec, source, scope)
        self.offset = 0
        self.player_ids: list[int] = []

    def _resolve(self, state):
        offset = resolve_variable_input(self.spec.offset, self.scope, 0)
        self.offset = offset if isinstance(offset, int) else 0
        self.player_ids = resolve_selectors(state, self.spec.selectors, self.source, self.scope)

    def _run(self, state):
        if self.offset == 0:
            return state
        for pid in self.player_ids:
            player = state.get_player(pid)
            if player is None:
                logger.warning("Move: player %s no longer in game", pid)
                continue
            state = state.with_player_move(pid, player.position + self.offset)
        return state


@register_action(ActionType.MOVE_BACK)
class MoveBackAction(MoveAction):
    """Move with the offset negated."""

    def _resolve(self, state):
        super()._resolve(state)
        self.offset = -self.offset


@register_action(ActionType.NEXT_PLAYER)
class NextPlayerAction(CardAction):
    """Hand the dice to the next player."""

    def _run(self, state):
        return state.with_next_current_player().with_phase(GamePhase.TURN)


def action_from_spec(
    spec: ActionSpec,
    source: PlayerState,
    scope: VariableScope | None = None,
) -> CardAction | None:
    """Instantiate the registered action class for a spec."""
    cls = ACTION_TYPES.get(spec.action_type)
    if cls is None:
        logger.warning("No action registered for type %s", spec.action_type)
        return None
    return cls(spec, source, scope)
