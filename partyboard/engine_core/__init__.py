"""
Engine Core - Deterministic game state management and card interpretation.

The engine is the runtime that:
1. Holds a Deck and draws cards from it
2. Manages GameState snapshots
3. Resolves selectors, variables and card actions
4. Applies commands via the reducer
"""

from .state import GameState, GamePhase, PlayerState
from .board import BoardState, Square, SquareKind
from .deck import Deck
from .command import Command, CommandType, CommandPayload, CommandResult
from .card_actions import ActionNotResolvedError, CardAction, action_from_spec
from .card_resolver import ResolvedCard, ResolvedOption, resolve_card, run_option
from .reducer import Reducer, RuleViolation, apply_command

__all__ = [
    "GameState",
    "GamePhase",
    "PlayerState",
    "BoardState",
    "Square",
    "SquareKind",
    "Deck",
    "Command",
    "CommandType",
    "CommandPayload",
    "CommandResult",
    "ActionNotResolvedError",
    "CardAction",
    "action_from_spec",
    "ResolvedCard",
    "ResolvedOption",
    "resolve_card",
    "run_option",
    "Reducer",
    "RuleViolation",
    "apply_command",
]
