"""
Command System - Commands, payloads, and results.

Commands represent:
1. Roster changes (add/remove player)
2. Game flow (new game, dice roll, option choice)
3. Deck loading callbacks (deck loaded / load failed)

All state changes driven from outside the engine flow through commands.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CommandType(Enum):
    """Types of commands in the system."""
    # Roster
    ADD_PLAYER = "add_player"
    REMOVE_PLAYER = "remove_player"

    # Game flow
    NEW_GAME = "new_game"
    ROLL_DICE = "roll_dice"
    CHOOSE_OPTION = "choose_option"

    # Deck loading callbacks
    DECK_LOADED = "deck_loaded"
    DECK_LOAD_FAILED = "deck_load_failed"


@dataclass
class CommandPayload:
    """
    Payload for a command - contains the command parameters.

    This is a generic container; only the fields a command type uses are set.
    """
    player_id: int | None = None
    name: str | None = None
    board_size: int | None = None
    dice_value: int | None = None
    option_index: int | None = None
    deck: Any | None = None  # Deck
    epoch: int | None = None


@dataclass
class Command:
    """A complete command to be applied to the game state."""
    command_type: CommandType
    payload: CommandPayload = field(default_factory=CommandPayload)

    @classmethod
    def add_player(cls, name: str) -> Command:
        return cls(CommandType.ADD_PLAYER, CommandPayload(name=name))

    @classmethod
    def remove_player(cls, player_id: int) -> Command:
        return cls(CommandType.REMOVE_PLAYER, CommandPayload(player_id=player_id))

    @classmethod
    def new_game(cls, board_size: int) -> Command:
        return cls(CommandType.NEW_GAME, CommandPayload(board_size=board_size))

    @classmethod
    def roll_dice(cls, value: int | None = None) -> Command:
        """Factory for a dice roll; value is drawn from the game's rng when None."""
        return cls(CommandType.ROLL_DICE, CommandPayload(dice_value=value))

    @classmethod
    def choose_option(cls, index: int) -> Command:
        return cls(CommandType.CHOOSE_OPTION, CommandPayload(option_index=index))

    @classmethod
    def deck_loaded(cls, deck: Any, epoch: int) -> Command:
        """Factory for the deck loading collaborator's success callback."""
        return cls(CommandType.DECK_LOADED, CommandPayload(deck=deck, epoch=epoch))

    @classmethod
    def deck_load_failed(cls, epoch: int) -> Command:
        return cls(CommandType.DECK_LOAD_FAILED, CommandPayload(epoch=epoch))


@dataclass
class CommandResult:
    """
    Result of applying a command.

    Contains:
    - Whether the command succeeded
    - New state (if succeeded)
    - Error and error code (if failed)
    - Human-readable changes for the UI
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> CommandResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(cls, state: Any, changes: list[str] | None = None) -> CommandResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, state_changes=changes or [])
