"""
Game Loop - Drives one session through the command reducer.

The loop:
1. Players join
2. A new game is requested; the loop loads the deck and answers the
   engine's LOADING request with the deck (or a failure)
3. Current player rolls the dice
4. The drawn card is shown, the player picks an option
5. Repeat from 3 until someone reaches the finish

The loop is the deck-loading collaborator of the engine: it reads decks
synchronously and tags each answer with the load epoch of its request.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging

from ..card_schema.loader import DeckLibrary, DeckLoadError
from ..engine_core.command import Command, CommandResult
from ..engine_core.deck import Deck
from ..engine_core.reducer import Reducer
from ..engine_core.state import GamePhase, GameState

if TYPE_CHECKING:
    from .manager import Session

logger = logging.getLogger(__name__)


@dataclass
class TurnResult:
    """
    Result of processing one command.

    Contains what changed and, on failure, why.
    """
    success: bool
    phase: GamePhase

    # Human-readable changes
    changes: list[str] = field(default_factory=list)

    # Errors/warnings
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error_code: str | None = None

    # Game over info
    winner: str | None = None


class GameLoop:
    """
    The main game loop driver.

    Usage:
        loop = GameLoop(session, library)
        loop.add_player("Ada")
        loop.add_player("Bob")
        loop.new_game(board_size=5)

        result = loop.roll_dice()
        card = session.game_state.active_card
        result = loop.choose_option(0)
    """

    def __init__(self, session: Session, deck_library: DeckLibrary, reducer: Reducer | None = None):
        self.session = session
        self.deck_library = deck_library
        self.reducer = reducer or Reducer()

    def add_player(self, name: str) -> TurnResult:
        return self._apply(Command.add_player(name))

    def remove_player(self, player_id: int) -> TurnResult:
        return self._apply(Command.remove_player(player_id))

    def roll_dice(self, value: int | None = None) -> TurnResult:
        return self._apply(Command.roll_dice(value))

    def choose_option(self, index: int) -> TurnResult:
        return self._apply(Command.choose_option(index))

    def new_game(self, board_size: int, deck_name: str | None = None) -> TurnResult:
        """
        Start a new game.

        Naming a deck (or having none loaded yet) reloads it from the
        library; otherwise the current deck is reused.
        """
        state = self.session.game_state
        if deck_name is not None or state.deck is None:
            state = state.with_deck(None)

        # The session keeps its deck when the reducer rejects the new game
        result = self._apply(Command.new_game(board_size), state)
        if not result.success or self.session.game_state.phase != GamePhase.LOADING:
            return result

        return self._load_deck(deck_name or self.session.deck_name, result.changes)

    def _load_deck(self, deck_name: str | None, changes: list[str]) -> TurnResult:
        epoch = self.session.game_state.load_epoch
        try:
            name = deck_name or self._default_deck_name()
            loaded = self.deck_library.load(name)
        except DeckLoadError as e:
            logger.warning("Deck load failed: %s", e)
            self._apply(Command.deck_load_failed(epoch))
            return TurnResult(
                success=False,
                phase=self.session.game_state.phase,
                changes=changes,
                errors=[str(e)],
                error_code="DECK_NOT_FOUND",
            )

        self.session.deck_name = name
        result = self._apply(Command.deck_loaded(Deck.from_document(loaded.deck), epoch))
        result.changes = changes + [f"Loaded deck {name}"] + result.changes
        result.warnings.extend(loaded.warnings)
        return result

    def _default_deck_name(self) -> str:
        decks = self.deck_library.list_decks()
        if not decks:
            raise DeckLoadError("No decks installed")
        return decks[0].name

    def _apply(self, command: Command, state: GameState | None = None) -> TurnResult:
        """Apply a command to `state` (default: the session's) and store the result on success."""
        if state is None:
            state = self.session.game_state
        result: CommandResult = self.reducer.apply(state, command)
        if result.success and result.new_state is not None:
            self.session.game_state = result.new_state
            self.session.sync_state()

        state = self.session.game_state
        winner = state.get_player(state.winner_id) if state.winner_id is not None else None
        return TurnResult(
            success=result.success,
            phase=state.phase,
            changes=list(result.state_changes),
            errors=[result.error] if result.error else [],
            error_code=result.error_code,
            winner=winner.name if winner else None,
        )
