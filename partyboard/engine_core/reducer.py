"""
Reducer - Applies commands to game state.

The reducer is the single point of game-flow transitions. Every transition
is also available as a pure module function (state, ...) -> new_state that
raises RuleViolation when the command is illegal in the current phase.

Design principles:
- Pure functions: (state, command) -> new_state
- Moving a player and arriving at a square are separate steps
- Returns CommandResult with success/failure
- Delegates card content to the card resolver
"""

from __future__ import annotations
from typing import Callable
import logging

from ..card_schema.card_dsl import DEFAULT_WIN_CARD, FALLBACK_CARD
from .board import MIN_BOARD_SIZE, BoardState, Square, SquareKind
from .card_resolver import resolve_card, run_option
from .command import Command, CommandPayload, CommandResult, CommandType
from .deck import Deck
from .state import MIN_PLAYERS, GamePhase, GameState, PlayerState

logger = logging.getLogger(__name__)

DICE_SIDES = 6


class RuleViolation(ValueError):
    """A command is not allowed in the current game state."""


# ============================================================================
# Roster
# ============================================================================

def add_player(state: GameState, name: str) -> GameState:
    name = (name or "").strip()
    if not name:
        raise RuleViolation("Player name must not be empty")
    return state.with_new_player(name)


def remove_player(state: GameState, player_id: int) -> GameState:
    if state.get_player(player_id) is None:
        raise RuleViolation(f"Player {player_id} not found")
    return state.with_player_removed(player_id)


# ============================================================================
# New game and deck loading
# ============================================================================

def new_game(state: GameState, size: int) -> GameState:
    """
    Reset the game and request a board of size*size squares.

    With a deck already present the board is generated at once (phase TURN).
    Otherwise the game waits in LOADING for on_deck_loaded(); each request
    bumps load_epoch so answers to older requests can be told apart.
    """
    if size < MIN_BOARD_SIZE:
        raise RuleViolation(f"Board size must be at least {MIN_BOARD_SIZE}")
    if state.num_players < MIN_PLAYERS:
        raise RuleViolation(f"At least {MIN_PLAYERS} players are needed to start")

    deck = state.deck
    state = state.reset()
    if deck is not None:
        return generate_board(state.with_deck(deck), size)

    return state._copy_with(
        phase=GamePhase.LOADING,
        pending_board_size=size,
        load_epoch=state.load_epoch + 1,
    )


def generate_board(state: GameState, size: int) -> GameState:
    board = BoardState.generate(size, state.deck, state.rng)
    return state.with_board(board)._copy_with(phase=GamePhase.TURN, pending_board_size=None)


def on_deck_loaded(state: GameState, deck: Deck, epoch: int) -> GameState:
    """Store a loaded deck; finishes a pending board request."""
    if epoch != state.load_epoch:
        logger.info("Ignoring stale deck load (epoch %s, current %s)", epoch, state.load_epoch)
        return state

    state = state.with_deck(deck)
    if state.phase == GamePhase.LOADING and state.pending_board_size is not None:
        return generate_board(state, state.pending_board_size)
    return state


def on_deck_load_failed(state: GameState, epoch: int) -> GameState:
    if epoch != state.load_epoch:
        logger.info("Ignoring stale deck load failure (epoch %s, current %s)", epoch, state.load_epoch)
        return state

    logger.warning("Deck load failed, back to setup")
    if state.phase != GamePhase.LOADING:
        return state
    return state._copy_with(phase=GamePhase.INIT, pending_board_size=None)


# ============================================================================
# Turn flow
# ============================================================================

def move_player(state: GameState, player_id: int, position: int) -> GameState:
    """Place a player (clamped to the board) without triggering its square."""
    return state.with_player_move(player_id, position)


def roll_dice(state: GameState, value: int | None = None) -> GameState:
    """Roll for the current player, move them and run the landing square."""
    if state.phase != GamePhase.TURN:
        raise RuleViolation(f"Cannot roll dice in phase {state.phase.value}")

    if value is None:
        value = state.rng.randint(1, DICE_SIDES)
    elif not 1 <= value <= DICE_SIDES:
        raise RuleViolation(f"Dice value must be between 1 and {DICE_SIDES}")

    player = state.current_player
    state = state.with_dice(value)._copy_with(moved_player_ids=())
    state = move_player(state, player.player_id, player.position + value)
    return arrive_at_square(state.with_phase(GamePhase.IN_TURN), player.player_id)


def arrive_at_square(state: GameState, player_id: int) -> GameState:
    """Run the arrival handler of the square the player stands on."""
    player = state.get_player(player_id)
    if player is None:
        logger.warning("Arrival of unknown player %s ignored", player_id)
        return state
    square = state.square_of(player)
    if square is None:
        logger.warning("Arrival without a board ignored (player %s)", player_id)
        return state

    handler = _ARRIVAL_HANDLERS[square.kind]
    return handler(state, square, player)._copy_with(moved_player_ids=())


def _arrive_start(state: GameState, square: Square, player: PlayerState) -> GameState:
    return state.with_next_current_player().with_phase(GamePhase.TURN)


def _arrive_finish(state: GameState, square: Square, player: PlayerState) -> GameState:
    card = state.deck.draw_finish_card(state.rng) if state.deck is not None else DEFAULT_WIN_CARD
    logger.info("%s reached the finish", player.name)
    return state._copy_with(
        phase=GamePhase.FINISHED,
        winner_id=player.player_id,
        active_card=resolve_card(card, state, player),
    )


def _arrive_category(state: GameState, square: Square, player: PlayerState) -> GameState:
    if state.deck is None:
        logger.warning("No deck loaded, showing fallback card")
        card = FALLBACK_CARD
    else:
        card = state.deck.draw_card(square.category.name, player, state)
    return state.with_active_card(resolve_card(card, state, player)).with_phase(GamePhase.IN_TURN)


_ARRIVAL_HANDLERS: dict[SquareKind, Callable[[GameState, Square, PlayerState], GameState]] = {
    SquareKind.START: _arrive_start,
    SquareKind.FINISH: _arrive_finish,
    SquareKind.CATEGORY: _arrive_category,
}


def choose_option(state: GameState, index: int) -> GameState:
    """
    Pick an option of the active card and run the action pipeline.

    Afterwards, in order:
    1. A moved player standing on Finish ends the game
    2. Still IN_TURN with a moved player: the last one's square is entered
    3. Still IN_TURN: the turn passes on
    In FINISHED the choice only dismisses the win card.
    """
    card = state.active_card
    if card is None:
        raise RuleViolation("No active card")
    if not 0 <= index < len(card.options):
        raise RuleViolation(f"Option index {index} out of range (0-{len(card.options) - 1})")

    if state.phase == GamePhase.FINISHED:
        return state.with_active_card(None)

    state = state.with_active_card(None)._copy_with(moved_player_ids=())
    state = run_option(state, card.actions, card.options[index])
    moved = state.moved_player_ids

    if state.board is not None:
        for pid in moved:
            player = state.get_player(pid)
            if player is not None and player.position == state.board.finish_position:
                return arrive_at_square(state, pid)

    if state.phase == GamePhase.IN_TURN and moved:
        return arrive_at_square(state, moved[-1])
    if state.phase == GamePhase.IN_TURN:
        state = state.with_next_current_player().with_phase(GamePhase.TURN)
    return state._copy_with(moved_player_ids=())


# ============================================================================
# Command dispatch
# ============================================================================

class Reducer:
    """
    Reducer applies commands to game state.

    Stateless - all state is in GameState.
    """

    def apply(self, state: GameState, command: Command) -> CommandResult:
        """
        Apply a command to the game state.

        Returns CommandResult with new state or error.
        """
        handler = self._get_handler(command.command_type)
        if not handler:
            return CommandResult.failure(
                f"No handler for command type: {command.command_type}",
                error_code="NO_HANDLER",
            )

        try:
            return handler(state, command.payload)
        except RuleViolation as e:
            return CommandResult.failure(str(e), error_code="INVALID_COMMAND")

    def _get_handler(self, command_type: CommandType):
        """Get the handler function for a command type."""
        handlers = {
            CommandType.ADD_PLAYER: self._handle_add_player,
            CommandType.REMOVE_PLAYER: self._handle_remove_player,
            CommandType.NEW_GAME: self._handle_new_game,
            CommandType.DECK_LOADED: self._handle_deck_loaded,
            CommandType.DECK_LOAD_FAILED: self._handle_deck_load_failed,
            CommandType.ROLL_DICE: self._handle_roll_dice,
            CommandType.CHOOSE_OPTION: self._handle_choose_option,
        }
        return handlers.get(command_type)

    def _handle_add_player(self, state: GameState, payload: CommandPayload) -> CommandResult:
        new_state = add_player(state, payload.name)
        player = new_state.players[-1]
        return CommandResult.success_with_state(new_state, [f"{player.name} joined the game"])

    def _handle_remove_player(self, state: GameState, payload: CommandPayload) -> CommandResult:
        player = state.get_player(payload.player_id)
        new_state = remove_player(state, payload.player_id)
        return CommandResult.success_with_state(new_state, [f"{player.name} left the game"])

    def _handle_new_game(self, state: GameState, payload: CommandPayload) -> CommandResult:
        if payload.board_size is None:
            raise RuleViolation("Board size is required")
        new_state = new_game(state, payload.board_size)
        return CommandResult.success_with_state(new_state, [f"New game, phase {new_state.phase.value}"])

    def _handle_deck_loaded(self, state: GameState, payload: CommandPayload) -> CommandResult:
        new_state = on_deck_loaded(state, payload.deck, payload.epoch)
        return CommandResult.success_with_state(new_state)

    def _handle_deck_load_failed(self, state: GameState, payload: CommandPayload) -> CommandResult:
        return CommandResult.success_with_state(on_deck_load_failed(state, payload.epoch))

    def _handle_roll_dice(self, state: GameState, payload: CommandPayload) -> CommandResult:
        player = state.current_player
        new_state = roll_dice(state, payload.dice_value)
        return CommandResult.success_with_state(
            new_state, [f"{player.name} rolled {new_state.dice}"]
        )

    def _handle_choose_option(self, state: GameState, payload: CommandPayload) -> CommandResult:
        if payload.option_index is None:
            raise RuleViolation("Option index is required")
        card = state.active_card
        new_state = choose_option(state, payload.option_index)
        changes = []
        if card is not None:
            changes.append(f"{card.source.name} chose '{card.options[payload.option_index].text}'")
        return CommandResult.success_with_state(new_state, changes)


def apply_command(state: GameState, command: Command) -> CommandResult:
    """Convenience function to apply a command."""
    return Reducer().apply(state, command)
