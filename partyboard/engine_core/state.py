"""
Game State - Immutable snapshot of a running game.

Design principles:
- Immutable: frozen dataclasses, every mutation returns a new state
- No aliasing: player tuples are rebuilt, never edited in place
- Explicit context: player ids and randomness travel with the state lineage
  instead of living in module globals

Only two objects are shared between snapshots of one lineage: the random
generator and the deck's draw-order cache. Both are sequencing state and
never change what a snapshot means.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, TYPE_CHECKING
import logging
import random

if TYPE_CHECKING:
    from .board import BoardState, Square
    from .card_resolver import ResolvedCard
    from .deck import Deck

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2


class GamePhase(Enum):
    """
    High-level game phases.

    PRE_INIT: fewer than 2 players
    INIT: enough players, no board yet
    LOADING: a board was requested, waiting for the deck
    TURN: the current player has to roll the dice
    IN_TURN: a card is shown, waiting for an option
    FINISHED: a player reached the finish
    """
    PRE_INIT = "pre_init"
    INIT = "init"
    LOADING = "loading"
    TURN = "turn"
    IN_TURN = "in_turn"
    FINISHED = "finished"


@dataclass(frozen=True)
class PlayerState:
    """A player token on the board."""
    player_id: int
    name: str
    position: int = 0

    def with_position(self, position: int) -> PlayerState:
        return replace(self, position=position)


@dataclass(frozen=True)
class GameState:
    """
    Complete game state at a point in time.

    Invariant: current_player_idx is a valid index into players whenever
    players is non-empty.
    """
    players: tuple[PlayerState, ...] = ()
    phase: GamePhase = GamePhase.PRE_INIT
    current_player_idx: int = 0
    dice: int = 0

    board: BoardState | None = None
    deck: Deck | None = None
    active_card: ResolvedCard | None = None
    winner_id: int | None = None

    # Id allocator: next id handed out by with_new_player()
    next_player_id: int = 0

    # Deck loading: board size waiting for a deck, and the request epoch
    pending_board_size: int | None = None
    load_epoch: int = 0

    # Players moved since the last arrival was processed
    moved_player_ids: tuple[int, ...] = ()

    # Random seed for determinism
    random_seed: int | None = None
    rng: random.Random = field(default_factory=random.Random, compare=False, repr=False)

    @classmethod
    def create(cls, seed: int | None = None) -> GameState:
        """Create an empty game, optionally seeded for reproducible play."""
        return cls(random_seed=seed, rng=random.Random(seed))

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def current_player(self) -> PlayerState | None:
        if not self.players:
            return None
        return self.players[self.current_player_idx]

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def board_length(self) -> int:
        return len(self.board.squares) if self.board is not None else 0

    def get_player(self, player_id: int) -> PlayerState | None:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def index_of(self, player_id: int) -> int | None:
        for i, p in enumerate(self.players):
            if p.player_id == player_id:
                return i
        return None

    def square_of(self, player: PlayerState) -> Square | None:
        if self.board is None or not 0 <= player.position < len(self.board.squares):
            return None
        return self.board.squares[player.position]

    # =========================================================================
    # Transformations
    # =========================================================================

    def with_new_player(self, name: str) -> GameState:
        """Return new state with a player appended; id comes from the allocator."""
        player = PlayerState(player_id=self.next_player_id, name=name)
        phase = self.phase
        if len(self.players) + 1 >= MIN_PLAYERS and phase == GamePhase.PRE_INIT:
            phase = GamePhase.INIT
        return self._copy_with(
            players=self.players + (player,),
            next_player_id=self.next_player_id + 1,
            phase=phase,
        )

    def with_player_removed(self, player_id: int) -> GameState:
        players = tuple(p for p in self.players if p.player_id != player_id)
        idx = self.current_player_idx % len(players) if players else 0
        phase = GamePhase.PRE_INIT if len(players) < MIN_PLAYERS else self.phase
        return self._copy_with(players=players, current_player_idx=idx, phase=phase)

    def with_player_position(self, player_id: int, position: int) -> GameState:
        """
        Return new state with a player placed on a square.

        Positions outside the board are clamped to the first/last square.
        """
        pos = max(0, position)
        if self.board is not None:
            pos = min(pos, len(self.board.squares) - 1)

        if self.get_player(player_id) is None:
            logger.warning("Position change for unknown player %s ignored", player_id)
            return self

        players = tuple(
            p.with_position(pos) if p.player_id == player_id else p
            for p in self.players
        )
        return self._copy_with(players=players)

    def with_player_move(self, player_id: int, position: int) -> GameState:
        """Like with_player_position, but remembers the player for arrival handling."""
        moved = self.with_player_position(player_id, position)
        if moved is self:
            return self
        return moved._copy_with(moved_player_ids=self.moved_player_ids + (player_id,))

    def with_phase(self, phase: GamePhase) -> GameState:
        return self._copy_with(phase=phase)

    def with_current_player(self, current_player_idx: int) -> GameState:
        return self._copy_with(current_player_idx=current_player_idx)

    def with_next_current_player(self) -> GameState:
        if not self.players:
            return self
        return self._copy_with(
            current_player_idx=(self.current_player_idx + 1) % len(self.players)
        )

    def with_dice(self, value: int) -> GameState:
        return self._copy_with(dice=value)

    def with_board(self, board: BoardState | None) -> GameState:
        return self._copy_with(board=board)

    def with_deck(self, deck: Deck | None) -> GameState:
        return self._copy_with(deck=deck)

    def with_active_card(self, card: ResolvedCard | None) -> GameState:
        return self._copy_with(active_card=card)

    def reset(self) -> GameState:
        """
        Return a fresh game with the same players.

        Players go back to the start, the first player is current, and the
        board, deck, active card and winner are cleared.
        """
        return self._copy_with(
            phase=GamePhase.INIT if len(self.players) >= MIN_PLAYERS else GamePhase.PRE_INIT,
            players=tuple(p.with_position(0) for p in self.players),
            current_player_idx=0,
            board=None,
            deck=None,
            active_card=None,
            winner_id=None,
            pending_board_size=None,
            moved_player_ids=(),
        )

    def _copy_with(self, **kwargs: Any) -> GameState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)
