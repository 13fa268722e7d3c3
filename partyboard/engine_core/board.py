"""
Board - Squares of a generated board.

A board of edge length `size` has size*size squares. The first square is
Start, the last is Finish, and each interior square carries a category drawn
from the deck when the board is generated.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import random

from ..card_schema.card_dsl import CategorySpec
from .deck import Deck

MIN_BOARD_SIZE = 2

START_CATEGORY = CategorySpec(name="Start", icon="FaArrowRight")
FINISH_CATEGORY = CategorySpec(name="Finish", icon="FaFlagCheckered")
BLANK_CATEGORY = CategorySpec(name="Blank")


class SquareKind(Enum):
    """Selects the arrival handler of a square."""
    START = "start"
    FINISH = "finish"
    CATEGORY = "category"


@dataclass(frozen=True)
class Square:
    position: int
    kind: SquareKind
    category: CategorySpec

    @property
    def name(self) -> str:
        return self.category.name

    @property
    def icon(self) -> str:
        return self.category.icon


@dataclass(frozen=True)
class BoardState:
    size: int
    squares: tuple[Square, ...]

    @property
    def length(self) -> int:
        return len(self.squares)

    @property
    def finish_position(self) -> int:
        return len(self.squares) - 1

    @classmethod
    def generate(cls, size: int, deck: Deck, rng: random.Random) -> BoardState:
        """Build a board, choosing interior categories by frequency."""
        if size < MIN_BOARD_SIZE:
            raise ValueError(f"Board size must be at least {MIN_BOARD_SIZE}, got {size}")

        count = size * size
        squares = [Square(0, SquareKind.START, START_CATEGORY)]
        for position in range(1, count - 1):
            category = deck.random_category(rng) or BLANK_CATEGORY
            squares.append(Square(position, SquareKind.CATEGORY, category))
        squares.append(Square(count - 1, SquareKind.FINISH, FINISH_CATEGORY))
        return cls(size=size, squares=tuple(squares))
