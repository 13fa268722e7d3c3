"""
Pytest fixtures for Partyboard tests.
"""

import json
from pathlib import Path

import pytest

from ..card_schema.card_dsl import CategorySpec
from ..card_schema.loader import DeckLibrary
from ..card_schema.normalizer import normalize_deck_document
from ..config import BUNDLED_DECK_DIR
from ..engine_core.board import FINISH_CATEGORY, START_CATEGORY, BoardState, Square, SquareKind
from ..engine_core.deck import Deck
from ..engine_core.state import GamePhase, GameState


def make_board(length: int, category: str = "Action") -> BoardState:
    """A board of any length (not only size*size) for movement tests."""
    squares = [Square(0, SquareKind.START, START_CATEGORY)]
    for position in range(1, length - 1):
        squares.append(Square(position, SquareKind.CATEGORY, CategorySpec(name=category)))
    squares.append(Square(length - 1, SquareKind.FINISH, FINISH_CATEGORY))
    return BoardState(size=0, squares=tuple(squares))


def make_deck(raw) -> Deck:
    result = normalize_deck_document(raw)
    assert result.clean, result.warnings
    return Deck.from_document(result.deck)


def with_players(state: GameState, *names: str) -> GameState:
    for name in names:
        state = state.with_new_player(name)
    return state


SIMPLE_DECK = {
    "settings": {"board": True},
    "data": [
        {
            "name": "Action",
            "frequency": 1,
            "icon": "FaRunning",
            "cards": [
                {
                    "text": "<name> gets a card",
                    "variables": [
                        {"name": "name", "type": "selectors", "selectors": [{"type": "self"}]}
                    ],
                    "options": [
                        {"text": "Next", "actions": [{"type": "nextPlayer"}]}
                    ],
                }
            ],
        }
    ],
}


@pytest.fixture
def empty_state() -> GameState:
    """Create an empty, seeded game state."""
    return GameState.create(seed=1234)


@pytest.fixture
def four_player_state(empty_state: GameState) -> GameState:
    """Four players with ids 0-3, no board."""
    return with_players(empty_state, "Ada", "Bob", "Cyd", "Dee")


@pytest.fixture
def board_state(four_player_state: GameState) -> GameState:
    """Four players on a 10-square board, game running."""
    return four_player_state.with_board(make_board(10)).with_phase(GamePhase.TURN)


@pytest.fixture
def simple_deck() -> Deck:
    return make_deck(SIMPLE_DECK)


@pytest.fixture
def two_player_game(empty_state: GameState, simple_deck: Deck) -> GameState:
    """Two players, deck loaded, nothing started yet."""
    return with_players(empty_state, "Ada", "Bob").with_deck(simple_deck)


@pytest.fixture
def bundled_library() -> DeckLibrary:
    return DeckLibrary(BUNDLED_DECK_DIR)


@pytest.fixture
def deck_dir(tmp_path: Path) -> Path:
    """A deck directory with one valid deck and several unreadable ones."""
    (tmp_path / "deck_config.json").write_text(json.dumps([
        {"name": "Simple", "path": "simple.json"},
        {"name": "Broken", "path": "broken.json"},
        {"name": "Missing", "path": "missing.json"},
        {"name": "Latin", "path": "latin.json"},
        {"name": "Folder", "path": "folder"},
    ]))
    (tmp_path / "simple.json").write_text(json.dumps(SIMPLE_DECK))
    (tmp_path / "broken.json").write_text("{not json")
    (tmp_path / "latin.json").write_bytes(b'{"data": [{"name": "caf\xe9"}]}')
    (tmp_path / "folder").mkdir()
    return tmp_path
