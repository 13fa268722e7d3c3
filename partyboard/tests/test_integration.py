"""
Integration tests - full games through the session layer.

Tests:
- A game from setup to the finish square
- Deck loading through the library (success and failure)
- Session lifecycle
"""

import pytest

from ..card_schema.loader import DeckLibrary
from ..engine_core.state import GamePhase
from ..session import GameLoop, SessionManager, SessionState


@pytest.fixture
def library(deck_dir):
    return DeckLibrary(deck_dir)


@pytest.fixture
def manager(library):
    return SessionManager(library)


def start_loop(manager, library, *names, seed=7):
    session = manager.create_session(seed=seed)
    loop = GameLoop(session, library)
    for name in names:
        assert loop.add_player(name).success
    return loop


class TestFullGame:
    """A complete game with fixed dice."""

    def test_setup_to_finish(self, manager, library):
        session = manager.create_session(seed=1)
        loop = GameLoop(session, library)

        loop.add_player("Ada")
        assert session.game_state.phase == GamePhase.PRE_INIT
        loop.add_player("Bob")
        assert session.game_state.phase == GamePhase.INIT
        assert session.state == SessionState.CREATED

        result = loop.new_game(board_size=5, deck_name="Simple")
        assert result.success
        assert result.phase == GamePhase.TURN
        assert "Loaded deck Simple" in result.changes
        assert session.state == SessionState.ACTIVE
        assert session.game_state.board.length == 25

        result = loop.roll_dice(3)
        assert result.phase == GamePhase.IN_TURN
        assert session.game_state.active_card.text == "Ada gets a card"

        result = loop.choose_option(0)
        assert result.phase == GamePhase.TURN
        assert session.game_state.current_player.name == "Bob"

        loop.roll_dice(6)
        loop.choose_option(0)
        assert [p.position for p in session.game_state.players] == [3, 6]

        for _ in range(3):
            loop.roll_dice(6)
            loop.choose_option(0)
            loop.roll_dice(1)
            loop.choose_option(0)

        result = loop.roll_dice(6)
        assert result.phase == GamePhase.FINISHED
        assert result.winner == "Ada"
        assert session.state == SessionState.GAME_OVER

        # The win card is dismissed; the game stays finished
        result = loop.choose_option(0)
        assert result.phase == GamePhase.FINISHED
        assert session.game_state.active_card is None
        assert not loop.roll_dice().success

    def test_rematch_reuses_deck(self, manager, library):
        loop = start_loop(manager, library, "Ada", "Bob")
        loop.new_game(board_size=2, deck_name="Simple")
        loop.roll_dice(6)
        assert loop.session.game_state.phase == GamePhase.FINISHED

        result = loop.new_game(board_size=3)

        assert result.success
        assert result.phase == GamePhase.TURN
        assert not any(c.startswith("Loaded deck") for c in result.changes)
        assert [p.position for p in loop.session.game_state.players] == [0, 0]

    def test_bundled_deck_plays_to_the_end(self, bundled_library):
        """Always picking the first option, a seeded game reaches the finish."""
        session = SessionManager(bundled_library).create_session(seed=42)
        loop = GameLoop(session, bundled_library)
        for name in ("Ada", "Bob", "Cyd"):
            loop.add_player(name)

        result = loop.new_game(board_size=5)
        assert result.success, result.errors
        assert result.warnings == []
        assert session.deck_name == "Classic"

        for _ in range(2000):
            state = session.game_state
            if state.phase == GamePhase.FINISHED:
                break
            if state.active_card is not None:
                result = loop.choose_option(0)
            else:
                result = loop.roll_dice()
            assert result.success, result.errors

        state = session.game_state
        assert state.phase == GamePhase.FINISHED
        winner = state.get_player(state.winner_id)
        assert winner.position == state.board.finish_position


class TestDeckLoading:
    """Deck loading through the game loop."""

    def test_default_deck_is_first_listed(self, manager, library):
        loop = start_loop(manager, library, "Ada", "Bob")
        result = loop.new_game(board_size=3)
        assert result.success
        assert loop.session.deck_name == "Simple"

    def test_session_deck_used(self, manager, library):
        session = manager.create_session(deck_name="Simple")
        loop = GameLoop(session, library)
        loop.add_player("Ada")
        loop.add_player("Bob")
        assert loop.new_game(board_size=3).success

    @pytest.mark.parametrize("deck_name", ["Broken", "Missing", "Latin", "Folder", "Unknown"])
    def test_unreadable_deck(self, manager, library, deck_name):
        loop = start_loop(manager, library, "Ada", "Bob")

        result = loop.new_game(board_size=3, deck_name=deck_name)

        assert not result.success
        assert result.error_code == "DECK_NOT_FOUND"
        assert result.phase == GamePhase.INIT
        assert loop.session.game_state.board is None

    def test_recovers_after_failure(self, manager, library):
        loop = start_loop(manager, library, "Ada", "Bob")
        loop.new_game(board_size=3, deck_name="Broken")

        result = loop.new_game(board_size=3, deck_name="Simple")

        assert result.success
        assert result.phase == GamePhase.TURN

    def test_rejected_new_game_keeps_deck(self, manager, library):
        """A new game the rules reject leaves the loaded deck in place."""
        loop = start_loop(manager, library, "Ada", "Bob")
        loop.new_game(board_size=3, deck_name="Simple")
        deck = loop.session.game_state.deck

        result = loop.new_game(board_size=1, deck_name="Simple")

        assert not result.success
        assert result.error_code == "INVALID_COMMAND"
        assert loop.session.game_state.deck is deck
        assert loop.session.game_state.phase == GamePhase.TURN
        assert loop.new_game(board_size=3).success

    def test_invalid_command_reported(self, manager, library):
        loop = start_loop(manager, library, "Ada")
        result = loop.new_game(board_size=3)
        assert not result.success
        assert result.error_code == "INVALID_COMMAND"
        assert result.phase == GamePhase.PRE_INIT


class TestSessions:
    """Tests for SessionManager."""

    def test_create_and_end(self, manager):
        session = manager.create_session()
        assert manager.get_session(session.session_id) is session
        assert session.session_id in manager.list_active_sessions()

        assert manager.end_session(session.session_id)
        assert manager.get_session(session.session_id) is None
        assert session.state == SessionState.ABANDONED
        assert not manager.end_session(session.session_id)

    def test_seeded_sessions_roll_alike(self, manager, library):
        first = start_loop(manager, library, "Ada", "Bob", seed=99)
        second = start_loop(manager, library, "Ada", "Bob", seed=99)
        first.new_game(board_size=5)
        second.new_game(board_size=5)

        for _ in range(5):
            a = first.roll_dice()
            b = second.roll_dice()
            assert first.session.game_state.dice == second.session.game_state.dice
            first.choose_option(0)
            second.choose_option(0)
            assert a.phase == b.phase

    def test_cleanup_keeps_running_games(self, manager, library):
        idle = manager.create_session()
        running = start_loop(manager, library, "Ada", "Bob")
        running.new_game(board_size=3)

        removed = manager.cleanup_stale_sessions(max_age_seconds=-1)

        assert removed == 1
        assert manager.get_session(idle.session_id) is None
        assert manager.get_session(running.session.session_id) is running.session
