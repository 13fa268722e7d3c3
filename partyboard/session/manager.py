"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. User creates a session (in-memory only), optionally seeded
2. Players are added, a new game is started with a deck from the library
3. During game:
   - Current player rolls the dice
   - A card is shown, the player picks an option
   - Engine runs the card's actions and the next turn begins
4. Session ended → removed from memory, ALL state deleted

PERSISTENCE RULES:
- NO database for gameplay
- Game state is ephemeral (session-scoped only)
- Decks are read from the deck directory on every new game
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import logging
import time
import uuid

from ..card_schema.loader import DeckLibrary
from ..engine_core.state import GamePhase, GameState

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    CREATED = "created"  # Session created, no game started yet
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # A player reached the finish
    ABANDONED = "abandoned"  # Session ended


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - Current game state
    - The deck to play with

    State is NOT persisted.
    """
    session_id: str
    created_at: float
    game_state: GameState
    deck_name: str | None = None

    state: SessionState = SessionState.CREATED

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state in {
            SessionState.CREATED,
            SessionState.ACTIVE,
            SessionState.GAME_OVER,
        }

    def sync_state(self):
        """Derive the session state from the game phase."""
        phase = self.game_state.phase
        if phase == GamePhase.FINISHED:
            self.state = SessionState.GAME_OVER
        elif phase in {GamePhase.LOADING, GamePhase.TURN, GamePhase.IN_TURN}:
            self.state = SessionState.ACTIVE
        else:
            self.state = SessionState.CREATED


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions
    - Track active sessions
    - Clean up ended sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, deck_library: DeckLibrary):
        self.deck_library = deck_library
        self._sessions: dict[str, Session] = {}

    def create_session(self, deck_name: str | None = None, seed: int | None = None) -> Session:
        """
        Create a new game session.

        Args:
            deck_name: Deck used when a new game does not name one
            seed: Random seed for a reproducible game

        Returns:
            New Session waiting for players
        """
        session = Session(
            session_id=str(uuid.uuid4()),
            created_at=time.time(),
            game_state=GameState.create(seed),
            deck_name=deck_name,
        )
        self._sessions[session.session_id] = session
        logger.info("Created session %s", session.session_id)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """
        End a session and remove it from memory.

        Returns False if no such session exists.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.state = SessionState.ABANDONED
        logger.info("Ended session %s", session_id)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        End sessions older than max_age that are not mid-game.

        Returns the number of sessions removed.
        """
        current_time = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds
            and session.state != SessionState.ACTIVE
        ]
        for session_id in stale:
            self.end_session(session_id)
        return len(stale)
