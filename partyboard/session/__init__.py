"""
Session Module - Manages ephemeral game sessions.

A session represents one table of players:
- Created when a user opens a game
- Holds the current game state
- Runs new games, dice rolls and option choices
- Destroyed when the session is ended

Sessions are EPHEMERAL: nothing is persisted.
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, TurnResult

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "TurnResult",
]
