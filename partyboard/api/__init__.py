"""
API Module - Client interface.

Exposes the engine via REST API. A client:
1. Lists the installed decks
2. Creates a game session and adds players
3. Starts a new game with a deck and board size
4. Rolls the dice and picks card options
5. Reads the game state after every command

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    AddPlayerRequest,
    ChooseOptionRequest,
    CreateSessionRequest,
    NewGameRequest,
    RollDiceRequest,
    ValidateDeckRequest,
    # Responses
    CommandResponse,
    DeckListResponse,
    DeckValidationResponse,
    ErrorResponse,
    GameStateResponse,
    SessionResponse,
    # Shared
    CardInfo,
    OptionInfo,
    PlayerInfo,
    SquareInfo,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "AddPlayerRequest",
    "ChooseOptionRequest",
    "CreateSessionRequest",
    "NewGameRequest",
    "RollDiceRequest",
    "ValidateDeckRequest",
    # Responses
    "CommandResponse",
    "DeckListResponse",
    "DeckValidationResponse",
    "ErrorResponse",
    "GameStateResponse",
    "SessionResponse",
    # Shared
    "CardInfo",
    "OptionInfo",
    "PlayerInfo",
    "SquareInfo",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
