"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a game client and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- DECK_NOT_FOUND: Deck is not in the decklist or could not be read
- INVALID_COMMAND: Command not allowed in the current game phase
- VALIDATION_ERROR: Request body could not be processed
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    CREATED = "created"
    ACTIVE = "active"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


class GamePhaseName(str, Enum):
    """Game phase values."""
    PRE_INIT = "pre_init"
    INIT = "init"
    LOADING = "loading"
    TURN = "turn"
    IN_TURN = "in_turn"
    FINISHED = "finished"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    DECK_NOT_FOUND = "DECK_NOT_FOUND"
    INVALID_COMMAND = "INVALID_COMMAND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class PlayerInfo(BaseModel):
    """Player information for display."""
    player_id: int
    name: str
    position: int = 0
    is_current_turn: bool = False

    model_config = {"from_attributes": True}


class SquareInfo(BaseModel):
    """A board square for display."""
    position: int
    kind: str = Field(description="start, finish or category")
    category: str
    icon: str = ""


class OptionInfo(BaseModel):
    """An option of the active card."""
    index: int
    text: str


class CardInfo(BaseModel):
    """The active card, fully resolved."""
    text: str
    source_player_id: int
    options: list[OptionInfo] = Field(default_factory=list)


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a new game session."""
    deck_name: Optional[str] = Field(None, description="Deck used when a new game names none")
    random_seed: Optional[int] = Field(None, description="Seed for reproducible games")


class AddPlayerRequest(BaseModel):
    """Request to add a player."""
    name: str = Field(..., min_length=1, description="Display name")


class NewGameRequest(BaseModel):
    """Request to start a new game."""
    board_size: Optional[int] = Field(None, ge=2, le=20, description="Board edge length")
    deck_name: Optional[str] = Field(None, description="Deck from the decklist")


class RollDiceRequest(BaseModel):
    """Request to roll the dice."""
    value: Optional[int] = Field(None, ge=1, le=6, description="Fixed dice value (for testing)")


class ChooseOptionRequest(BaseModel):
    """Request to pick an option of the active card."""
    option_index: int = Field(..., ge=0)


class ValidateDeckRequest(BaseModel):
    """A raw deck document to check."""
    document: Any = Field(..., description="Deck JSON: {settings, data} or a list of categories")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    session_id: str
    status: SessionStatus
    phase: GamePhaseName
    players: list[PlayerInfo] = Field(default_factory=list)
    current_player_id: Optional[int] = None
    dice: int = 0
    board: list[SquareInfo] = Field(default_factory=list)
    active_card: Optional[CardInfo] = None
    winner: Optional[PlayerInfo] = None
    deck_name: Optional[str] = None
    api_version: str = "v1"


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    phase: GamePhaseName
    players: list[PlayerInfo] = Field(default_factory=list)
    deck_name: Optional[str] = None
    created_at: float = 0.0
    api_version: str = "v1"


class CommandResponse(BaseModel):
    """Response after a game command."""
    session_id: str
    success: bool
    changes: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    game_state: GameStateResponse
    api_version: str = "v1"


class DeckInfo(BaseModel):
    """An entry of the decklist."""
    name: str
    path: str


class DeckListResponse(BaseModel):
    """Installed decks."""
    decks: list[DeckInfo]
    count: int


class DeckValidationResponse(BaseModel):
    """Result of normalizing a deck document."""
    valid: bool = Field(description="True when normalization produced no warnings")
    category_count: int = 0
    card_count: int = 0
    warnings: list[str] = Field(default_factory=list)


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
