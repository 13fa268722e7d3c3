"""
FastAPI Application - REST API for game clients.

Endpoints:
    GET    /api/v1/health                          Health check
    GET    /api/v1/decks                           List installed decks
    POST   /api/v1/decks/validate                  Normalize a deck document
    POST   /api/v1/sessions                        Create game session
    GET    /api/v1/sessions                        List active sessions
    GET    /api/v1/sessions/{id}                   Get session status
    DELETE /api/v1/sessions/{id}                   End session
    GET    /api/v1/sessions/{id}/state             Get game state
    POST   /api/v1/sessions/{id}/players           Add a player
    DELETE /api/v1/sessions/{id}/players/{pid}     Remove a player
    POST   /api/v1/sessions/{id}/game              Start a new game
    POST   /api/v1/sessions/{id}/dice              Roll the dice
    POST   /api/v1/sessions/{id}/options           Choose an option

Game Flow:
    1. Create a session and add at least two players
    2. POST /game loads the deck and generates the board (phase turn)
    3. POST /dice moves the current player and draws a card (phase in_turn)
    4. POST /options runs the card; the next player rolls (phase turn)
    5. A player on the last square ends the game (phase finished)

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Union

from .. import __version__
from ..config import ALLOWED_ORIGINS, PARTYBOARD_ENV


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from .service import APIService
    from .schemas import (
        # Request models
        AddPlayerRequest,
        ChooseOptionRequest,
        CreateSessionRequest,
        NewGameRequest,
        RollDiceRequest,
        ValidateDeckRequest,
        # Response models
        CommandResponse,
        DeckListResponse,
        DeckValidationResponse,
        EndSessionResponse,
        ErrorResponse,
        GameStateResponse,
        HealthResponse,
        SessionListResponse,
        SessionResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Partyboard Engine API",
        description="""
Party Board Game Engine - data-driven cards on a generated board.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `DECK_NOT_FOUND` | Deck missing from the decklist or unreadable |
| `INVALID_COMMAND` | Command not allowed in the current phase |
| `VALIDATION_ERROR` | Request could not be processed |
        """,
        version=__version__,
        docs_url=None if PARTYBOARD_ENV == "production" else "/api/docs",
        redoc_url=None if PARTYBOARD_ENV == "production" else "/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or APIService()

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Turn a service error into a JSON response with a fitting status."""
        status_code = 404 if error.error_code in {
            ErrorCode.SESSION_NOT_FOUND,
            ErrorCode.DECK_NOT_FOUND,
        } else 400
        return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    error_responses = {
        400: {"model": ErrorResponse, "description": "Command not allowed"},
        404: {"model": ErrorResponse, "description": "Session or deck not found"},
    }

    # =========================================================================
    # Health and Decks
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="Health check",
    )
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="partyboard", version=__version__)

    @app.get(
        "/api/v1/decks",
        response_model=DeckListResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Decks"],
        summary="List installed decks",
    )
    async def list_decks() -> Union[DeckListResponse, JSONResponse]:
        return respond(api_service.list_decks())

    @app.post(
        "/api/v1/decks/validate",
        response_model=DeckValidationResponse,
        tags=["Decks"],
        summary="Normalize a deck document and report repairs",
    )
    async def validate_deck(request: ValidateDeckRequest) -> DeckValidationResponse:
        """
        Run a deck document through the normalizer.

        Malformed fragments never fail the request; each dropped or
        defaulted fragment is listed in `warnings`.
        """
        return api_service.validate_deck(request.document)

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(request: CreateSessionRequest) -> SessionResponse:
        return api_service.create_session(request)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get the game state",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.get_game_state(session_id))

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/players",
        response_model=CommandResponse,
        responses=error_responses,
        tags=["Players"],
        summary="Add a player",
    )
    async def add_player(session_id: str, request: AddPlayerRequest) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.add_player(session_id, request))

    @app.delete(
        "/api/v1/sessions/{session_id}/players/{player_id}",
        response_model=CommandResponse,
        responses=error_responses,
        tags=["Players"],
        summary="Remove a player",
    )
    async def remove_player(session_id: str, player_id: int) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.remove_player(session_id, player_id))

    @app.post(
        "/api/v1/sessions/{session_id}/game",
        response_model=CommandResponse,
        responses=error_responses,
        tags=["Game"],
        summary="Start a new game",
    )
    async def new_game(session_id: str, request: NewGameRequest) -> Union[CommandResponse, JSONResponse]:
        """
        Reset the game and generate a board of board_size x board_size squares.

        Naming a deck loads it; otherwise the session's deck is used.
        """
        return respond(api_service.new_game(session_id, request))

    @app.post(
        "/api/v1/sessions/{session_id}/dice",
        response_model=CommandResponse,
        responses=error_responses,
        tags=["Game"],
        summary="Roll the dice for the current player",
    )
    async def roll_dice(session_id: str, request: RollDiceRequest) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.roll_dice(session_id, request))

    @app.post(
        "/api/v1/sessions/{session_id}/options",
        response_model=CommandResponse,
        responses=error_responses,
        tags=["Game"],
        summary="Choose an option of the active card",
    )
    async def choose_option(session_id: str, request: ChooseOptionRequest) -> Union[CommandResponse, JSONResponse]:
        return respond(api_service.choose_option(session_id, request))

    return app


# For running directly: uvicorn partyboard.api.app:app
app = create_app()
