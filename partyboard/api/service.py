"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to game loop calls
2. Manages sessions
3. Formats responses for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .. import config
from ..card_schema.loader import DeckLibrary, DeckLoadError
from ..card_schema.normalizer import normalize_deck_document
from ..engine_core.state import GameState
from ..session import GameLoop, Session, SessionManager, TurnResult
from .schemas import (
    # Requests
    AddPlayerRequest,
    ChooseOptionRequest,
    CreateSessionRequest,
    NewGameRequest,
    RollDiceRequest,
    # Responses
    CommandResponse,
    DeckInfo,
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
    # Enums
    ErrorCode,
    GamePhaseName,
    SessionStatus,
)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        session = service.create_session(CreateSessionRequest())
        service.add_player(session.session_id, AddPlayerRequest(name="Ada"))
        service.add_player(session.session_id, AddPlayerRequest(name="Bob"))
        service.new_game(session.session_id, NewGameRequest(board_size=5))
        response = service.roll_dice(session.session_id, RollDiceRequest())
    """
    deck_library: DeckLibrary = field(
        default_factory=lambda: DeckLibrary(config.PARTYBOARD_DECK_DIR)
    )
    default_board_size: int = config.PARTYBOARD_BOARD_SIZE
    session_manager: SessionManager | None = None

    # Game loops per session
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    def __post_init__(self):
        if self.session_manager is None:
            self.session_manager = SessionManager(self.deck_library)

    # =========================================================================
    # Decks
    # =========================================================================

    def list_decks(self) -> DeckListResponse | ErrorResponse:
        try:
            listings = self.deck_library.list_decks()
        except DeckLoadError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.DECK_NOT_FOUND)
        decks = [DeckInfo(name=d.name, path=d.path) for d in listings]
        return DeckListResponse(decks=decks, count=len(decks))

    def validate_deck(self, document: object) -> DeckValidationResponse:
        """Normalize a raw deck document and report what had to be repaired."""
        result = normalize_deck_document(document)
        categories = result.deck.categories
        return DeckValidationResponse(
            valid=result.clean,
            category_count=len(categories),
            card_count=sum(len(c.cards) for c in categories),
            warnings=result.warnings,
        )

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """Create a new game session, ending stale ones first."""
        self.cleanup_stale_sessions()
        session = self.session_manager.create_session(
            deck_name=request.deck_name,
            seed=request.random_seed,
        )
        self._game_loops[session.session_id] = GameLoop(session, self.deck_library)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found(session_id)
        return self._session_to_response(session)

    def end_session(self, session_id: str) -> bool:
        """End a session and release its game loop."""
        self._game_loops.pop(session_id, None)
        return self.session_manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """End old idle sessions and drop the game loops left without a session."""
        removed = self.session_manager.cleanup_stale_sessions(max_age_seconds)
        for session_id in list(self._game_loops):
            if self.session_manager.get_session(session_id) is None:
                del self._game_loops[session_id]
        return removed

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._session_not_found(session_id)
        return self._build_game_state(session)

    # =========================================================================
    # Game commands
    # =========================================================================

    def add_player(self, session_id: str, request: AddPlayerRequest) -> CommandResponse | ErrorResponse:
        return self._run(session_id, lambda loop: loop.add_player(request.name))

    def remove_player(self, session_id: str, player_id: int) -> CommandResponse | ErrorResponse:
        return self._run(session_id, lambda loop: loop.remove_player(player_id))

    def new_game(self, session_id: str, request: NewGameRequest) -> CommandResponse | ErrorResponse:
        size = request.board_size or self.default_board_size
        return self._run(session_id, lambda loop: loop.new_game(size, request.deck_name))

    def roll_dice(self, session_id: str, request: RollDiceRequest) -> CommandResponse | ErrorResponse:
        return self._run(session_id, lambda loop: loop.roll_dice(request.value))

    def choose_option(self, session_id: str, request: ChooseOptionRequest) -> CommandResponse | ErrorResponse:
        return self._run(session_id, lambda loop: loop.choose_option(request.option_index))

    def _run(self, session_id: str, command) -> CommandResponse | ErrorResponse:
        loop = self._game_loops.get(session_id)
        if loop is None or self.session_manager.get_session(session_id) is None:
            self._game_loops.pop(session_id, None)
            return self._session_not_found(session_id)

        result: TurnResult = command(loop)
        if not result.success:
            return ErrorResponse(
                error="; ".join(result.errors) or "Command failed",
                error_code=self._error_code(result.error_code),
                details={"phase": result.phase.value},
            )

        return CommandResponse(
            session_id=session_id,
            success=True,
            changes=result.changes,
            warnings=result.warnings,
            game_state=self._build_game_state(loop.session),
        )

    # =========================================================================
    # Conversion helpers
    # =========================================================================

    @staticmethod
    def _error_code(code: str | None) -> ErrorCode:
        try:
            return ErrorCode(code)
        except ValueError:
            return ErrorCode.INVALID_COMMAND

    @staticmethod
    def _session_not_found(session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session not found: {session_id}",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        state = session.game_state
        return SessionResponse(
            session_id=session.session_id,
            status=SessionStatus(session.state.value),
            phase=GamePhaseName(state.phase.value),
            players=self._players(state),
            deck_name=session.deck_name,
            created_at=session.created_at,
        )

    def _players(self, state: GameState) -> list[PlayerInfo]:
        current = state.current_player
        return [
            PlayerInfo(
                player_id=p.player_id,
                name=p.name,
                position=p.position,
                is_current_turn=current is not None and p.player_id == current.player_id,
            )
            for p in state.players
        ]

    def _build_game_state(self, session: Session) -> GameStateResponse:
        state = session.game_state
        players = self._players(state)

        board = []
        if state.board is not None:
            board = [
                SquareInfo(
                    position=sq.position,
                    kind=sq.kind.value,
                    category=sq.name,
                    icon=sq.icon,
                )
                for sq in state.board.squares
            ]

        active_card = None
        if state.active_card is not None:
            active_card = CardInfo(
                text=state.active_card.text,
                source_player_id=state.active_card.source.player_id,
                options=[
                    OptionInfo(index=i, text=opt.text)
                    for i, opt in enumerate(state.active_card.options)
                ],
            )

        winner = next((p for p in players if p.player_id == state.winner_id), None)
        current = state.current_player

        return GameStateResponse(
            session_id=session.session_id,
            status=SessionStatus(session.state.value),
            phase=GamePhaseName(state.phase.value),
            players=players,
            current_player_id=current.player_id if current else None,
            dice=state.dice,
            board=board,
            active_card=active_card,
            winner=winner,
            deck_name=session.deck_name,
        )
