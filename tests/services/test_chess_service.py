"""Unit tests for src/services/chess_service.py"""

from typing import Generator
from unittest.mock import Mock
from uuid import UUID, uuid4

import pytest

from src.api.models import (
    CreateGameRequest,
    DeleteGameRequest,
    DrawAnswerRequest,
    DrawOfferRequest,
    EngineMoveRequest,
    GameResponse,
    GetGameRequest,
    LegalMovesRequest,
    LegalMovesResponse,
    LoadGameRequest,
    MoveRequest,
    ResignRequest,
    SuggestMoveRequest,
    SuggestMoveResponse,
    UndoRequest,
)
from src.core.config import Settings
from src.core.exceptions import (
    EngineError,
    GameError,
    GameStateError,
    IllegalMoveError,
    NotYourTurnError,
    PromotionError,
    RepositoryError,
)
from src.core.models import GameModel, MoveRecord
from src.core.shared_types import Color, DrawAnswer, PieceType, Status
from src.services.chess_service import ChessService

# --- MOCK DEPENDENCIES ----
KINGS_ONLY_FEN = "k7/8/8/8/8/8/8/K7 w - - 8 24"
LADDER_MATE_FEN = "k7/6RR/8/8/8/8/K7/8 w - - 0 1"
PLAYERS = {"white": "Whitey McWhite", "black": "Blackey McBlack"}


class MockRepository:
    """Mock the GameRepository using a dictionary of game models."""

    def __init__(self) -> None:
        self._games: dict[UUID, GameModel] = {}

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""
        game_id = uuid4()
        self._games[game_id] = game
        return game, game_id

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        return self._games.get(game_id)

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Overwrite existing record."""
        if game_id not in self._games:
            return None
        self._games[game_id] = game
        return game

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a game's record."""
        return self._games.pop(game_id, None)

    def list_game_ids(self) -> list[UUID]:
        return list(self._games)

    def clear(self) -> None:
        """Clear the repository (useful in between tests)"""
        self._games.clear()


@pytest.fixture
def mock_repository() -> Generator[MockRepository, None, None]:
    """Ensures to clear the repository between tests"""
    repo = MockRepository()
    try:
        yield repo
    finally:
        repo.clear()


@pytest.fixture
def service(mock_repository: MockRepository) -> ChessService:
    return ChessService(mock_repository, settings=Settings(undo_capacity=0, suggestion_depth=7))


def create_game(service: ChessService, starting_fen: str | None = None) -> UUID:
    request = CreateGameRequest(
        white_player=PLAYERS["white"],
        black_player=PLAYERS["black"],
        starting_fen=starting_fen,
    )
    return service.create_new_game(request).game_id


def move(service: ChessService, game_id: UUID, color: Color, text: str) -> GameResponse:
    return service.make_move(MoveRequest(game_id=game_id, color=color, move_text=text))


# --- SERVICE - CREATE / LOAD GAME ----
def test_create_a_new_game(service: ChessService, mock_repository: MockRepository) -> None:
    """Check that new game is created, persisted in repo, and return has the appropriate information."""
    request = CreateGameRequest(
        white_player=PLAYERS["white"],
        black_player=PLAYERS["black"],
        starting_fen=KINGS_ONLY_FEN,
        tags={"Event": "Club night"},
    )
    response = service.create_new_game(request)

    # Check response structure
    assert isinstance(response, GameResponse)
    assert isinstance(response.game_id, UUID)

    # Check response data
    assert response.fen_state == KINGS_ONLY_FEN
    assert response.starting_state == KINGS_ONLY_FEN
    assert response.players == PLAYERS
    assert response.status == Status.ONGOING
    assert response.color_to_move == Color.WHITE
    assert response.move_history == []
    assert response.result == "*"
    assert response.board == {"a8": "k", "a1": "K"}
    assert response.tags["Event"] == "Club night"

    # Check persisted data
    stored_game = mock_repository.get_game(response.game_id)
    assert stored_game is not None
    assert stored_game.starting_fen == KINGS_ONLY_FEN
    assert stored_game.moves == []
    assert stored_game.players == PLAYERS
    assert stored_game.status == Status.ONGOING


def test_create_with_invalid_fen(service: ChessService) -> None:
    """Make sure service propagates the exceptions."""
    request = CreateGameRequest(
        white_player=PLAYERS["white"],
        black_player=PLAYERS["black"],
        starting_fen=" ".join(["mock"] * 6),
    )

    # Test any top-level custom exception is raised (specific exception types are responsibility of other layers)
    with pytest.raises(GameError):
        _ = service.create_new_game(request)


def test_load_game(service: ChessService, mock_repository: MockRepository) -> None:
    """A score sheet gets replayed, stored in coordinate notation"""
    request = LoadGameRequest(
        white_player=PLAYERS["white"],
        black_player=PLAYERS["black"],
        moves=[MoveRecord(1, "f3", "e5"), MoveRecord(2, "g4", "Qh4#")],
    )
    response = service.load_game(request)

    assert response.status == Status.CHECKMATE
    assert response.result == "0-1"
    stored_game = mock_repository.get_game(response.game_id)
    assert stored_game is not None
    assert stored_game.moves == [
        MoveRecord(1, "f2f3", "e7e5"),
        MoveRecord(2, "g2g4", "d8h4"),
    ]


def test_load_game_with_illegal_move(service: ChessService, mock_repository: MockRepository) -> None:
    request = LoadGameRequest(
        white_player=PLAYERS["white"],
        black_player=PLAYERS["black"],
        moves=[MoveRecord(1, "e4", "e5"), MoveRecord(2, "Ke3", None)],
    )
    with pytest.raises(IllegalMoveError, match="move 2"):
        _ = service.load_game(request)
    assert mock_repository.list_game_ids() == []


# --- SERVICE - GET GAME ----
def test_get_existing_game_state(service: ChessService) -> None:
    """Retrieve a game from the repository from an ID generated during creation."""
    game_id = create_game(service, KINGS_ONLY_FEN)
    response = service.get_game_state(GetGameRequest(game_id=game_id))

    assert isinstance(response, GameResponse)
    assert response.game_id == game_id
    assert response.fen_state == KINGS_ONLY_FEN
    assert response.players == PLAYERS


def test_attempt_to_find_unknown_game(service: ChessService) -> None:
    """Ensure exception is raised when trying to look up a game with an unknown ID."""
    with pytest.raises(RepositoryError):
        _ = service.get_game_state(GetGameRequest(game_id=uuid4()))


# --- SERVICE - LEGAL MOVES ----
def test_getting_legal_moves(service: ChessService) -> None:
    """Given a proper LegalMovesRequest, does the service return the expected LegalMovesResponse?"""
    game_id = create_game(service, KINGS_ONLY_FEN)
    response = service.legal_moves(LegalMovesRequest(game_id=game_id))

    assert isinstance(response, LegalMovesResponse)
    assert response.game_id == game_id
    assert response.color == Color.WHITE
    assert set(response.legal_moves) == {"a1b1", "a1a2", "a1b2"}


def test_attempt_legal_moves_after_checkmate(service: ChessService) -> None:
    """Service must propagate error raised by Game upwards."""
    game_id = create_game(service, LADDER_MATE_FEN)
    response = move(service, game_id, Color.WHITE, "h7h8")
    assert response.status == Status.CHECKMATE

    # Game is over: Black cannot request any legal moves
    with pytest.raises(GameStateError):
        _ = service.legal_moves(LegalMovesRequest(game_id=game_id))


# --- SERVICE - MAKE MOVE ---
def test_make_legal_move(service: ChessService, mock_repository: MockRepository) -> None:
    """Attempt a legal move during your turn. Should result in a GameResponse."""
    game_id = create_game(service, KINGS_ONLY_FEN)
    request = MoveRequest(game_id=game_id, color=Color.WHITE, from_square="a1", to_square="a2")
    response = service.make_move(request)

    assert isinstance(response, GameResponse)
    assert response.game_id == game_id
    assert response.fen_state == "k7/8/8/8/8/8/K7/8 b - - 9 24"
    assert response.starting_state == KINGS_ONLY_FEN
    assert response.move_history == [MoveRecord(24, "a1a2", None)]
    assert response.color_to_move == Color.BLACK

    # Check persisted data
    stored_game = mock_repository.get_game(game_id)
    assert stored_game is not None
    assert stored_game.moves == [MoveRecord(24, "a1a2", None)]


def test_make_move_in_algebraic_notation(service: ChessService) -> None:
    game_id = create_game(service)
    move(service, game_id, Color.WHITE, "e4")
    move(service, game_id, Color.BLACK, "e5")
    response = move(service, game_id, Color.WHITE, "Nf3")

    assert response.move_history == [MoveRecord(1, "e2e4", "e7e5"), MoveRecord(2, "g1f3", None)]
    assert response.board["f3"] == "N"


def test_attempt_illegal_move(service: ChessService) -> None:
    """Service must propagate error raised by Game upwards."""
    game_id = create_game(service, KINGS_ONLY_FEN)
    with pytest.raises(GameError):
        request = MoveRequest(game_id=game_id, color=Color.WHITE, from_square="d1", to_square="h2")
        _ = service.make_move(request)


def test_attempt_move_before_your_turn(service: ChessService) -> None:
    game_id = create_game(service, KINGS_ONLY_FEN)
    with pytest.raises(NotYourTurnError):
        _ = move(service, game_id, Color.BLACK, "a8b8")


def test_promotion_from_squares(service: ChessService) -> None:
    game_id = create_game(service, "k7/4P3/8/8/8/8/8/4K3 w - - 0 1")
    with pytest.raises(PromotionError):
        request = MoveRequest(game_id=game_id, color=Color.WHITE, from_square="e7", to_square="e8")
        _ = service.make_move(request)

    request = MoveRequest(
        game_id=game_id,
        color=Color.WHITE,
        from_square="e7",
        to_square="e8",
        promote_to=PieceType.KNIGHT,
    )
    response = service.make_move(request)
    assert response.board["e8"] == "N"
    assert response.move_history == [MoveRecord(1, "e7e8n", None)]


# --- SERVICE - UNDO ---
def test_undo_across_requests(service: ChessService) -> None:
    """Every request rebuilds the game, undo still reaches back to the moves stored earlier"""
    game_id = create_game(service)
    move(service, game_id, Color.WHITE, "e4")
    move(service, game_id, Color.BLACK, "e5")

    response = service.undo(UndoRequest(game_id=game_id))
    assert response.move_history == [MoveRecord(1, "e2e4", None)]
    assert response.color_to_move == Color.BLACK

    response = service.undo(UndoRequest(game_id=game_id))
    assert response.move_history == []
    assert response.fen_state == "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


def test_undo_full_turn(service: ChessService) -> None:
    game_id = create_game(service)
    move(service, game_id, Color.WHITE, "e4")
    move(service, game_id, Color.BLACK, "e5")
    move(service, game_id, Color.WHITE, "Nf3")
    move(service, game_id, Color.BLACK, "Nc6")

    response = service.undo(UndoRequest(game_id=game_id, full_turn=True))
    assert response.move_history == [MoveRecord(1, "e2e4", "e7e5")]
    assert response.color_to_move == Color.WHITE


def test_undo_without_moves(service: ChessService) -> None:
    game_id = create_game(service)
    with pytest.raises(GameStateError):
        _ = service.undo(UndoRequest(game_id=game_id))


# --- SERVICE - OUT-OF-BAND EVENTS ---
def test_resign(service: ChessService, mock_repository: MockRepository) -> None:
    game_id = create_game(service)
    move(service, game_id, Color.WHITE, "e4")
    response = service.resign(ResignRequest(game_id=game_id, color=Color.BLACK))

    assert response.status == Status.RESIGNATION
    assert response.result == "1-0"

    # the ending survives a round trip through the repository
    stored_game = mock_repository.get_game(game_id)
    assert stored_game is not None
    assert stored_game.loser == "black"
    assert service.get_game_state(GetGameRequest(game_id=game_id)).status == Status.RESIGNATION

    with pytest.raises(GameStateError):
        _ = move(service, game_id, Color.BLACK, "e5")
    with pytest.raises(GameStateError):
        _ = service.undo(UndoRequest(game_id=game_id))


def test_draw_by_agreement(service: ChessService) -> None:
    game_id = create_game(service)
    response = service.offer_draw(DrawOfferRequest(game_id=game_id, color=Color.WHITE))
    assert response.draw_offer == Color.WHITE

    request = DrawAnswerRequest(game_id=game_id, color=Color.BLACK, answer=DrawAnswer.ACCEPT)
    response = service.answer_draw(request)
    assert response.status == Status.DRAW_BY_AGREEMENT
    assert response.result == "1/2-1/2"
    assert response.draw_offer is None


def test_declined_draw(service: ChessService) -> None:
    game_id = create_game(service)
    service.offer_draw(DrawOfferRequest(game_id=game_id, color=Color.WHITE))

    with pytest.raises(GameStateError):
        request = DrawAnswerRequest(game_id=game_id, color=Color.WHITE, answer=DrawAnswer.ACCEPT)
        _ = service.answer_draw(request)

    request = DrawAnswerRequest(game_id=game_id, color=Color.BLACK, answer=DrawAnswer.DECLINE)
    response = service.answer_draw(request)
    assert response.status == Status.ONGOING
    assert response.draw_offer is None


def test_check_time(
    service: ChessService, mock_repository: MockRepository, mock_timer: Mock
) -> None:
    game_id = create_game(service)
    timer = mock_timer

    response = service.check_time(GetGameRequest(game_id=game_id), timer)
    assert response.status == Status.ONGOING

    timer.is_flag_fallen.return_value = True
    response = service.check_time(GetGameRequest(game_id=game_id), timer)
    assert response.status == Status.TIMED_OUT
    assert response.result == "0-1"
    stored_game = mock_repository.get_game(game_id)
    assert stored_game is not None
    assert stored_game.status == Status.TIMED_OUT


# --- SERVICE - SUGGESTIONS ---
def test_suggest_move(mock_repository: MockRepository, mock_engine: Mock) -> None:
    engine = mock_engine
    engine.best_move.return_value = "Nf3"
    service = ChessService(mock_repository, engine=engine, settings=Settings(suggestion_depth=7))
    game_id = create_game(service)

    response = service.suggest_move(SuggestMoveRequest(game_id=game_id))
    assert isinstance(response, SuggestMoveResponse)
    assert response.move == "g1f3"
    assert response.color == Color.WHITE
    # the configured depth is used when the request does not name one
    assert engine.best_move.call_args.args[2] == 7

    service.suggest_move(SuggestMoveRequest(game_id=game_id, depth=3))
    assert engine.best_move.call_args.args[2] == 3

    # suggestions are never played
    assert service.get_game_state(GetGameRequest(game_id=game_id)).move_history == []


def test_suggest_move_without_engine(service: ChessService) -> None:
    game_id = create_game(service)
    with pytest.raises(EngineError):
        _ = service.suggest_move(SuggestMoveRequest(game_id=game_id))


# --- SERVICE - ENGINE PLAYERS ---
def test_play_engine_move(mock_repository: MockRepository, mock_engine: Mock) -> None:
    service = ChessService(mock_repository, engine=mock_engine, settings=Settings(suggestion_depth=7))
    request = CreateGameRequest(
        white_player=PLAYERS["white"],
        black_player="Stockfish",
        engine_sides=[Color.BLACK],
    )
    response = service.create_new_game(request)
    game_id = response.game_id
    assert response.engine_sides == [Color.BLACK]
    assert response.last_move_san is None

    assert move(service, game_id, Color.WHITE, "e4").last_move_san == "e4"

    # the engine side does not take moves from a person
    with pytest.raises(NotYourTurnError):
        _ = move(service, game_id, Color.BLACK, "e5")

    mock_engine.best_move.return_value = "e7e5"
    response = service.play_engine_move(EngineMoveRequest(game_id=game_id))
    assert response.move_history == [MoveRecord(1, "e2e4", "e7e5")]
    assert response.last_move_san == "e5"
    assert response.color_to_move == Color.WHITE
    assert mock_engine.best_move.call_args.args[2] == 7

    stored = mock_repository.get_game(game_id)
    assert stored is not None
    assert stored.engine_sides == ["black"]

    # white is not played by the engine
    with pytest.raises(GameStateError):
        _ = service.play_engine_move(EngineMoveRequest(game_id=game_id, depth=2))


def test_play_engine_move_without_engine(service: ChessService) -> None:
    request = CreateGameRequest(white_player="Stockfish", black_player="Bob", engine_sides=[Color.WHITE])
    game_id = service.create_new_game(request).game_id
    with pytest.raises(EngineError):
        _ = service.play_engine_move(EngineMoveRequest(game_id=game_id))


# --- SERVICE - LIST / DELETE ---
def test_list_and_delete_games(service: ChessService) -> None:
    first = create_game(service)
    second = create_game(service, KINGS_ONLY_FEN)
    assert set(service.list_games()) == {first, second}

    service.delete_game(DeleteGameRequest(game_id=first))
    assert service.list_games() == [second]

    with pytest.raises(RepositoryError):
        service.delete_game(DeleteGameRequest(game_id=first))
