"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
from typing import Optional
from uuid import UUID

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
from src.chess.game import Game
from src.chess.interfaces import MoveSuggestionEngine, Timer
from src.chess.pieces import Color as ChessColor
from src.core.config import Settings, get_settings
from src.core.exceptions import EngineError, NotYourTurnError, RepositoryError
from src.core.models import GameModel
from src.core.shared_types import Color, DrawAnswer, Status
from src.db.repository import GameRepository

logger = logging.getLogger(__name__)


class ChessService:
    """
    Orchestration of layers for chess game.

    Every call rebuilds the Game from the stored record (by replaying its moves), performs the request on it
    and stores the result again. Errors raised by the domain layer are passed on untouched.
    """

    def __init__(
        self,
        repository: GameRepository,
        engine: Optional[MoveSuggestionEngine] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.repo = repository
        self.engine = engine
        self.settings = settings or get_settings()

    # -- API routes logic ---
    def create_new_game(self, request: CreateGameRequest) -> GameResponse:
        """Create a new game between two players."""
        new_game = Game.new_game(
            white=request.white_player,
            black=request.black_player,
            starting_fen=request.starting_fen,
            undo_capacity=self.settings.undo_capacity,
            engine_sides=[_to_chess_color(color) for color in request.engine_sides],
        )
        new_game.tags.update(request.tags)

        _, game_id = self.repo.create_game(new_game.to_model())
        logger.info("Created game %s", game_id)
        return self._create_game_response(game_id, new_game)

    def load_game(self, request: LoadGameRequest) -> GameResponse:
        """Store a game given as a score sheet. Every move is replayed (and so validated) before anything is stored."""
        game = Game.new_game(
            white=request.white_player,
            black=request.black_player,
            starting_fen=request.starting_fen,
            undo_capacity=self.settings.undo_capacity,
            engine_sides=[_to_chess_color(color) for color in request.engine_sides],
        )
        game.tags.update(request.tags)
        game.replay(request.moves)

        _, game_id = self.repo.create_game(game.to_model())
        logger.info("Loaded game %s with %d moves", game_id, len(game.history))
        return self._create_game_response(game_id, game)

    def get_game_state(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by frontend to check when it is the player's turn for instance.
        """
        game = self._load(request.game_id)
        return self._create_game_response(request.game_id, game)

    def legal_moves(self, request: LegalMovesRequest) -> LegalMovesResponse:
        """Retrieve set of legal moves for the player to move."""
        game = self._load(request.game_id)
        return LegalMovesResponse(
            game_id=request.game_id,
            color=_to_api_color(game.color_to_move),
            legal_moves=game.legal_moves(),
        )

    def make_move(self, request: MoveRequest) -> GameResponse:
        """Make a move attempt."""
        game = self._load(request.game_id)

        # the requesting player can only move when it is their turn
        if _to_chess_color(request.color) != game.color_to_move:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {game.color_to_move.name.lower()} to make a move first."
            )
        if game.players[game.color_to_move].is_engine:
            raise NotYourTurnError(
                f"{game.color_to_move.name.lower()} is played by the engine. Request an engine move instead."
            )

        move = game.make_move(request.to_move_text())
        logger.debug("Game %s: %s played %s", request.game_id, request.color, move)
        return self._save(request.game_id, game)

    def undo(self, request: UndoRequest) -> GameResponse:
        """Take back the last move, or the last move of both players."""
        game = self._load(request.game_id)
        if request.full_turn:
            game.undo_full_turn()
        else:
            game.undo()
        return self._save(request.game_id, game)

    def resign(self, request: ResignRequest) -> GameResponse:
        game = self._load(request.game_id)
        game.resign(_to_chess_color(request.color))
        return self._save(request.game_id, game)

    def offer_draw(self, request: DrawOfferRequest) -> GameResponse:
        game = self._load(request.game_id)
        game.offer_draw(_to_chess_color(request.color))
        return self._save(request.game_id, game)

    def answer_draw(self, request: DrawAnswerRequest) -> GameResponse:
        game = self._load(request.game_id)
        color = _to_chess_color(request.color)
        if request.answer == DrawAnswer.ACCEPT:
            game.accept_draw(color)
        else:
            game.decline_draw(color)
        return self._save(request.game_id, game)

    def check_time(self, request: GetGameRequest, timer: Timer) -> GameResponse:
        """Ask the clock if the player to move has run out of time (ends the game if so)."""
        game = self._load(request.game_id)
        if game.check_time(timer):
            return self._save(request.game_id, game)
        return self._create_game_response(request.game_id, game)

    def suggest_move(self, request: SuggestMoveRequest) -> SuggestMoveResponse:
        """Ask the engine for a move for the player to move. The move is NOT made."""
        if self.engine is None:
            raise EngineError("No move-suggestion engine configured.")

        game = self._load(request.game_id)
        depth = request.depth or self.settings.suggestion_depth
        move = game.request_suggestion(self.engine, depth)
        return SuggestMoveResponse(
            game_id=request.game_id,
            color=_to_api_color(game.color_to_move),
            move=move.to_uci(),
        )

    def play_engine_move(self, request: EngineMoveRequest) -> GameResponse:
        """Let the engine make the move of the side it plays, and store the result."""
        if self.engine is None:
            raise EngineError("No move-suggestion engine configured.")

        game = self._load(request.game_id)
        depth = request.depth or self.settings.suggestion_depth
        move = game.play_engine_move(self.engine, depth)
        logger.debug("Game %s: engine played %s", request.game_id, move)
        return self._save(request.game_id, game)

    def list_games(self) -> list[UUID]:
        """Show all recorded games."""
        return self.repo.list_game_ids()

    def delete_game(self, request: DeleteGameRequest) -> None:
        """Handle a request to delete a Game record."""
        deleted = self.repo.delete_game(request.game_id)
        if deleted is None:
            raise RepositoryError(f"Game with game_id={request.game_id} not found.")
        logger.info("Deleted game %s", request.game_id)

    # -- Internal helpers --
    def _load(self, game_id: UUID) -> Game:
        """Rebuild the Game from the stored record"""
        return Game.from_model(
            self._fetch_game(game_id), undo_capacity=self.settings.undo_capacity
        )

    def _save(self, game_id: UUID, game: Game) -> GameResponse:
        updated = self.repo.update_game(game_id, game.to_model())
        if updated is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return self._create_game_response(game_id, game)

    def _create_game_response(self, game_id: UUID, game: Game) -> GameResponse:
        """Convert the state of the Game to a GameResponse (for game with given ID.)"""
        model: GameModel = game.to_model()
        return GameResponse(
            game_id=game_id,
            players=model.players,
            status=Status(model.status),
            color_to_move=_to_api_color(game.color_to_move),
            fen_state=game.to_fen(),
            starting_state=model.starting_fen,
            board=game.board.contents(),
            move_history=model.moves,
            result=game.result,
            draw_offer=_to_api_color(game.draw_offer) if game.draw_offer else None,
            tags=model.tags,
            engine_sides=[
                _to_api_color(color) for color, player in game.players.items() if player.is_engine
            ],
            last_move_san=game.last_move_san,
        )

    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return game_model


def _to_chess_color(color: Color) -> ChessColor:
    return ChessColor[color.name]


def _to_api_color(color: ChessColor) -> Color:
    return Color[color.name]
