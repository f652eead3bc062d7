"""
The Game class will be the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the business logic required to play a turn -->
text -> resolved Move -> validated Move -> board update -> history -> turn switch -> re-evaluation of the game state.

Out-of-band events (resignation, draw by agreement, flag fall) end the game as well, independent of the board.
"""

import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Self

from src.chess.board import Board
from src.chess.castling import castling_rights
from src.chess.check import has_any_legal_move, is_king_in_check, legal_moves
from src.chess.en_passant import en_passant_square_after, is_en_passant_valid
from src.chess.fen import STARTING_FEN, FENState
from src.chess.interfaces import MoveSuggestionEngine, Timer
from src.chess.moves import Move
from src.chess.notation import resolve_move, to_san
from src.chess.pieces import AVAILABLE_COLOR_NAMES, Color, PieceType
from src.chess.player import Player
from src.chess.promotion import is_promotion_square, require_promotion_target
from src.chess.square import Square
from src.chess.undo import Snapshot, UndoManager
from src.chess.validator import apply_move as apply_move_to_board
from src.chess.validator import is_valid_move
from src.core.exceptions import (
    EngineError,
    GameError,
    GameStateError,
    IllegalMoveError,
    InputError,
    NoPieceError,
    NotYourTurnError,
)
from src.core.models import GameModel, MoveRecord

logger = logging.getLogger(__name__)


class GameState(Enum):
    ONGOING = auto()
    CHECK = auto()
    CHECKMATE = auto()
    STALEMATE = auto()
    DRAW_BY_AGREEMENT = auto()
    RESIGNATION = auto()
    TIMED_OUT = auto()

    @property
    def is_terminal(self) -> bool:
        return self not in (GameState.ONGOING, GameState.CHECK)


# Endings that do not follow from the board. Undoing a move cannot take them back.
OUT_OF_BAND_ENDINGS = (
    GameState.RESIGNATION,
    GameState.DRAW_BY_AGREEMENT,
    GameState.TIMED_OUT,
)


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board
    players: dict[Color, Player]
    history: list[Move] = field(default_factory=list)
    # the history in standard algebraic notation, check marks included
    san_history: list[str] = field(default_factory=list)
    color_to_move: Color = Color.WHITE
    state: GameState = GameState.ONGOING
    en_passant_square: Optional[Square] = None
    draw_offer: Optional[Color] = None
    # color that resigned / ran out of time
    loser: Optional[Color] = None
    undo_manager: UndoManager = field(default_factory=UndoManager)
    starting_fen: str = STARTING_FEN
    tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def new_game(
        cls,
        white: str,
        black: str,
        starting_fen: Optional[str] = None,
        undo_capacity: int = 0,
        engine_sides: Collection[Color] = (),
    ) -> Self:
        """Two players, standard starting position unless a FEN is given. The colors in `engine_sides` are played by an engine."""
        players = {
            Color.WHITE: Player(white, is_engine=Color.WHITE in engine_sides),
            Color.BLACK: Player(black, is_engine=Color.BLACK in engine_sides),
        }
        fen_state = (
            FENState.from_fen(starting_fen)
            if starting_fen
            else FENState.starting_position()
        )
        game = cls(
            board=fen_state.to_board(),
            players=players,
            color_to_move=fen_state.color_to_move,
            en_passant_square=fen_state.en_passant_square,
            undo_manager=UndoManager(undo_capacity),
            starting_fen=fen_state.to_fen(),
            tags={"White": players[Color.WHITE].name, "Black": players[Color.BLACK].name},
        )
        # a custom position may already be check (or over)
        game._update_game_state()
        return game

    @classmethod
    def from_model(cls, model: GameModel, undo_capacity: int = 0) -> Self:
        """
        Define how to construct a Game from the information the Service layer actually has

        The position is rebuilt by replaying the recorded moves. Endings that do not follow from the board
        (resignation, draw, flag fall) are restored afterwards.
        """
        status_name = model.status.replace(" ", "_").upper()
        if status_name not in GameState.__members__:
            raise GameStateError(
                f"Invalid status code: {model.status!r}. \nPick one from {','.join([state.name.lower() for state in GameState])}"
            )

        game = cls.new_game(
            white=model.players["white"],
            black=model.players["black"],
            starting_fen=model.starting_fen,
            undo_capacity=undo_capacity,
            engine_sides=[_parse_color(name) for name in model.engine_sides],
        )
        game.tags.update(model.tags)
        game.replay(model.moves)

        stored_state = GameState[status_name]
        loser = _parse_color(model.loser) if model.loser else None
        if stored_state in OUT_OF_BAND_ENDINGS and not game.state.is_terminal:
            game._end(stored_state, loser)
        elif model.draw_offer and not game.state.is_terminal:
            game.draw_offer = _parse_color(model.draw_offer)
        return game

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""
        return GameModel(
            players={
                color.name.lower(): player.name for color, player in self.players.items()
            },
            engine_sides=[
                color.name.lower() for color, player in self.players.items() if player.is_engine
            ],
            starting_fen=self.starting_fen,
            moves=self.to_move_records(),
            status=self.state.name.lower().replace("_", " "),
            tags={**self.tags, "Result": self.result},
            loser=self.loser.name.lower() if self.loser else None,
            draw_offer=self.draw_offer.name.lower() if self.draw_offer else None,
        )

    # --- PLAYING ---
    def make_move(self, text: str) -> Move:
        """
        Attempt to make a move written in coordinate or algebraic notation (by the player whose turn it is).
        Returns the Move that got applied.
        """
        self._assert_in_progress()
        move = resolve_move(text, self.board, self.color_to_move, self.en_passant_square)
        self.apply_move(move)
        return move

    def apply_move(self, move: Move) -> None:
        """
        Apply an already built Move
        -----

        1. store a snapshot of the full game (so it can be undone)
        2. check the move: your turn, promotion target, en passant square, legality
        3. update the board (NOTE: castling moves the king and the rook, en passant removes the pawn beside the destination)
        4. update the history, en passant square, draw offer and turn
        5. update the game state (check / checkmate / stalemate), then record the SAN text with its check mark

        Anything going wrong before the board is updated rolls back to the snapshot.
        """
        self._assert_in_progress()

        self.undo_manager.push(self._snapshot())
        try:
            self._assert_acceptable(move)
            san = to_san(self.board, move)
            apply_move_to_board(self.board, move)
        except GameError:
            self._restore(self._pop_snapshot())
            raise

        self.history.append(move)
        # NOTE: compute the en passant square from the move that was just made, BEFORE switching turns.
        self.en_passant_square = en_passant_square_after(move)
        self.draw_offer = None
        self.color_to_move = self.color_to_move.opposite
        logger.debug("Applied %s (%s)", move.to_uci(), move.color.name.lower())

        self._update_game_state()
        self.san_history.append(san + self._check_mark())

    def legal_moves(self) -> list[str]:
        """
        Service will request the set of legal moves (of the player whose turn it is).
        These can be used to display to the user.
        """
        self._assert_in_progress()
        return [
            move.to_uci()
            for move in legal_moves(self.board, self.color_to_move, self.en_passant_square)
        ]

    # --- UNDO ---
    def undo(self) -> None:
        """Take back the last move (a single ply)"""
        self._assert_undoable(plies=1)
        self._restore(self._pop_snapshot())
        logger.debug("Undid one ply, %s to move", self.color_to_move.name.lower())

    def undo_full_turn(self) -> None:
        """Take back the last move of both sides (e.g. your own move and the bot's answer)"""
        self._assert_undoable(plies=2)
        self._pop_snapshot()
        self._restore(self._pop_snapshot())
        logger.debug("Undid a full turn, %s to move", self.color_to_move.name.lower())

    # --- OUT-OF-BAND EVENTS ---
    def resign(self, color: Color) -> None:
        self._assert_in_progress()
        self._end(GameState.RESIGNATION, loser=color)

    def offer_draw(self, color: Color) -> None:
        """The offer stands until the opponent answers it or until the next move is made."""
        self._assert_in_progress()
        if self.draw_offer is not None:
            raise GameStateError(
                f"A draw offer by {self.draw_offer.name.lower()} is already pending."
            )
        self.draw_offer = color

    def accept_draw(self, color: Color) -> None:
        self._assert_in_progress()
        self._assert_draw_offered_to(color)
        self.draw_offer = None
        self._end(GameState.DRAW_BY_AGREEMENT)

    def decline_draw(self, color: Color) -> None:
        self._assert_in_progress()
        self._assert_draw_offered_to(color)
        self.draw_offer = None

    def check_time(self, timer: Timer) -> bool:
        """Ask the clock if the player to move ran out of time. Returns True if the game ended because of it."""
        if self.state.is_terminal:
            return False
        if not timer.is_flag_fallen(self.color_to_move):
            return False
        self._end(GameState.TIMED_OUT, loser=self.color_to_move)
        return True

    # --- SUGGESTIONS ---
    def request_suggestion(self, engine: MoveSuggestionEngine, depth: int) -> Move:
        """
        Ask the engine for a move for the player to move.

        The answer goes through the same resolver / validation as user input. It is returned, NOT applied.
        """
        self._assert_in_progress()
        try:
            suggestion = engine.best_move(self.board.copy(), self.color_to_move, depth)
        except Exception as e:
            raise EngineError(f"Move-suggestion engine failed: {e}") from e

        try:
            return resolve_move(
                suggestion, self.board, self.color_to_move, self.en_passant_square
            )
        except (InputError, IllegalMoveError) as e:
            logger.warning("Engine suggested an unusable move %r: %s", suggestion, e)
            raise EngineError(f"Engine suggested an unusable move {suggestion!r}: {e}") from e

    def play_engine_move(self, engine: MoveSuggestionEngine, depth: int) -> Move:
        """Let the engine make the move for its side. Only allowed when the player to move is an engine."""
        self._assert_in_progress()
        player = self.players[self.color_to_move]
        if not player.is_engine:
            raise GameStateError(
                f"{player.name} ({self.color_to_move.name.lower()}) is not played by an engine."
            )
        move = self.request_suggestion(engine, depth)
        self.apply_move(move)
        logger.info("Engine played %s for %s", self.last_move_san, self.color_to_move.opposite.name.lower())
        return move

    # --- RESULTS ---
    @property
    def winner(self) -> Optional[Color]:
        """Checkmate: the player who has to move just got mated. Resignation / flag fall: the opponent of the loser."""
        if self.state == GameState.CHECKMATE:
            return self.color_to_move.opposite
        if self.state in (GameState.RESIGNATION, GameState.TIMED_OUT):
            if self.loser is None:
                raise GameStateError(f"Game ended by {self.state.name.lower()} without a losing side.")
            return self.loser.opposite
        return None

    @property
    def result(self) -> str:
        """Result token as written on a score sheet"""
        if self.winner == Color.WHITE:
            return "1-0"
        if self.winner == Color.BLACK:
            return "0-1"
        if self.state in (GameState.STALEMATE, GameState.DRAW_BY_AGREEMENT):
            return "1/2-1/2"
        return "*"

    @property
    def last_move_san(self) -> Optional[str]:
        return self.san_history[-1] if self.san_history else None

    # --- PERSISTENCE / ENGINE BOUNDARY ---
    def to_move_records(self) -> list[MoveRecord]:
        """The history as numbered (white, black) pairs of coordinate text"""
        start = FENState.from_fen(self.starting_fen)
        records: list[MoveRecord] = []
        move_number = start.num_turns
        for move in self.history:
            if move.color == Color.WHITE or not records or records[-1].black is not None:
                if records:
                    move_number += 1
                records.append(MoveRecord(move_number=move_number, white=None))
            if move.color == Color.WHITE:
                records[-1].white = move.to_uci()
            else:
                records[-1].black = move.to_uci()
        return records

    def replay(self, records: Iterable[MoveRecord]) -> None:
        """Play the recorded moves in order. An error names the move number and color of the move that failed."""
        for record in records:
            for color, text in ((Color.WHITE, record.white), (Color.BLACK, record.black)):
                if text is None:
                    continue
                try:
                    self.make_move(text)
                except GameError as e:
                    raise type(e)(
                        f"Cannot replay move {record.move_number} ({color.name.lower()}) {text!r}: {e}"
                    ) from e

    def to_fen(self) -> str:
        state = FENState(
            position=self.board.to_fen(),
            color_to_move=self.color_to_move,
            castling_rights=castling_rights(self.board),
            en_passant_square=self.en_passant_square,
            half_move_clock=self.half_move_clock,
            num_turns=self.full_move_number,
        )
        return state.to_fen()

    @property
    def half_move_clock(self) -> int:
        """Moves since the last pawn move or capture"""
        clock = FENState.from_fen(self.starting_fen).half_move_clock
        for move in self.history:
            is_reset = move.piece_type == PieceType.PAWN or move.is_capture
            clock = 0 if is_reset else clock + 1
        return clock

    @property
    def full_move_number(self) -> int:
        """Starts at 1 and increments after every move black makes"""
        start = FENState.from_fen(self.starting_fen).num_turns
        return start + sum(1 for move in self.history if move.color == Color.BLACK)

    # -- PRIVATE HELPERS ---
    def _assert_in_progress(self) -> None:
        if self.state.is_terminal:
            raise GameStateError(f"Game is over. status: {self.state.name.lower()}")

    def _assert_acceptable(self, move: Move) -> None:
        """Everything apart from the board geometry that decides if this move can be made now"""
        piece = self.board.piece(move.from_square)
        if piece is None:
            raise NoPieceError(f"No piece at {move.from_square.to_algebraic()}")
        if piece.color != self.color_to_move or move.color != self.color_to_move:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {self.color_to_move.name.lower()} to make a move first."
            )

        # the board decides if this is a promotion, whatever the caller flagged
        reaches_last_rank = piece.type == PieceType.PAWN and is_promotion_square(move.to_square, piece.color)
        require_promotion_target(reaches_last_rank, move.promote_to)

        if move.is_en_passant and not is_en_passant_valid(
            self.board, move.from_square, move.to_square, self.en_passant_square
        ):
            raise IllegalMoveError(f"En passant not allowed: {move.to_uci()}")

        if not is_valid_move(self.board, move, self.color_to_move):
            raise IllegalMoveError(f"Move not allowed: {move.to_uci()}")

    def _assert_undoable(self, plies: int) -> None:
        if self.state in OUT_OF_BAND_ENDINGS:
            raise GameStateError(
                f"Game ended by {self.state.name.lower().replace('_', ' ')}. Moves can no longer be taken back."
            )
        if not self.undo_manager.can_undo(plies):
            raise GameStateError("Nothing to undo.")

    def _assert_draw_offered_to(self, color: Color) -> None:
        """Only the opponent of the player who offered can answer the offer"""
        if self.draw_offer is None:
            raise GameStateError("No draw offer is pending.")
        if self.draw_offer == color:
            raise GameStateError("You cannot answer your own draw offer.")

    def _update_game_state(self) -> None:
        """
        Re-evaluate the position for the player who has to move now.
        Checkmate beats stalemate beats check beats ongoing. A game that is over stays over.
        """
        if self.state.is_terminal:
            return

        in_check = is_king_in_check(self.board, self.color_to_move)
        can_move = has_any_legal_move(self.board, self.color_to_move, self.en_passant_square)
        if not can_move:
            self._end(GameState.CHECKMATE if in_check else GameState.STALEMATE)
        else:
            self.state = GameState.CHECK if in_check else GameState.ONGOING

    def _check_mark(self) -> str:
        if self.state == GameState.CHECKMATE:
            return "#"
        return "+" if self.state == GameState.CHECK else ""

    def _pop_snapshot(self) -> Snapshot:
        snapshot = self.undo_manager.pop()
        if snapshot is None:
            raise GameStateError("Nothing to undo.")
        return snapshot

    def _end(self, state: GameState, loser: Optional[Color] = None) -> None:
        self.state = state
        self.loser = loser
        logger.info("Game over: %s (%s)", state.name.lower(), self.result)

    def _snapshot(self) -> Snapshot:
        return Snapshot(
            board=self.board.copy(),
            state=self.state,
            history=tuple(self.history),
            san_history=tuple(self.san_history),
            color_to_move=self.color_to_move,
            en_passant_square=self.en_passant_square,
            draw_offer=self.draw_offer,
        )

    def _restore(self, snapshot: Snapshot) -> None:
        """Replace the live state wholesale. The board is updated in place, so references to it stay valid."""
        self.board.restore(snapshot.board)
        self.state = snapshot.state
        self.history = list(snapshot.history)
        self.san_history = list(snapshot.san_history)
        self.color_to_move = snapshot.color_to_move
        self.en_passant_square = snapshot.en_passant_square
        self.draw_offer = snapshot.draw_offer
        self.loser = None


def _parse_color(name: str) -> Color:
    if name.upper() not in AVAILABLE_COLOR_NAMES:
        raise GameStateError(
            f"Unknown color {name!r}. Pick one from {','.join([c.lower() for c in AVAILABLE_COLOR_NAMES])}."
        )
    return Color[name.upper()]
