"""
Check, checkmate and stalemate detection.

Checkmate: in check and no legal move. Stalemate: not in check and no legal move.
Both require a full scan of the board for a legal move; fine at human speed, this is not a search engine.
"""

from typing import Optional

from src.chess.attacks import is_king_attacked
from src.chess.board import Board
from src.chess.en_passant import en_passant_origins
from src.chess.moves import Move, create_move, pseudo_legal_destinations
from src.chess.pieces import Color
from src.chess.promotion import PROMOTION_OPTIONS
from src.chess.square import Square
from src.chess.validator import is_valid_move


def is_king_in_check(board: Board, color: Color) -> bool:
    return is_king_attacked(board, color)


def _candidate_moves(
    board: Board, color: Color, en_passant_square: Optional[Square]
) -> list[Move]:
    """Pseudo-legal moves in board-scan order, en passant captures last"""
    candidate_moves = [
        create_move(board, from_square, to_square)
        for from_square in board.locate_color(color)
        for to_square in pseudo_legal_destinations(board, from_square)
    ]
    if en_passant_square is not None:
        candidate_moves.extend(
            create_move(board, from_square, en_passant_square, en_passant_square=en_passant_square)
            for from_square in en_passant_origins(board, en_passant_square, color)
        )
    return candidate_moves


def has_any_legal_move(
    board: Board, color: Color, en_passant_square: Optional[Square] = None
) -> bool:
    """Stops at the first move that passes validation"""
    return any(
        is_valid_move(board, move, color)
        for move in _candidate_moves(board, color, en_passant_square)
    )


def legal_moves(
    board: Board, color: Color, en_passant_square: Optional[Square] = None
) -> list[Move]:
    """
    Every legal move for the player with the 'color' pieces.

    Pawn push to promotion square? --> expand into one move for every choice of piece type to promote into.
    """
    moves: list[Move] = []
    for move in _candidate_moves(board, color, en_passant_square):
        if not is_valid_move(board, move, color):
            continue
        if move.is_promotion:
            moves.extend(
                create_move(board, move.from_square, move.to_square, promote_to=piece_type)
                for piece_type in PROMOTION_OPTIONS
            )
        else:
            moves.append(move)
    return moves


def is_checkmate(
    board: Board, color: Color, en_passant_square: Optional[Square] = None
) -> bool:
    return is_king_in_check(board, color) and not has_any_legal_move(
        board, color, en_passant_square
    )


def is_stalemate(
    board: Board, color: Color, en_passant_square: Optional[Square] = None
) -> bool:
    return not is_king_in_check(board, color) and not has_any_legal_move(
        board, color, en_passant_square
    )
