"""
Full legality of a single move, and the one place where a Move gets applied to a Board.

A move is legal if
(a) a piece of the mover's color stands on the starting square,
(b) the destination is one of that piece's pseudo-legal destinations, or the move qualifies as en passant,
(c) its capture, castling, en passant and promotion flags agree with the board,
(d) after making the move on a throwaway copy of the board, the mover's king is not attacked.

The real board is never touched while validating.
"""

from typing import Optional

from src.chess.attacks import is_king_attacked
from src.chess.board import Board
from src.chess.castling import apply_castling, direction_of_king_move
from src.chess.en_passant import apply_en_passant, captured_pawn_square
from src.chess.moves import Move, create_move, pawn_direction, pseudo_legal_destinations
from src.chess.pieces import Color, Piece, PieceType
from src.chess.promotion import promote_pawn
from src.core.exceptions import IllegalMoveError


def is_valid_move(board: Board, move: Move, mover_color: Color) -> bool:
    piece = board.piece(move.from_square)
    if piece is None or piece.color != mover_color:
        return False

    # piece type, capture, castling and promotion flags must agree with the board
    if not matches_board(board, move):
        return False

    if move.to_square in pseudo_legal_destinations(board, move.from_square):
        if move.is_en_passant:
            return False
    elif not qualifies_as_en_passant(board, move):
        return False

    return not would_leave_king_in_check(board, move, mover_color)


def matches_board(board: Board, move: Move) -> bool:
    """
    Is the move exactly the one the board describes for its two squares?
    A flagged en passant is rebuilt with its own destination as the en passant square, qualifies_as_en_passant checks the rest.
    """
    en_passant_square = move.to_square if move.is_en_passant else None
    expected = create_move(board, move.from_square, move.to_square, move.promote_to, en_passant_square)
    if move.promote_to is not None and not expected.is_promotion:
        return False
    return move == expected


def qualifies_as_en_passant(board: Board, move: Move) -> bool:
    """
    En passant lands on an empty square, so it is never in the pseudo-legal set of a pawn.
    Accept it when: the move is flagged en passant, it is a single diagonal step forward onto an empty square,
    and the declared captured piece is an enemy pawn that actually stands beside the capturing pawn.
    """
    if not move.is_en_passant or move.piece_type != PieceType.PAWN:
        return False
    if move.captured_type != PieceType.PAWN:
        return False

    is_forward_diagonal_step = (
        abs(move.to_square.file - move.from_square.file) == 1
        and move.to_square.rank - move.from_square.rank == pawn_direction(move.color)
    )
    if not is_forward_diagonal_step or not board.is_empty(move.to_square):
        return False

    victim = board.piece(captured_pawn_square(move.from_square, move.to_square))
    return (
        victim is not None
        and victim.type == PieceType.PAWN
        and victim.color != move.color
    )


def would_leave_king_in_check(board: Board, move: Move, mover_color: Color) -> bool:
    """
    Return True if the move puts (or leaves) you in check

    plan:
    1. Copy the board
    2. make the candidate move
    3. determine if king is in check on the new board
    """
    simulated_board = board.copy()
    apply_move(simulated_board, move)
    return is_king_attacked(simulated_board, mover_color)


def apply_move(board: Board, move: Move) -> Optional[Piece]:
    """
    Call for the proper updates of the Board's position. Returns the captured piece (if any).

    * castling moves both the king and the rook
    * en passant removes the pawn next to the destination
    * promotion replaces the pawn on the destination (only when a target is known)
    """
    captured: Optional[Piece] = None
    if move.is_castling:
        direction = direction_of_king_move(move.from_square, move.to_square, move.color)
        if direction is None:
            raise IllegalMoveError(f"{move.to_uci()} is flagged castling but is not a castling move")
        apply_castling(board, direction)
    elif move.is_en_passant:
        captured = apply_en_passant(board, move.from_square, move.to_square)
    else:
        captured = board.move_piece(move.from_square, move.to_square)

    if move.is_promotion and move.promote_to is not None:
        promote_pawn(board, move.to_square, move.promote_to)
    return captured
