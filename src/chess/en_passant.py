"""
Helpers for the en passant rule.

The en passant square only lives for a single ply: it is the square a pawn just skipped over with its two-square advance,
and it must be recomputed after every move (and cleared otherwise). The Game owns that value.
"""

from typing import Optional, Protocol

from src.chess.moves import Move, pawn_direction
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square
from src.core.exceptions import IllegalMoveError


class Board(Protocol):
    def piece(self, square: Square) -> Optional[Piece]: ...
    def is_empty(self, square: Square) -> bool: ...
    def remove_piece(self, square: Square) -> Optional[Piece]: ...
    def move_piece(self, from_square: Square, to_square: Square) -> Optional[Piece]: ...


def en_passant_square_after(move: Move) -> Optional[Square]:
    """The possible en passant square for the next ply. Only a two-square pawn advance creates one."""
    ranks_moved = abs(move.to_square.rank - move.from_square.rank)
    if move.piece_type != PieceType.PAWN or ranks_moved != 2:
        return None
    return Square(
        file=move.from_square.file,
        rank=(move.from_square.rank + move.to_square.rank) // 2,
    )


def captured_pawn_square(from_square: Square, to_square: Square) -> Square:
    """
    The pawn taken en passant does not stand on the destination.
    It stands in the same file as the destination, on the rank the capturing pawn started from.
    """
    return Square(file=to_square.file, rank=from_square.rank)


def is_en_passant_valid(
    board: Board,
    from_square: Square,
    to_square: Square,
    en_passant_square: Optional[Square],
) -> bool:
    """
    * an en passant square exists (opponent just advanced a pawn by two) and it is the destination
    * a pawn moves one step diagonally forward onto it (the square is empty)
    * an opponent pawn stands next to the capturing pawn, in the destination's file
    """
    if en_passant_square is None or to_square != en_passant_square:
        return False

    pawn = board.piece(from_square)
    if pawn is None or pawn.type != PieceType.PAWN:
        return False

    if abs(to_square.file - from_square.file) != 1:
        return False
    if to_square.rank - from_square.rank != pawn_direction(pawn.color):
        return False
    if not board.is_empty(to_square):
        return False

    victim = board.piece(captured_pawn_square(from_square, to_square))
    return (
        victim is not None
        and victim.type == PieceType.PAWN
        and victim.color != pawn.color
    )


def en_passant_origins(
    board: Board, en_passant_square: Square, color: Color
) -> list[Square]:
    """Squares of your pawns that could take on the en passant square (adjacent files, one rank behind it)"""
    origins: list[Square] = []
    behind = -pawn_direction(color)
    for df in (-1, 1):
        maybe_pawn_square = en_passant_square.offset(df, behind)
        if not maybe_pawn_square.is_within_bounds():
            continue
        piece = board.piece(maybe_pawn_square)
        if (
            piece is not None
            and piece.type == PieceType.PAWN
            and piece.color == color
            and is_en_passant_valid(board, maybe_pawn_square, en_passant_square, en_passant_square)
        ):
            origins.append(maybe_pawn_square)
    return origins


def apply_en_passant(board: Board, from_square: Square, to_square: Square) -> Piece:
    """
    1. Move the pawn diagonally
    2. Remove the opponent's pawn that gets taken (NOT on the destination square)

    Returns the captured pawn.
    """
    take_square = captured_pawn_square(from_square, to_square)
    captured = board.piece(take_square)
    if captured is None:
        raise IllegalMoveError(
            f"No pawn to take en passant at {take_square.to_algebraic()}"
        )
    board.move_piece(from_square, to_square)
    board.remove_piece(take_square)
    return captured
