"""Helpers for the pawn promotion rule"""

from typing import Optional, Protocol

from src.chess.pieces import FEN_TO_PIECE, Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import NoPieceError, PromotionError


class Board(Protocol):
    def piece(self, square: Square) -> Optional[Piece]: ...
    def place_piece(self, piece: Piece, square: Square) -> None: ...


PROMOTION_OPTIONS: list[PieceType] = [
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.KNIGHT,
]


def promotion_rank(color: Color) -> int:
    """The rank farthest away from the player's own side"""
    return BOARD_DIMENSIONS[1] - 1 if color == Color.WHITE else 0


def is_promotion_square(square: Square, pawn_color: Color) -> bool:
    return square.rank == promotion_rank(pawn_color)


def parse_promotion_choice(choice: str) -> PieceType:
    """'q', 'R', 'n', ... -> piece type to promote into"""
    piece_type = FEN_TO_PIECE.get(choice.lower())
    if piece_type not in PROMOTION_OPTIONS:
        raise PromotionError(
            f"Cannot promote into {choice!r}. Pick one of: q, r, b, n."
        )
    return piece_type


def require_promotion_target(
    is_promotion: bool, promote_to: Optional[PieceType]
) -> None:
    """
    A pawn reaching the last rank must name what it becomes (no silent default to a queen),
    and a move that is not a promotion must not name anything.
    """
    if is_promotion and promote_to is None:
        raise PromotionError(
            "Pawn reaches the last rank: choose a piece to promote into (q, r, b, n)."
        )
    if is_promotion and promote_to not in PROMOTION_OPTIONS:
        raise PromotionError(f"Cannot promote into {promote_to}.")
    if not is_promotion and promote_to is not None:
        raise PromotionError("Only a pawn reaching the last rank can promote.")


def promote_pawn(board: Board, square: Square, promote_to: PieceType) -> None:
    """Replace the pawn on the square in place"""
    pawn = board.piece(square)
    if pawn is None or pawn.type != PieceType.PAWN:
        raise NoPieceError(f"No pawn to promote at {square.to_algebraic()}")
    if promote_to not in PROMOTION_OPTIONS:
        raise PromotionError(f"Cannot promote into {promote_to}.")
    board.place_piece(pawn.promote_to(promote_to), square)
