"""
Castling rules.

Policy: castling is allowed only for a king and rook that have never moved (`Piece.has_moved`), standing on their
classical starting squares (king on the e-file, rook in the a/h corner of the same back rank).
A king or rook that moved away and came back has lost the right for good.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Self

from src.chess.attacks import is_any_under_attack, is_position_attacked
from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square
from src.core.exceptions import IllegalMoveError


class Board(Protocol):
    """Just the parts the castling rules need"""

    def piece(self, square: Square) -> Optional[Piece]: ...
    def is_empty(self, square: Square) -> bool: ...
    def is_any_occupied(self, squares: list[Square]) -> bool: ...
    def move_piece(self, from_square: Square, to_square: Square) -> Optional[Piece]: ...


class CastlingDirection(Enum):
    """The four castling directions. Values represent their encodings in FEN string."""

    WHITE_KING_SIDE = "K"
    WHITE_QUEEN_SIDE = "Q"
    BLACK_KING_SIDE = "k"
    BLACK_QUEEN_SIDE = "q"

    @property
    def color(self) -> Color:
        return Color.WHITE if self.value.isupper() else Color.BLACK

    @property
    def is_king_side(self) -> bool:
        return self.value.lower() == "k"


CASTLING_ORDER: tuple[CastlingDirection, ...] = (
    CastlingDirection.WHITE_KING_SIDE,
    CastlingDirection.WHITE_QUEEN_SIDE,
    CastlingDirection.BLACK_KING_SIDE,
    CastlingDirection.BLACK_QUEEN_SIDE,
)


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.
    The king moves two squares towards the rook, the rook lands on the square the king crossed.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square

    @classmethod
    def from_algebraic(cls, k_from: str, k_to: str, r_from: str, r_to: str) -> Self:
        """Convenience method: to make mapping shown below (from CastlingDirection) more readable"""
        king_from = Square.from_algebraic(k_from)
        king_to = Square.from_algebraic(k_to)
        rook_from = Square.from_algebraic(r_from)
        rook_to = Square.from_algebraic(r_to)
        return cls(king_from, king_to, rook_from, rook_to)


# The moves (in classical chess) made when castling
CASTLING_RULES: dict[CastlingDirection, CastlingSquares] = {
    CastlingDirection.WHITE_KING_SIDE: CastlingSquares.from_algebraic(
        "e1", "g1", "h1", "f1"
    ),
    CastlingDirection.WHITE_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e1", "c1", "a1", "d1"
    ),
    CastlingDirection.BLACK_KING_SIDE: CastlingSquares.from_algebraic(
        "e8", "g8", "h8", "f8"
    ),
    CastlingDirection.BLACK_QUEEN_SIDE: CastlingSquares.from_algebraic(
        "e8", "c8", "a8", "d8"
    ),
}


def castling_directions(color: Color) -> list[CastlingDirection]:
    return [direction for direction in CASTLING_ORDER if direction.color == color]


def castling_direction(color: Color, king_side: bool) -> CastlingDirection:
    return next(
        direction
        for direction in castling_directions(color)
        if direction.is_king_side == king_side
    )


def squares_between_on_rank(from_square: Square, to_square: Square) -> list[Square]:
    """
    Find the squares in between the two squares specified that are on the same rank (both ends excluded)

    Needed for checking if you can still castle (the Board will check which of those are empty etc.)
    """
    if from_square.rank != to_square.rank:
        raise ValueError(
            f"squares_between_on_rank requires both squares to lie on the same rank. \n from: {from_square}\n to:{to_square}"
        )

    df = 1 if to_square.file > from_square.file else -1
    squares_found: list[Square] = []
    square = from_square.offset(df, 0)
    while square != to_square:
        squares_found.append(square)
        square = square.offset(df, 0)
    return squares_found


def king_path(direction: CastlingDirection) -> list[Square]:
    """The square the king crosses and the square it lands on"""
    rule = CASTLING_RULES[direction]
    return squares_between_on_rank(rule.king_from, rule.king_to) + [rule.king_to]


def _is_unmoved(piece: Optional[Piece], piece_type: PieceType, color: Color) -> bool:
    return (
        piece is not None
        and piece.type == piece_type
        and piece.color == color
        and not piece.has_moved
    )


def has_castling_right(board: Board, direction: CastlingDirection) -> bool:
    """The king and the rook are both still on their starting squares and never moved"""
    rule = CASTLING_RULES[direction]
    color = direction.color
    return _is_unmoved(
        board.piece(rule.king_from), PieceType.KING, color
    ) and _is_unmoved(board.piece(rule.rook_from), PieceType.ROOK, color)


def castling_rights(board: Board) -> dict[CastlingDirection, bool]:
    """The rights that are still alive, as encoded in FEN"""
    return {direction: has_castling_right(board, direction) for direction in CASTLING_ORDER}


def is_castling_valid(board: Board, direction: CastlingDirection) -> bool:
    """
    **you are allowed to castle if**

    * King and rook of the same color, never moved, on their starting squares.
    * All squares between king and rook are empty.
    * You are not currently in check (you cannot castle out of check).
    * Neither the square the king crosses nor the square it lands on is attacked.
    """
    if not has_castling_right(board, direction):
        return False

    rule = CASTLING_RULES[direction]
    if board.is_any_occupied(squares_between_on_rank(rule.king_from, rule.rook_from)):
        return False

    opponent_color = direction.color.opposite
    if is_position_attacked(board, rule.king_from, opponent_color):
        return False

    return not is_any_under_attack(board, king_path(direction), opponent_color)


def castling_destinations(board: Board, king_square: Square) -> list[Square]:
    """Landing squares of the king for every castling move that is currently available to it"""
    king = board.piece(king_square)
    if king is None or king.type != PieceType.KING or king.has_moved:
        return []

    return [
        CASTLING_RULES[direction].king_to
        for direction in castling_directions(king.color)
        if CASTLING_RULES[direction].king_from == king_square
        and is_castling_valid(board, direction)
    ]


def direction_of_king_move(
    from_square: Square, to_square: Square, color: Color
) -> Optional[CastlingDirection]:
    """Does a king moving between these squares describe a castling move? If so, which one."""
    for direction in castling_directions(color):
        rule = CASTLING_RULES[direction]
        if rule.king_from == from_square and rule.king_to == to_square:
            return direction
    return None


def apply_castling(board: Board, direction: CastlingDirection) -> None:
    """
    Move both the King and the Rook.

    Only the presence of the unmoved king and rook is checked here. Empty path and attacked squares are the job of `is_castling_valid()`.
    """
    rule = CASTLING_RULES[direction]
    if not has_castling_right(board, direction):
        raise IllegalMoveError(
            f"Cannot castle {direction.name.lower()}: king or rook has moved or is missing."
        )
    board.move_piece(rule.king_from, rule.king_to)
    board.move_piece(rule.rook_from, rule.rook_to)
