"""
Attack oracle: "is this square attacked by that color?"

Kept apart from the movement rules on purpose: the king's castling destinations need to know whether squares are attacked,
so answering that question by generating every piece's destinations would recurse back into the king.
Here each piece type only has a geometric attack pattern. No turn order, no legality.
"""

from typing import Callable, Optional, Protocol

from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import Square
from src.core.exceptions import MissingKingError


class Board(Protocol):
    """Just the parts the attack rules need"""

    def piece(self, square: Square) -> Optional[Piece]: ...
    def is_empty(self, square: Square) -> bool: ...


class KingBoard(Board, Protocol):
    def king_square(self, color: Color) -> Optional[Square]: ...


Vector = tuple[int, int]

KNIGHT_DELTAS: list[Vector] = [
    (2, 1),
    (2, -1),
    (-2, 1),
    (-2, -1),
    (1, 2),
    (1, -2),
    (-1, 2),
    (-1, -2),
]
KING_DELTAS: list[Vector] = [
    (0, 1),
    (0, -1),
    (1, 0),
    (-1, 0),
    (1, 1),
    (1, -1),
    (-1, 1),
    (-1, -1),
]
DIAGONALS: list[Vector] = [(1, 1), (-1, 1), (1, -1), (-1, -1)]
STRAIGHTS: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]


def raycasting_attack(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    board: Board,
    directions: list[Vector],
) -> bool:
    """
    Raycasting algorithm for attacks.
    ---

    Where raycasting moves determine
    _"What is the line-of-sight of the piece standing on the specified square?"_

    this function determines:
    _"Is the specified square in the line-of-sight of a piece of the specified color and type,
    that is allowed to move along the given directions?"_

    We walk from the target square outwards until we hit a piece or the edge of the board.
    Only the first piece found along a direction can be the attacker (a clear path is required).
    """
    for df, dr in directions:
        target_square = square.offset(df, dr)
        while target_square.is_within_bounds():
            if not board.is_empty(target_square):
                piece_found = board.piece(target_square)
                if (
                    piece_found is not None
                    and piece_found.color == by_color
                    and piece_found.type == by_piece_type
                ):
                    return True
                break
            target_square = target_square.offset(df, dr)
    return False


def single_step_attack(
    square: Square,
    by_color: Color,
    by_piece_type: PieceType,
    board: Board,
    deltas: list[Vector],
) -> bool:
    """
    Raycasting is for sliding pieces. This is the equivalent for pawns, kings, and knights that just can move a single step along a direction.

    Returns TRUE if a piece of the specified color and type stands on one of the squares reached by the deltas.
    """
    for df, dr in deltas:
        target_square = square.offset(df, dr)
        if not target_square.is_within_bounds():
            continue

        piece_found = board.piece(target_square)
        if (
            piece_found is not None
            and piece_found.color == by_color
            and piece_found.type == by_piece_type
        ):
            return True

    return False


def is_attacked_by_pawn(square: Square, by_color: Color, board: Board) -> bool:
    """
    Pawns take diagonally
    ----

    NOTE: Pawn moves are not symmetric, so to check IF a white pawn could take on your square -->
    Must look one rank DOWN the board. That is, you are asking "Could a white pawn, that moves UP the board, take on the specified square?"
    """
    inverse_pawn_take_deltas: list[Vector] = (
        [(1, -1), (-1, -1)] if by_color == Color.WHITE else [(1, 1), (-1, 1)]
    )
    return single_step_attack(
        square, by_color, PieceType.PAWN, board, inverse_pawn_take_deltas
    )


def is_attacked_by_knight(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceType.KNIGHT, board, KNIGHT_DELTAS)


def is_attacked_by_bishop(square: Square, by_color: Color, board: Board) -> bool:
    return raycasting_attack(square, by_color, PieceType.BISHOP, board, DIAGONALS)


def is_attacked_by_rook(square: Square, by_color: Color, board: Board) -> bool:
    return raycasting_attack(square, by_color, PieceType.ROOK, board, STRAIGHTS)


def is_attacked_by_queen(square: Square, by_color: Color, board: Board) -> bool:
    """The Queen combines the rook lines and the bishop diagonals"""
    return raycasting_attack(
        square, by_color, PieceType.QUEEN, board, STRAIGHTS + DIAGONALS
    )


def is_attacked_by_king(square: Square, by_color: Color, board: Board) -> bool:
    return single_step_attack(square, by_color, PieceType.KING, board, KING_DELTAS)


# --- STRATEGY PATTERN: ATTACKING RULES ---
IsAttackedFn = Callable[[Square, Color, Board], bool]
ATTACK_RULES: dict[PieceType, IsAttackedFn] = {
    PieceType.PAWN: is_attacked_by_pawn,
    PieceType.KNIGHT: is_attacked_by_knight,
    PieceType.BISHOP: is_attacked_by_bishop,
    PieceType.ROOK: is_attacked_by_rook,
    PieceType.QUEEN: is_attacked_by_queen,
    PieceType.KING: is_attacked_by_king,
}


def is_position_attacked(board: Board, square: Square, by_color: Color) -> bool:
    """True if any piece of `by_color` geometrically threatens `square`"""
    return any(
        is_attacked(square, by_color, board) for is_attacked in ATTACK_RULES.values()
    )


def is_any_under_attack(board: Board, squares: list[Square], by_color: Color) -> bool:
    return any(is_position_attacked(board, square, by_color) for square in squares)


def is_king_attacked(board: KingBoard, color: Color) -> bool:
    """Is the king of `color` attacked by the opponent? A board without that king is a programming error."""
    king_square = board.king_square(color)
    if king_square is None:
        raise MissingKingError(f"No {color.name.lower()} king on the board.")
    return is_position_attacked(board, king_square, color.opposite)
