"""
Geometry/Base movement rules

Key idea: Use strategy pattern to define the pseudo-legal destinations for each piece type.
Pseudo-legal = respects how the piece moves and what blocks it, but may leave your own king in check.

Legality (king safety) is checked later by the validator. En passant is not produced here either:
it depends on the previous move, not on the static board.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from src.chess.attacks import DIAGONALS, KING_DELTAS, KNIGHT_DELTAS, STRAIGHTS, Vector
from src.chess.castling import castling_destinations, direction_of_king_move
from src.chess.pieces import PIECE_TO_FEN, Color, Piece, PieceType
from src.chess.promotion import is_promotion_square
from src.chess.square import Square
from src.core.exceptions import NoPieceError


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Optional[Piece]: ...
    def is_empty(self, square: Square) -> bool: ...
    def is_enemy(self, square: Square, color: Color) -> bool: ...
    def is_any_occupied(self, squares: list[Square]) -> bool: ...
    def move_piece(self, from_square: Square, to_square: Square) -> Optional[Piece]: ...


@dataclass(frozen=True)
class Move:
    """
    A proposed move, with everything needed to apply it and to record it in the history.

    Once applied, the very same value is what the game history keeps. Nothing is re-derived from board diffs later.
    """

    from_square: Square
    to_square: Square
    piece_type: PieceType
    color: Color
    captured_type: Optional[PieceType] = None
    is_capture: bool = False
    is_castling: bool = False
    is_en_passant: bool = False
    is_promotion: bool = False
    promote_to: Optional[PieceType] = None

    def to_uci(self) -> str:
        """
        Coordinate notation (as used by the Universal Chess Interface)

        examples:
        * "e2e4": move the piece that was on e2 to e4
        * "e7e8q" : (pawn) moves from e7 to e8 and promotes to a queen (the q)
        * "e1g1": the king castles king side
        """
        piece_char = PIECE_TO_FEN[self.promote_to] if self.promote_to else ""
        return f"{self.from_square.to_algebraic()}{self.to_square.to_algebraic()}{piece_char}"

    def __str__(self) -> str:
        return self.to_uci()


def create_move(
    board: Board,
    from_square: Square,
    to_square: Square,
    promote_to: Optional[PieceType] = None,
    en_passant_square: Optional[Square] = None,
) -> Move:
    """
    Build a Move from what the board currently shows.

    * castling: a king moving two files from its starting square
    * en passant: a pawn moving diagonally onto the (empty) en passant square
    * promotion: a pawn reaching the last rank
    """
    piece = board.piece(from_square)
    if piece is None:
        raise NoPieceError(f"No piece at {from_square.to_algebraic()}")

    captured = board.piece(to_square)
    is_pawn = piece.type == PieceType.PAWN

    is_castling = (
        piece.type == PieceType.KING
        and direction_of_king_move(from_square, to_square, piece.color) is not None
    )
    is_en_passant = (
        is_pawn
        and en_passant_square is not None
        and to_square == en_passant_square
        and from_square.file != to_square.file
        and captured is None
    )
    captured_type = PieceType.PAWN if is_en_passant else (captured.type if captured else None)
    is_promotion = is_pawn and is_promotion_square(to_square, piece.color)

    return Move(
        from_square=from_square,
        to_square=to_square,
        piece_type=piece.type,
        color=piece.color,
        captured_type=captured_type,
        is_capture=captured_type is not None,
        is_castling=is_castling,
        is_en_passant=is_en_passant,
        is_promotion=is_promotion,
        promote_to=promote_to,
    )


# --- MOVEMENT RULES ---
def _piece_at(board: Board, square: Square) -> Piece:
    piece = board.piece(square)
    if piece is None:
        raise NoPieceError(f"No piece at {square.to_algebraic()} to generate moves for")
    return piece


def raycasting_move(
    square: Square, board: Board, directions: list[Vector]
) -> list[Square]:
    """
    Raycasting algorithm
    -----

    The main trick we use to check the 'line of sight of a piece'.
    We define move directions and move along them until we hit another piece or
    the edge of the board.
    """
    piece = _piece_at(board, square)

    destinations: list[Square] = []
    for df, dr in directions:
        target_square = square.offset(df, dr)
        while target_square.is_within_bounds():
            if not board.is_empty(target_square):
                # only need to add the first occupied square found if it is the opponent's: then it can be captured.
                if board.is_enemy(target_square, piece.color):
                    destinations.append(target_square)
                break

            destinations.append(target_square)
            target_square = target_square.offset(df, dr)
    return destinations


def single_step_move(
    square: Square, board: Board, deltas: list[Vector]
) -> list[Square]:
    """Raycasting is for sliding pieces. This is the equivalent for kings and knights that just jump a single step along a direction"""
    piece = _piece_at(board, square)

    destinations: list[Square] = []
    for df, dr in deltas:
        target_square = square.offset(df, dr)
        if not target_square.is_within_bounds():
            continue

        if board.is_empty(target_square) or board.is_enemy(target_square, piece.color):
            destinations.append(target_square)

    return destinations


def pawn_direction(color: Color) -> int:
    """White moves UP the board, black moves DOWN"""
    return 1 if color == Color.WHITE else -1


def pawn_starting_rank(color: Color) -> int:
    return 1 if color == Color.WHITE else 6


def candidate_pawn_moves(square: Square, board: Board) -> list[Square]:
    """
    A pawn:
    - moves by a single square forward (onto an empty square).
    - It can move by two in their first move (so when on their starting rank), if both squares are empty
    - takes diagonally, only onto an opponent's piece
    """
    pawn = _piece_at(board, square)
    direction = pawn_direction(pawn.color)

    destinations: list[Square] = []
    one_step = square.offset(0, direction)
    if one_step.is_within_bounds() and board.is_empty(one_step):
        destinations.append(one_step)

        two_steps = square.offset(0, 2 * direction)
        if square.rank == pawn_starting_rank(pawn.color) and board.is_empty(two_steps):
            destinations.append(two_steps)

    for df in (-1, 1):
        target_square = square.offset(df, direction)
        if target_square.is_within_bounds() and board.is_enemy(target_square, pawn.color):
            destinations.append(target_square)
    return destinations


def candidate_knight_moves(square: Square, board: Board) -> list[Square]:
    """Knights always move such that |delta_rank| + |delta_file| = 3"""
    return single_step_move(square, board, KNIGHT_DELTAS)


def candidate_bishop_moves(square: Square, board: Board) -> list[Square]:
    """Bishops move diagonally: |delta_rank| = |delta_file|"""
    return raycasting_move(square, board, DIAGONALS)


def candidate_rook_moves(square: Square, board: Board) -> list[Square]:
    """Rooks move either horizontally or vertically"""
    return raycasting_move(square, board, STRAIGHTS)


def candidate_queen_moves(square: Square, board: Board) -> list[Square]:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return candidate_bishop_moves(square, board) + candidate_rook_moves(square, board)


def candidate_king_moves(square: Square, board: Board) -> list[Square]:
    """
    The king can move by a single square at the time.

    Plus: while it has not moved, the castling destinations that are currently available.
    Those only ask the attack oracle if squares are attacked, never these movement rules (no recursion through the kings).
    """
    return single_step_move(square, board, KING_DELTAS) + castling_destinations(
        board, square
    )


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Square, Board], list[Square]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.PAWN: candidate_pawn_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.QUEEN: candidate_queen_moves,
    PieceType.KING: candidate_king_moves,
}


def pseudo_legal_destinations(board: Board, square: Square) -> list[Square]:
    """Single dispatch over the piece type standing on `square`"""
    piece = board.piece(square)
    if piece is None:
        raise NoPieceError(f"No piece at {square.to_algebraic()}")
    movement_rule = MOVEMENT_RULES[piece.type]
    return movement_rule(square, board)
