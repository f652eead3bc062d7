"""
FEN codec for the full game record of a position.

Used at two boundaries: starting a game from a custom position, and handing the live position to a move-suggestion engine.
The piece placement field itself is read / written by the Board.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional, Self

from src.chess.board import STARTING_POSITION_FEN, Board
from src.chess.castling import CASTLING_ORDER, CASTLING_RULES, CastlingDirection, castling_directions
from src.chess.pieces import FEN_TO_PIECE, Color, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square
from src.core.exceptions import InvalidFENError, InvalidSquareError

STARTING_FEN = f"{STARTING_POSITION_FEN} w KQkq - 0 1"

COLOR_CODES: dict[str, Color] = {"w": Color.WHITE, "b": Color.BLACK}

# ranks a pawn skips over with its two-square advance (3rd and 6th)
EN_PASSANT_RANKS = {2, 5}


def castling_from_fen(field: str) -> dict[CastlingDirection, bool]:
    """'KQk' -> a right per direction. '-' revokes all of them."""
    if field == "-":
        return dict.fromkeys(CastlingDirection, False)
    return {direction: direction.value in field for direction in CastlingDirection}


def castling_to_fen(castling_rights: dict[CastlingDirection, bool]) -> str:
    field = "".join(direction.value for direction in CASTLING_ORDER if castling_rights[direction])
    return field or "-"


# --- FIELD VALIDATION ---
def is_valid_position(position: str) -> bool:
    """Every rank present, every rank exactly as wide as the board"""
    num_files, num_ranks = BOARD_DIMENSIONS
    ranks = position.split("/")
    return len(ranks) == num_ranks and all(_rank_width(rank) == num_files for rank in ranks)


def _rank_width(rank_fen: str) -> Optional[int]:
    """Number of files described by one rank of the placement field. None if it holds an unknown character."""
    width = 0
    for character in rank_fen:
        if character.isdigit():
            width += int(character)
        elif character.lower() in FEN_TO_PIECE:
            width += 1
        else:
            return None
    return width


def is_valid_color_code(code: str) -> bool:
    return code in COLOR_CODES


def is_valid_castling_rights(field: str) -> bool:
    """
    The remaining rights listed once each in the order KQkq, or a '-' when none are left.
    NOTE: anything else does not survive a decode / encode round trip.
    """
    return field == castling_to_fen(castling_from_fen(field))


def is_valid_square(name: str) -> bool:
    try:
        Square.from_algebraic(name)
    except InvalidSquareError:
        return False
    return True


def is_valid_en_passant(field: str) -> bool:
    if field == "-":
        return True
    return is_valid_square(field) and Square.from_algebraic(field).rank in EN_PASSANT_RANKS


def is_valid_move_counter(counter: str) -> bool:
    return counter.isdigit()


FEN_FIELDS: tuple[tuple[str, Callable[[str], bool]], ...] = (
    ("piece placement", is_valid_position),
    ("active color", is_valid_color_code),
    ("castling rights", is_valid_castling_rights),
    ("en passant square", is_valid_en_passant),
    ("half move clock", is_valid_move_counter),
    ("full move number", is_valid_move_counter),
)


def fen_errors(fen: str) -> list[str]:
    """Describe what is wrong with the FEN string, field by field. Empty for a valid FEN."""
    fields = fen.split(" ")
    if len(fields) != len(FEN_FIELDS):
        return [f"expected {len(FEN_FIELDS)} space separated fields, got {len(fields)}"]
    return [
        f"invalid {name} {value!r}"
        for (name, is_valid), value in zip(FEN_FIELDS, fields)
        if not is_valid(value)
    ]


def is_valid_fen(fen: str) -> bool:
    return not fen_errors(fen)


@dataclass
class FENState:
    """
    Everything a FEN string records about a position.
    ----

    A FEN string holds six space separated fields:
    <piece placement> <active color> <castling rights> <en passant square> <half move clock> <full move number>

    * placement: ranks 8 down to 1 separated by '/', see Board.from_fen
    * active color: 'w' or 'b'
    * castling rights: any of KQkq still available (upper case for white), '-' if none
    * en passant square: the square skipped by a pawn that just advanced two squares, '-' otherwise
    * half move clock: moves since the last capture or pawn move
    * full move number: starts at 1, goes up after each black move

    The game at its start: rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
    """

    position: str
    color_to_move: Color
    castling_rights: dict[CastlingDirection, bool]
    en_passant_square: Optional[Square]
    half_move_clock: int
    num_turns: int

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        errors = fen_errors(fen)
        if errors:
            raise InvalidFENError(f"Cannot interpret {fen!r} as FEN: {'; '.join(errors)}")

        placement, color_code, castling, en_passant, half_moves, full_moves = fen.split(" ")
        return cls(
            position=placement,
            color_to_move=COLOR_CODES[color_code],
            castling_rights=castling_from_fen(castling),
            en_passant_square=None if en_passant == "-" else Square.from_algebraic(en_passant),
            half_move_clock=int(half_moves),
            num_turns=int(full_moves),
        )

    def to_fen(self) -> str:
        color_code = "w" if self.color_to_move == Color.WHITE else "b"
        en_passant = self.en_passant_square.to_algebraic() if self.en_passant_square else "-"
        fields = [
            self.position,
            color_code,
            castling_to_fen(self.castling_rights),
            en_passant,
            str(self.half_move_clock),
            str(self.num_turns),
        ]
        return " ".join(fields)

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)

    def to_board(self) -> Board:
        """
        Build the board, and translate the castling field into `has_moved` flags:
        a rook whose castling right is gone counts as moved. A king without any right left counts as moved too.
        """
        board = Board.from_fen(self.position)
        for color in Color:
            directions = castling_directions(color)
            for direction in directions:
                if not self.castling_rights[direction]:
                    _mark_moved(board, CASTLING_RULES[direction].rook_from, PieceType.ROOK, color)

            if not any(self.castling_rights[direction] for direction in directions):
                _mark_moved(board, CASTLING_RULES[directions[0]].king_from, PieceType.KING, color)
        return board


def _mark_moved(board: Board, square: Square, piece_type: PieceType, color: Color) -> None:
    piece = board.piece(square)
    if piece is not None and piece.type == piece_type and piece.color == color:
        board.place_piece(piece.moved(), square)
