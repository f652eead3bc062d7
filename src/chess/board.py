"""
The Board stores the `position` (in chess: the configuration of pieces on the board).

Sparse mapping: a square without a piece is simply absent from the dictionary.
The squares of both kings are cached and kept up to date on every placement / move / removal.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Optional, Self

from src.chess.pieces import Color, Piece, PieceType
from src.chess.square import BOARD_DIMENSIONS, Square, all_squares
from src.core.exceptions import InvalidFENError, NoPieceError

STARTING_POSITION_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR"
EMPTY_FEN = "/".join(["8"] * 8)


@dataclass
class Board:
    position: dict[Square, Piece] = field(default_factory=dict)
    king_squares: dict[Color, Square] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # pieces handed over directly still need their kings cached
        for square, piece in self.position.items():
            if piece.type == PieceType.KING:
                self.king_squares[piece.color] = square

    @classmethod
    def standard(cls) -> Self:
        """Board in the standard starting position"""
        return cls.from_fen(STARTING_POSITION_FEN)

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using a given FEN string.

        That is, we supply the first part of the FEN string that denotes the board position
        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on the 8th rank, starting with rook on a8, knight on b8, etc.
        * pawns cover 7th rank entirely
        * ranks 6 through 3 have 8 consecutive empty squares
        * rank 2 are the white pawns (capital letters)
        * 1st rank are the white pieces. Again, left-to-right reads a1-h1.
        """
        board = cls()
        fen_by_ranks = fen_str.split("/")
        if len(fen_by_ranks) != BOARD_DIMENSIONS[1]:
            raise InvalidFENError(f"Expected {BOARD_DIMENSIONS[1]} ranks in {fen_str!r}")

        for rank_idx, fen_one_rank in enumerate(fen_by_ranks):
            # FEN string is read from top rank (8th) to bottom rank (1st)
            rank = BOARD_DIMENSIONS[1] - 1 - rank_idx
            # ... but the first character is the a-file, so reads in normal direction
            file = 0
            for character in fen_one_rank:
                if character.isdigit():
                    # A number denotes the amount of empty squares after each other
                    file += int(character)
                    continue
                try:
                    piece = Piece.from_fen(character)
                except KeyError as e:
                    raise InvalidFENError(
                        f"Unknown piece character {character!r} in {fen_str!r}"
                    ) from e
                board.place_piece(piece, Square(file, rank))
                file += 1
        return board

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(
            self._rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1] - 1, -1, -1)
        )

    def _rank_to_fen(self, rank: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for file in range(BOARD_DIMENSIONS[0]):
            piece = self.piece(Square(file, rank))

            if piece is not None:
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    # --- QUERIES ---
    def piece(self, square: Square) -> Optional[Piece]:
        return self.position.get(square)

    def king_square(self, color: Color) -> Optional[Square]:
        return self.king_squares.get(color)

    def is_empty(self, square: Square) -> bool:
        return square not in self.position

    def is_enemy(self, square: Square, color: Color) -> bool:
        """Occupied by a piece of the opponent of `color`"""
        piece = self.piece(square)
        return piece is not None and piece.color != color

    def is_friendly(self, square: Square, color: Color) -> bool:
        piece = self.piece(square)
        return piece is not None and piece.color == color

    def is_any_occupied(self, squares: list[Square]) -> bool:
        return any(not self.is_empty(square) for square in squares)

    def locate_color(self, color: Color) -> list[Square]:
        """Squares holding pieces of the given color, in board-scan order (a1, b1, ..., h8)"""
        return [square for square in all_squares() if self.is_friendly(square, color)]

    def locate_pieces(self, piece_type: PieceType, color: Color) -> list[Square]:
        return [
            square
            for square in self.locate_color(color)
            if self.position[square].type == piece_type
        ]

    def contents(self) -> dict[str, str]:
        """Presentation helper: algebraic square name -> FEN character of the piece standing there"""
        return {
            square.to_algebraic(): self.position[square].to_fen()
            for square in all_squares()
            if square in self.position
        }

    # --- MUTATIONS ---
    def place_piece(self, piece: Piece, square: Square) -> None:
        """Placing a king updates the cached king square for its color (last write wins)"""
        self.position[square] = piece
        if piece.type == PieceType.KING:
            self.king_squares[piece.color] = square

    def remove_piece(self, square: Square) -> Optional[Piece]:
        piece = self.position.pop(square, None)
        if (
            piece is not None
            and piece.type == PieceType.KING
            and self.king_squares.get(piece.color) == square
        ):
            del self.king_squares[piece.color]
        return piece

    def move_piece(self, from_square: Square, to_square: Square) -> Optional[Piece]:
        """Move the piece on `from_square` to `to_square`. Returns the piece that got captured (if any)."""
        piece = self.position.get(from_square)
        if piece is None:
            raise NoPieceError(f"No piece at {from_square.to_algebraic()}")

        captured = self.remove_piece(to_square)
        del self.position[from_square]
        self.place_piece(piece.moved(), to_square)
        return captured

    def clear(self) -> None:
        self.position.clear()
        self.king_squares.clear()

    def reset(self) -> None:
        """Back to the standard starting position"""
        self.restore(Board.standard())

    def restore(self, other: "Board") -> None:
        """Take over the position of another board, in place. Anyone holding this board sees the change."""
        self.clear()
        self.position.update(other.position)
        self.king_squares.update(other.king_squares)

    def copy(self) -> Self:
        return deepcopy(self)
