"""
Turn move text into a validated Move, and write a Move back as standard algebraic text (SAN).

Accepted input (check / mate / annotation decorations like '+', '#', '!', '?' are stripped):
* castling literals: O-O, O-O-O (also written with zeros)
* coordinate notation: e2e4, e2-e4, e7e8q
* algebraic notation: e4, Nf3, exd5, Nbd7, R1e2, Qh4xe1, e8=Q, e8Q

Algebraic text without a piece letter only ever matches pawns.
If several legal moves match the text after disambiguation, the move is rejected as ambiguous (never guessed).
"""

from dataclasses import dataclass
from typing import Optional

from src.chess.board import Board
from src.chess.castling import CASTLING_RULES, castling_direction, direction_of_king_move
from src.chess.en_passant import is_en_passant_valid
from src.chess.moves import Move, create_move, pawn_direction, pseudo_legal_destinations
from src.chess.pieces import PIECE_TO_SAN, SAN_TO_PIECE, Color, PieceType
from src.chess.promotion import parse_promotion_choice, require_promotion_target
from src.chess.square import FILE_NAMES, Square
from src.chess.validator import is_valid_move
from src.core.exceptions import (
    AmbiguousMoveError,
    IllegalMoveError,
    InvalidSquareError,
    NoPieceError,
    NotationError,
    NotYourTurnError,
)

KING_SIDE_CASTLING = {"O-O", "0-0", "o-o"}
QUEEN_SIDE_CASTLING = {"O-O-O", "0-0-0", "o-o-o"}
DECORATIONS = "+#!?"


@dataclass(frozen=True)
class AlgebraicMove:
    """The parts of a move written in algebraic notation"""

    piece_type: PieceType
    to_square: Square
    from_file: Optional[int] = None
    from_rank: Optional[int] = None
    is_capture: bool = False
    promote_to: Optional[PieceType] = None

    @property
    def is_disambiguated(self) -> bool:
        return self.from_file is not None or self.from_rank is not None


def resolve_move(
    text: str,
    board: Board,
    color: Color,
    en_passant_square: Optional[Square] = None,
) -> Move:
    """Free text -> legal Move for the player with the `color` pieces. Raises if there is no such (unique) move."""
    clean = text.strip().rstrip(DECORATIONS)
    if not clean:
        raise NotationError("Empty move text.")

    if clean in KING_SIDE_CASTLING or clean in QUEEN_SIDE_CASTLING:
        return _resolve_castling(board, color, king_side=clean in KING_SIDE_CASTLING)

    coordinates = parse_coordinate(clean)
    if coordinates is not None:
        from_square, to_square, promote_to = coordinates
        return _resolve_coordinate(
            board, color, from_square, to_square, promote_to, en_passant_square
        )

    return _resolve_algebraic(board, color, parse_algebraic(clean), en_passant_square, text)


# --- PARSING ---
def parse_coordinate(
    text: str,
) -> Optional[tuple[Square, Square, Optional[PieceType]]]:
    """'e2e4' / 'e2-e4' / 'e7e8q' -> (from, to, promotion). None if the text is not written in coordinate notation."""
    compact = text.replace("-", "")
    if len(compact) not in (4, 5):
        return None
    if not (
        compact[0] in FILE_NAMES
        and compact[1].isdigit()
        and compact[2] in FILE_NAMES
        and compact[3].isdigit()
    ):
        return None

    from_square = Square.from_algebraic(compact[:2])
    to_square = Square.from_algebraic(compact[2:4])
    promote_to = parse_promotion_choice(compact[4]) if len(compact) == 5 else None
    return from_square, to_square, promote_to


def parse_algebraic(text: str) -> AlgebraicMove:
    """
    Decompose: [piece letter][file/rank of origin][x]<destination>[=promotion]

    We peel the text from the back: promotion, destination, capture marker, then piece letter and disambiguation.
    """
    clean = text
    promote_to: Optional[PieceType] = None
    if "=" in clean:
        clean, _, choice = clean.partition("=")
        if len(choice) != 1:
            raise NotationError(f"Cannot read promotion in {text!r}")
        promote_to = parse_promotion_choice(choice)
    elif len(clean) >= 3 and clean[-1] in "QRBN" and clean[-2].isdigit():
        promote_to = parse_promotion_choice(clean[-1])
        clean = clean[:-1]

    if len(clean) < 2:
        raise NotationError(f"Cannot interpret {text!r} as a move.")
    try:
        to_square = Square.from_algebraic(clean[-2:])
    except InvalidSquareError as e:
        raise NotationError(f"Cannot interpret {text!r} as a move: {e}") from e

    hint = clean[:-2]
    is_capture = hint.endswith("x")
    if is_capture:
        hint = hint[:-1]

    piece_type = PieceType.PAWN
    if hint and hint[0] in SAN_TO_PIECE:
        piece_type = SAN_TO_PIECE[hint[0]]
        hint = hint[1:]

    from_file: Optional[int] = None
    from_rank: Optional[int] = None
    for character in hint:
        if character in FILE_NAMES and from_file is None and from_rank is None:
            from_file = FILE_NAMES.index(character)
        elif character in "12345678" and from_rank is None:
            from_rank = int(character) - 1
        else:
            raise NotationError(f"Cannot interpret {text!r} as a move.")

    return AlgebraicMove(
        piece_type=piece_type,
        to_square=to_square,
        from_file=from_file,
        from_rank=from_rank,
        is_capture=is_capture,
        promote_to=promote_to,
    )


# --- RESOLVING ---
def _resolve_castling(board: Board, color: Color, king_side: bool) -> Move:
    rule = CASTLING_RULES[castling_direction(color, king_side)]
    king = board.piece(rule.king_from)
    if king is None or king.type != PieceType.KING or king.color != color:
        raise IllegalMoveError("Cannot castle: the king is not on its starting square.")

    move = create_move(board, rule.king_from, rule.king_to)
    if not is_valid_move(board, move, color):
        side = "king side" if king_side else "queen side"
        raise IllegalMoveError(f"Castling {side} is not allowed in this position.")
    return move


def _resolve_coordinate(
    board: Board,
    color: Color,
    from_square: Square,
    to_square: Square,
    promote_to: Optional[PieceType],
    en_passant_square: Optional[Square],
) -> Move:
    piece = board.piece(from_square)
    if piece is None:
        raise NoPieceError(f"No piece at {from_square.to_algebraic()}")
    if piece.color != color:
        raise NotYourTurnError(
            f"The piece at {from_square.to_algebraic()} belongs to {piece.color.name.lower()}, "
            f"it is {color.name.lower()}'s turn."
        )

    move = create_move(board, from_square, to_square, promote_to, en_passant_square)
    require_promotion_target(move.is_promotion, promote_to)
    if not is_valid_move(board, move, color):
        raise IllegalMoveError(f"Move not allowed: {move.to_uci()}")
    return move


def _resolve_algebraic(
    board: Board,
    color: Color,
    parsed: AlgebraicMove,
    en_passant_square: Optional[Square],
    text: str,
) -> Move:
    """
    Candidate generation: all of your pieces of the named type (pawns when no letter is given)
    that can reach the destination and pass validation.
    """
    candidates: list[Move] = []
    for from_square in board.locate_color(color):
        piece = board.piece(from_square)
        if piece is None or piece.type != parsed.piece_type:
            continue
        if parsed.to_square not in pseudo_legal_destinations(board, from_square):
            continue
        move = create_move(
            board, from_square, parsed.to_square, parsed.promote_to, en_passant_square
        )
        if is_valid_move(board, move, color):
            candidates.append(move)

    if parsed.is_disambiguated and len(candidates) > 1:
        candidates = [move for move in candidates if _matches_origin(move, parsed)]

    if len(candidates) > 1:
        origins = ", ".join(move.from_square.to_algebraic() for move in candidates)
        raise AmbiguousMoveError(f"Move {text!r} is ambiguous. Pieces on {origins} can make it.")

    if candidates:
        return candidates[0]

    en_passant_move = _resolve_en_passant(board, color, parsed, en_passant_square)
    if en_passant_move is not None:
        return en_passant_move

    raise IllegalMoveError(f"No legal move matches {text!r}")


def _matches_origin(move: Move, parsed: AlgebraicMove) -> bool:
    if parsed.from_file is not None and move.from_square.file != parsed.from_file:
        return False
    if parsed.from_rank is not None and move.from_square.rank != parsed.from_rank:
        return False
    return True


def _resolve_en_passant(
    board: Board,
    color: Color,
    parsed: AlgebraicMove,
    en_passant_square: Optional[Square],
) -> Optional[Move]:
    """Last resort for a pawn capture like 'exd6': en passant never shows up among the pseudo-legal destinations"""
    if parsed.piece_type != PieceType.PAWN or parsed.from_file is None:
        return None

    from_square = Square(parsed.from_file, parsed.to_square.rank - pawn_direction(color))
    if not from_square.is_within_bounds():
        return None
    if not board.is_friendly(from_square, color):
        return None
    if not is_en_passant_valid(board, from_square, parsed.to_square, en_passant_square):
        return None

    move = create_move(
        board, from_square, parsed.to_square, parsed.promote_to, en_passant_square
    )
    return move if is_valid_move(board, move, color) else None


# --- WRITING ---
def to_san(board: Board, move: Move) -> str:
    """
    Standard algebraic text of a legal move, written from the position BEFORE the move is made.
    Check and mate marks depend on the position after the move: the caller appends those.
    """
    if move.is_castling:
        direction = direction_of_king_move(move.from_square, move.to_square, move.color)
        if direction is None:
            raise IllegalMoveError(f"{move.to_uci()} is flagged castling but is not a castling move")
        return "O-O" if direction.is_king_side else "O-O-O"

    destination = move.to_square.to_algebraic()
    if move.piece_type == PieceType.PAWN:
        origin = f"{FILE_NAMES[move.from_square.file]}x" if move.is_capture else ""
        promotion = f"={PIECE_TO_SAN[move.promote_to]}" if move.promote_to else ""
        return f"{origin}{destination}{promotion}"

    capture = "x" if move.is_capture else ""
    return f"{PIECE_TO_SAN[move.piece_type]}{_disambiguation(board, move)}{capture}{destination}"


def _disambiguation(board: Board, move: Move) -> str:
    """
    Origin hint, only needed when another piece of the same type can legally reach the same square.
    The file if that tells them apart, else the rank, else the full square.
    """
    rivals = [
        from_square
        for from_square in board.locate_pieces(move.piece_type, move.color)
        if from_square != move.from_square
        and move.to_square in pseudo_legal_destinations(board, from_square)
        and is_valid_move(board, create_move(board, from_square, move.to_square), move.color)
    ]
    if not rivals:
        return ""
    if all(square.file != move.from_square.file for square in rivals):
        return FILE_NAMES[move.from_square.file]
    if all(square.rank != move.from_square.rank for square in rivals):
        return str(move.from_square.rank + 1)
    return move.from_square.to_algebraic()
