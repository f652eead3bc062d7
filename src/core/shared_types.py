"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    ONGOING = "ongoing"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW_BY_AGREEMENT = "draw by agreement"
    RESIGNATION = "resignation"
    TIMED_OUT = "timed out"


# --- NOTE The domain has its own Color / PieceType enums (src/chess/pieces.py). Same names on purpose:
# --- the imports show which version is used in what part of the code


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class DrawAnswer(StrEnum):
    ACCEPT = "accept"
    DECLINE = "decline"
