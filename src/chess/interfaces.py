"""
Contracts of the collaborators the rules engine talks to, but does not implement.

* A move-suggestion engine (e.g. a UCI engine behind an adapter)
* A chess clock
"""

from typing import Protocol

from src.chess.board import Board
from src.chess.pieces import Color


class MoveSuggestionEngine(Protocol):
    """Given a board snapshot, the side to move and a search depth: return a move in coordinate notation ('e2e4', 'e7e8q')."""

    def best_move(self, board: Board, side_to_move: Color, depth: int) -> str: ...


class Timer(Protocol):
    """Only the flag matters to the rules engine, not how time is measured."""

    def is_flag_fallen(self, color: Color) -> bool: ...
