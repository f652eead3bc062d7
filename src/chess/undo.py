"""
Undo: a stack of full-state snapshots (not diffs).

A snapshot is pushed before every attempted move. Undoing pops the most recent one and the Game
restores board, status, history (coordinate and SAN), side to move, en passant square and draw offer from it wholesale.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from src.chess.board import Board
from src.chess.moves import Move
from src.chess.pieces import Color
from src.chess.square import Square

if TYPE_CHECKING:
    from src.chess.game import GameState


@dataclass(frozen=True)
class Snapshot:
    board: Board
    state: GameState
    history: tuple[Move, ...]
    color_to_move: Color
    en_passant_square: Optional[Square]
    draw_offer: Optional[Color]
    san_history: tuple[str, ...] = ()


class UndoManager:
    """Snapshot stack. With a capacity > 0 the oldest snapshots get discarded, 0 keeps everything."""

    def __init__(self, capacity: int = 0) -> None:
        if capacity < 0:
            raise ValueError(f"Undo capacity cannot be negative: {capacity}")
        self.capacity = capacity
        self._snapshots: deque[Snapshot] = deque(maxlen=capacity or None)

    def push(self, snapshot: Snapshot) -> None:
        self._snapshots.append(snapshot)

    def pop(self) -> Optional[Snapshot]:
        """Most recent snapshot, or None if there is nothing left to undo"""
        if not self._snapshots:
            return None
        return self._snapshots.pop()

    def can_undo(self, plies: int = 1) -> bool:
        return len(self._snapshots) >= plies

    def clear(self) -> None:
        self._snapshots.clear()

    def __len__(self) -> int:
        return len(self._snapshots)
