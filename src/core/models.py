"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)

A game is stored as its moves (not as board positions): the domain rebuilds the position by replaying them.
"""

from dataclasses import dataclass, field
from typing import Optional

# Type aliases to make GameModel easier to read
PieceColor = str
PlayerName = str


@dataclass
class MoveRecord:
    """
    One line of a score sheet: the move number and the move text of both sides (coordinate notation).

    `white` is None only for the first record of a game that started with black to move,
    `black` is None for the last record if white made the last move.
    """

    move_number: int
    white: Optional[str]
    black: Optional[str] = None


@dataclass
class GameModel:
    """Transport-safe representation of a chess game used between API, Service, DB, and Game layers."""

    players: dict[PieceColor, PlayerName]
    starting_fen: str
    moves: list[MoveRecord]
    status: str
    # flat key/value metadata (Event, Site, Date, White, Black, Result)
    tags: dict[str, str] = field(default_factory=dict)
    # color that resigned / ran out of time (only set for those endings)
    loser: Optional[PieceColor] = None
    draw_offer: Optional[PieceColor] = None
    # colors played by a move-suggestion engine instead of a person
    engine_sides: list[PieceColor] = field(default_factory=list)
