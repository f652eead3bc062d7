"""Requests and Response models"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.models import MoveRecord
from src.core.shared_types import Color, DrawAnswer, PieceType, Status

PieceColor = str
PlayerName = str


def _is_algebraic_notation(value: str) -> bool:
    if len(value) != 2:
        return False
    return value[0] in "abcdefgh" and value[1] in "12345678"


def _require_player_name(value: str) -> str:
    if not value.strip():
        raise InvalidRequestError("Player name cannot be empty.")
    return value.strip()


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    white_player: str
    black_player: str
    starting_fen: Optional[str] = None
    tags: dict[str, str] = Field(default_factory=dict)
    # colors played by the move-suggestion engine
    engine_sides: list[Color] = Field(default_factory=list)

    @field_validator("white_player", "black_player")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        return _require_player_name(value)

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value

        parts = value.strip().split(" ")
        if len(parts) != 6:
            raise InvalidRequestError(
                "FEN string must contain 6 space-separated parts."
            )
        return value.strip()


class LoadGameRequest(BaseModel):
    """A finished or unfinished game from a score sheet"""

    white_player: str
    black_player: str
    moves: list[MoveRecord]
    starting_fen: Optional[str] = None
    tags: dict[str, str] = Field(default_factory=dict)
    engine_sides: list[Color] = Field(default_factory=list)

    @field_validator("white_player", "black_player")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        return _require_player_name(value)


class GetGameRequest(BaseModel):
    game_id: UUID


class LegalMovesRequest(BaseModel):
    game_id: UUID


class MoveRequest(BaseModel):
    """Either free move text ('Nf3', 'e2e4', 'O-O') or a from/to pair of squares"""

    game_id: UUID
    color: Color
    move_text: Optional[str] = None
    from_square: Optional[str] = None
    to_square: Optional[str] = None
    promote_to: Optional[PieceType] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value

    @field_validator("move_text")
    @classmethod
    def validate_move_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not value.strip():
            raise InvalidRequestError("Move text cannot be empty.")
        return value.strip()

    def to_move_text(self) -> str:
        """The text to hand to the domain layer"""
        if self.move_text is not None:
            return self.move_text
        if self.from_square is None or self.to_square is None:
            raise InvalidRequestError(
                "Supply either move_text or both from_square and to_square."
            )
        promotion = _PROMOTION_LETTERS[self.promote_to] if self.promote_to else ""
        return f"{self.from_square}{self.to_square}{promotion}"


_PROMOTION_LETTERS: dict[PieceType, str] = {
    PieceType.QUEEN: "q",
    PieceType.ROOK: "r",
    PieceType.BISHOP: "b",
    PieceType.KNIGHT: "n",
}


class UndoRequest(BaseModel):
    game_id: UUID
    full_turn: bool = False


class ResignRequest(BaseModel):
    game_id: UUID
    color: Color


class DrawOfferRequest(BaseModel):
    game_id: UUID
    color: Color


class DrawAnswerRequest(BaseModel):
    game_id: UUID
    color: Color
    answer: DrawAnswer


class SuggestMoveRequest(BaseModel):
    game_id: UUID
    depth: Optional[int] = Field(default=None, gt=0)


class EngineMoveRequest(BaseModel):
    """Let the engine play the move of the side it controls"""

    game_id: UUID
    depth: Optional[int] = Field(default=None, gt=0)


class DeleteGameRequest(BaseModel):
    game_id: UUID


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    game_id: UUID
    players: dict[PieceColor, PlayerName]
    status: Status
    color_to_move: Color
    fen_state: str
    starting_state: str
    board: dict[str, str]
    move_history: list[MoveRecord]
    result: str
    draw_offer: Optional[Color] = None
    tags: dict[str, str] = Field(default_factory=dict)
    engine_sides: list[Color] = Field(default_factory=list)
    last_move_san: Optional[str] = None


class LegalMovesResponse(BaseModel):
    game_id: UUID
    color: Color
    legal_moves: list[str]


class SuggestMoveResponse(BaseModel):
    game_id: UUID
    color: Color
    move: str
