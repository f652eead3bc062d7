"""
Who sits behind each color: a person typing moves, or a move-suggestion engine that plays its own moves.
"""

from dataclasses import dataclass

from src.core.exceptions import InvalidPlayerError


@dataclass(frozen=True)
class Player:
    name: str
    is_engine: bool = False

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidPlayerError("Player name must not be empty.")
        # surrounding whitespace is not part of the name
        object.__setattr__(self, "name", self.name.strip())

    def __str__(self) -> str:
        return f"{self.name} [engine]" if self.is_engine else self.name
