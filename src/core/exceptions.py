"""
Custom exceptions shared by all layers.

Every exception raised on purpose by this application derives from GameError, so the layers above the domain
(service / API) can catch one type and still let the specific ones tell what went wrong:

* InputError: the text / request could not be interpreted. Nothing changed.
* IllegalMoveError: well-formed, but against the rules of chess. Nothing changed.
* StructuralError: the game or board is not in a state where the request makes sense (programming or flow error).
* EngineError: the external move-suggestion engine failed.
* RepositoryError: persistence failed.
"""


class GameError(Exception):
    """Top-level exception of the application"""


# --- INPUT ERRORS ---
class InputError(GameError):
    """Malformed input. Reported to the caller, game state unchanged."""


class NotationError(InputError):
    """Move text could not be parsed as coordinate or algebraic notation."""


class InvalidSquareError(InputError):
    """Square name outside of a1-h8."""


class AmbiguousMoveError(InputError):
    """More than one legal move matches the move text."""


class PromotionError(InputError):
    """Pawn reaches the last rank without a (valid) piece type to promote into."""


class InvalidFENError(InputError):
    """String does not follow FEN notation."""


class InvalidRequestError(InputError):
    """Request model failed validation."""


class InvalidPlayerError(InputError):
    """Player without a name."""


# --- ILLEGAL MOVES ---
class IllegalMoveError(GameError):
    """Move is well-formed but not allowed in the current position."""


class NotYourTurnError(IllegalMoveError):
    """Attempt to move a piece of the color that is not to move."""


# --- STRUCTURAL ERRORS ---
class StructuralError(GameError):
    """Missing board state or an operation that does not fit the state of the game."""


class NoPieceError(StructuralError):
    """No piece on the square that should hold the moving piece."""


class MissingKingError(StructuralError):
    """The board lacks the king of the color being queried."""


class GameStateError(StructuralError):
    """Operation not allowed in the current game status (e.g. game is over)."""


# --- EXTERNAL COLLABORATORS ---
class EngineError(GameError):
    """Move-suggestion engine unavailable, timed out, or returned garbage."""


class RepositoryError(GameError):
    """Persistence layer could not find / store the game."""
