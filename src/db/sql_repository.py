"""Implementation of (Game)Repository using SQLAlchemy"""

from dataclasses import asdict
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import GameModel, MoveRecord
from src.db.schema import DBGame


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_model(game_db)
        return None

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Store new game and return the stored data + newly created game ID."""

        new_id = uuid4()
        game_db = DBGame(
            id=new_id,
            players=game.players,
            engine_sides=game.engine_sides,
            starting_fen=game.starting_fen,
            moves=_records_to_json(game.moves),
            status=game.status,
            tags=game.tags,
            loser=game.loser,
            draw_offer=game.draw_offer,
        )
        self.db.add(game_db)
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db), new_id

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Overwrite the stored record with the new state of the game."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_db.players = game.players
        game_db.engine_sides = game.engine_sides
        game_db.starting_fen = game.starting_fen
        game_db.moves = _records_to_json(game.moves)
        game_db.status = game.status
        game_db.tags = game.tags
        game_db.loser = game.loser
        game_db.draw_offer = game.draw_offer
        self.db.commit()
        self.db.refresh(game_db)
        return self._to_model(game_db)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Remove a game's record."""
        game_db = self._fetch_game(game_id)
        if not game_db:
            return None
        game_model = self._to_model(game_db)
        self.db.delete(game_db)
        self.db.commit()
        return game_model

    def list_game_ids(self) -> list[UUID]:
        """IDs of all stored games, oldest first."""
        query = select(DBGame.id).order_by(DBGame.created_at)
        return list(self.db.scalars(query))

    def _fetch_game(self, game_id: UUID) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return self.db.scalar(query)

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            players=dict(game_db.players),
            engine_sides=list(game_db.engine_sides or []),
            starting_fen=game_db.starting_fen,
            moves=[MoveRecord(**record) for record in game_db.moves],
            status=game_db.status,
            tags=dict(game_db.tags),
            loser=game_db.loser,
            draw_offer=game_db.draw_offer,
        )


def _records_to_json(records: list[MoveRecord]) -> list[dict[str, Any]]:
    """JSON columns take plain dicts, not dataclasses"""
    return [asdict(record) for record in records]
