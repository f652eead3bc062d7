"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGame(Base):
    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    players: Mapped[dict[str, str]] = mapped_column(JSON)
    engine_sides: Mapped[list[str]] = mapped_column(JSON, default=list)
    starting_fen: Mapped[str]
    # score sheet: [{"move_number": 1, "white": "e2e4", "black": "e7e5"}, ...]
    moves: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    status: Mapped[str]
    tags: Mapped[dict[str, str]] = mapped_column(JSON, default=dict)
    loser: Mapped[Optional[str]]
    draw_offer: Mapped[Optional[str]]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
