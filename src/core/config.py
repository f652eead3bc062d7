"""
Application configuration.

Settings are read from environment variables prefixed with CHESS_ (or a .env file), e.g.
CHESS_DATABASE_URL=sqlite:///games.db
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHESS_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Persistence
    database_url: str = "sqlite:///chess_games.db"
    database_echo: bool = False

    # Undo snapshots kept per game. 0 = unbounded
    undo_capacity: int = 0

    # Search depth requested from the move-suggestion engine
    suggestion_depth: int = 10


@lru_cache
def get_settings() -> Settings:
    return Settings()
