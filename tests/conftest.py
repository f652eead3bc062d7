"""
Pytest will auto-discover / import this file called 'conftest.py'.
Fixtures needed by more than one layer: a throwaway database, and stand-ins for the collaborators outside the core
(move-suggestion engine, clock).
"""

from typing import Generator
from unittest.mock import Mock

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.db.schema import Base

# In-memory SQLite: one connection (StaticPool) so every session sees the same tables
engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Fresh tables per test, dropped at teardown so repository tests cannot see each other's games."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mock_engine() -> Mock:
    """Move-suggestion engine. Set `best_move.return_value` (or `side_effect`) in the test."""
    return Mock(spec=["best_move"])


@pytest.fixture
def mock_timer() -> Mock:
    """Clock on which nobody has run out of time yet"""
    timer = Mock(spec=["is_flag_fallen"])
    timer.is_flag_fallen.return_value = False
    return timer
