"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from collections.abc import Callable, Generator, Iterable
from typing import Optional
from uuid import UUID, uuid4

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import Settings
from src.core.models import GameModel
from src.core.shared_types import GameType, Side, Status
from src.db.schema import Base
from src.db.sql_repository import SQLGameRepository
from src.othello.board import Board, CellState
from src.othello.position import Position

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

BoardFactory = Callable[[Iterable[str], Iterable[str]], Board]
GameFactory = Callable[..., UUID]


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def repository(db_session_repo: Session) -> SQLGameRepository:
    return SQLGameRepository(db_session_repo)


@pytest.fixture
def manual_settings() -> Settings:
    """Settings where nothing gets played automatically: every transition in a test is explicit."""
    return Settings(database_url=DATABASE_URL, autoplay_ai=False, ai_strategy="first")


@pytest.fixture
def board_with() -> BoardFactory:
    """Call the inner function with the algebraic positions of the black and white discs. Everything else is empty."""

    def _create_board(blacks: Iterable[str] = (), whites: Iterable[str] = ()) -> Board:
        changes = {Position.from_algebraic(sq): CellState.BLACK for sq in blacks}
        changes.update({Position.from_algebraic(sq): CellState.WHITE for sq in whites})
        return Board.empty().with_cells(changes)

    return _create_board


@pytest.fixture
def stored_game(repository: SQLGameRepository) -> GameFactory:
    """Call the inner function to put a game with the given AI side / turn / board into the test database."""

    def _store_game(
        ai_side: Side = Side.WHITE,
        turn_number: int = 0,
        board: Optional[Board] = None,
    ) -> UUID:
        model = GameModel(
            game_id=uuid4(),
            game_type=GameType.OTHELLO,
            status=Status.ACTIVE,
            ai_side=ai_side,
            turn_number=turn_number,
            board=(board or Board.initial()).to_grid(),
        )
        return repository.create_game(model).game_id

    return _store_game
