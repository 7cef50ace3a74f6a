"""Unit tests for src/db/database.py"""

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from src.core.config import Settings
from src.db.database import build_engine, build_session_factory, get_db


def test_session_factory_creates_tables() -> None:
    engine = build_engine(Settings(database_url="sqlite:///:memory:"))
    build_session_factory(engine)
    assert set(inspect(engine).get_table_names()) == {"games", "candidates", "votes", "moves"}


def test_get_db_closes_session() -> None:
    session_factory = build_session_factory(build_engine(Settings(database_url="sqlite:///:memory:")))
    sessions = get_db(session_factory)
    db = next(sessions)
    assert isinstance(db, Session)
    sessions.close()
    assert not db.in_transaction()
