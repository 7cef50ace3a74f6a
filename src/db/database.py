"""Generate database session"""

from collections.abc import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import Settings, get_settings
from src.db.schema import Base


def build_engine(settings: Settings | None = None) -> Engine:
    settings = settings or get_settings()
    connect_args = (
        {"check_same_thread": False}
        if settings.database_url.startswith("sqlite")
        else {}
    )
    return create_engine(
        settings.database_url, echo=settings.db_echo, connect_args=connect_args
    )


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


def get_db(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
