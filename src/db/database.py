"""Generate database sessions"""

from typing import Any

from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.db.schema import Base


def create_session_factory(database_url: str, echo: bool = False) -> sessionmaker[Session]:
    """Engine + session factory for the given URL. Ensures all tables are created."""
    engine_kwargs: dict[str, Any] = {"echo": echo}
    if database_url.startswith("sqlite"):
        # sessions finish on their own threads
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            # every thread must see the same in-memory database
            engine_kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **engine_kwargs)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)
