"""
Database engine and session handling.
"""

import logging
from pathlib import Path
from typing import Iterator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from ..config import settings

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for ``database_url``.

    SQLite gets foreign keys switched on (message cascade relies on them) and
    in-memory databases share a single connection.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    else:
        db_path = database_url.split("///", 1)[-1]
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, echo=echo, **kwargs)

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


engine = create_db_engine(settings.database_url, echo=settings.database_echo)


def init_db(db_engine: Engine = engine) -> None:
    """Create tables for every registered model."""
    # Registers the tables on SQLModel.metadata
    from ..models import chat  # noqa: F401

    SQLModel.metadata.create_all(db_engine)
    logger.info(f"Database initialized: {db_engine.url.render_as_string(hide_password=True)}")


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding a database session per request."""
    with Session(engine) as session:
        yield session
