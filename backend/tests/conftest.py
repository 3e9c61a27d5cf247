"""
Shared test fixtures and configuration.
"""

import pytest
import os

# Set test environment variables before importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_API_REQUESTS", "true")
os.environ.pop("GEMINI_API_KEY", None)

from sqlmodel import Session, SQLModel  # noqa: E402

from furia_chat.storage.database import create_db_engine  # noqa: E402
from furia_chat.storage.sql_store import SQLChatStore  # noqa: E402
from furia_chat.models import chat  # noqa: E402,F401


@pytest.fixture
def db_engine():
    """Fresh in-memory database per test."""
    engine = create_db_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def store(db_session):
    return SQLChatStore(db_session)
