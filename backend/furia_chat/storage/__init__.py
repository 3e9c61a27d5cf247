"""Storage module - conversation persistence."""

from .interface import ChatStore
from .sql_store import SQLChatStore
from .database import create_db_engine, engine, get_db, init_db

__all__ = ['ChatStore', 'SQLChatStore', 'create_db_engine', 'engine', 'get_db', 'init_db']
