"""Database utilities - engine and session."""

from src.bulkops.core.db.engine import dispose_engine, get_engine
from src.bulkops.core.db.session import SessionFactory, get_session

__all__ = [
    # Engine
    "dispose_engine",
    "get_engine",
    # Session
    "SessionFactory",
    "get_session",
]
