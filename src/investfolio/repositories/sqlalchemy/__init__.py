"""SQLAlchemy repository implementations."""

from investfolio.repositories.sqlalchemy.database import (
    get_engine,
    get_session_factory,
    get_session,
    init_db,
    reset_database,
    Base,
)
from investfolio.repositories.sqlalchemy.kv_store import SqlAlchemyKeyValueStore

__all__ = [
    "get_engine",
    "get_session_factory",
    "get_session",
    "init_db",
    "reset_database",
    "Base",
    "SqlAlchemyKeyValueStore",
]
