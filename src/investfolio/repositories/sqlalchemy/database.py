"""SQLite engine and sessions backing the durable key-value store."""

from typing import Optional

from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base

from investfolio.config.settings import get_settings

Base = declarative_base()

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """Engine for the configured database; the SQLite file lives in data_dir."""
    global _engine
    if _engine is None:
        url = get_settings().get_database_url()
        # A session may be opened on one thread and used on the server's loop thread
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        _engine = create_engine(url, connect_args=connect_args, echo=False)
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autoflush=False, bind=get_engine())
    return _SessionLocal


def get_session() -> Session:
    """Open a session; the caller owns and closes it."""
    return get_session_factory()()


def init_db() -> None:
    """Create the key-value table if it does not exist."""
    from investfolio.repositories.sqlalchemy import orm_models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def reset_database() -> None:
    """Dispose the engine so the next call picks up changed settings."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
