"""SQLAlchemy ORM model definitions."""

from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text

from investfolio.repositories.sqlalchemy.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyValueORM(Base):
    """SQLAlchemy model for one key-value entry (JSON text value)."""

    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
