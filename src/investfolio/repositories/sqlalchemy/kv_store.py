"""SQLAlchemy implementation of KeyValueStore."""

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from investfolio.repositories.json_codec import dumps, loads
from investfolio.repositories.sqlalchemy.orm_models import KeyValueORM

logger = logging.getLogger(__name__)


class SqlAlchemyKeyValueStore:
    """SQLAlchemy-backed key-value store (one row per key)."""

    def __init__(self, db: Session):
        self._db = db

    def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for key, or default."""
        orm_row = self._db.get(KeyValueORM, key)
        if orm_row is None:
            return default
        try:
            return loads(orm_row.value)
        except ValueError:
            logger.warning("Unreadable value in store", extra={"key": key})
            return default

    def set(self, key: str, value: Any) -> bool:
        """Insert or replace the value for key."""
        try:
            text = dumps(value)
        except (TypeError, ValueError) as exc:
            logger.error("Value not serializable", extra={"key": key, "error": str(exc)})
            return False

        try:
            orm_row = self._db.get(KeyValueORM, key)
            if orm_row:
                orm_row.value = text
            else:
                self._db.add(KeyValueORM(key=key, value=text))
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.error("Store write failed", extra={"key": key, "error": str(exc)})
            return False
        return True

    def remove(self, key: str) -> bool:
        """Delete key if present."""
        try:
            self._db.query(KeyValueORM).filter(KeyValueORM.key == key).delete()
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            logger.error("Store delete failed", extra={"key": key, "error": str(exc)})
            return False
        return True

    def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with prefix, ordered."""
        query = self._db.query(KeyValueORM.key)
        if prefix:
            query = query.filter(KeyValueORM.key.startswith(prefix, autoescape=True))
        return [row[0] for row in query.order_by(KeyValueORM.key).all()]
