"""In-memory key-value store."""

import logging
from typing import Any, Optional

from investfolio.repositories.json_codec import dumps, loads

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore:
    """
    Process-local KeyValueStore holding serialized JSON text.

    Values round-trip through JSON exactly like the durable store, so callers
    never share mutable objects with it. An optional byte quota makes writes
    fail the way a full browser-style storage area does.
    """

    def __init__(self, max_bytes: Optional[int] = None):
        self._data: dict[str, str] = {}
        self._max_bytes = max_bytes

    def get(self, key: str, default: Any = None) -> Any:
        text = self._data.get(key)
        if text is None:
            return default
        try:
            return loads(text)
        except ValueError:
            logger.warning("Unreadable value in store", extra={"key": key})
            return default

    def set(self, key: str, value: Any) -> bool:
        try:
            text = dumps(value)
        except (TypeError, ValueError) as exc:
            logger.error("Value not serializable", extra={"key": key, "error": str(exc)})
            return False

        if self._max_bytes is not None:
            used = self.size_bytes() - len(self._data.get(key, "")) + len(text)
            if used > self._max_bytes:
                logger.error(
                    "Store quota exceeded",
                    extra={"key": key, "required_bytes": used, "max_bytes": self._max_bytes},
                )
                return False

        self._data[key] = text
        return True

    def remove(self, key: str) -> bool:
        self._data.pop(key, None)
        return True

    def keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._data if k.startswith(prefix)]

    def size_bytes(self) -> int:
        return sum(len(v) for v in self._data.values())

    def raw(self, key: str) -> Optional[str]:
        """Return the serialized text stored under key."""
        return self._data.get(key)

    def put_raw(self, key: str, text: str) -> None:
        """Store text as-is (used to seed corrupted or legacy data)."""
        self._data[key] = text
