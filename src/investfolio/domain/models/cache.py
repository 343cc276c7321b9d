"""Cache models for quote payloads."""

from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    """
    Cached payload with its validity window (epoch seconds).

    The same entry is held in memory and in the durable store.
    """

    key: str
    payload: Any
    stored_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """An entry is valid strictly before expires_at."""
        return now >= self.expires_at

    def age(self, now: float) -> float:
        return now - self.stored_at

    def to_record(self) -> dict:
        return {
            "data": self.payload,
            "cached": self.stored_at,
            "expiry": self.expires_at,
        }

    @classmethod
    def from_record(cls, key: str, record: dict) -> "CacheEntry":
        return cls(
            key=key,
            payload=record["data"],
            stored_at=float(record["cached"]),
            expires_at=float(record["expiry"]),
        )
