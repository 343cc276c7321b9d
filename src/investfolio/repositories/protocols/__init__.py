"""Repository protocol definitions (interfaces)."""

from investfolio.repositories.protocols.kv_store import KeyValueStore

__all__ = [
    "KeyValueStore",
]
