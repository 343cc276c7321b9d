"""Key-value store protocol for the durable persistence layer."""

from typing import Any, Protocol


class KeyValueStore(Protocol):
    """
    Synchronous string-keyed store of JSON-compatible values.

    Writes may be rejected (e.g. capacity); set/remove report that with False
    rather than raising.
    """

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or default when absent or unreadable."""
        ...

    def set(self, key: str, value: Any) -> bool:
        """Store value under key. Returns False if the write was rejected."""
        ...

    def remove(self, key: str) -> bool:
        """Delete key. Returns False if the delete failed."""
        ...

    def keys(self, prefix: str = "") -> list[str]:
        """List keys starting with prefix."""
        ...
