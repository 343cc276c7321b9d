"""Two-tier TTL cache for price service payloads."""

import asyncio
import contextlib
import logging
import time
from typing import Any, Callable, Mapping, Optional

from investfolio.config.settings import get_settings
from investfolio.domain.models import CacheEntry
from investfolio.domain.views import CacheStats
from investfolio.repositories.json_codec import dumps
from investfolio.repositories.protocols import KeyValueStore

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "price_cache:"


class PriceCache:
    """
    Memory + durable-store cache keyed by (endpoint, parameters).

    Reads try memory, then the durable store (promoting hits into memory).
    Expired entries are evicted lazily on read and in bulk by cleanup().
    The last payload seen for each key is kept for stale fallback, even
    after its entry expires.

    Owned by the service that creates it; start_cleanup()/dispose() bound the
    lifetime of the periodic cleanup task.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], float] = time.time,
        rate_limit_window: Optional[float] = None,
    ):
        self._store = store
        self._clock = clock
        self._rate_limit_window = (
            rate_limit_window
            if rate_limit_window is not None
            else get_settings().rate_limit_window_seconds
        )
        self._memory: dict[str, CacheEntry] = {}
        self._last_known: dict[str, Any] = {}
        self._rate_limits: dict[str, float] = {}
        self._cleanup_task: Optional[asyncio.Task] = None

    @staticmethod
    def generate_key(endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Build a cache key; parameter order does not matter."""
        query = "&".join(f"{k}={v}" for k, v in sorted((params or {}).items()))
        return f"{CACHE_KEY_PREFIX}{endpoint}_{query}"

    def get(self, key: str) -> Optional[Any]:
        """Return the payload if an unexpired entry exists, else None."""
        now = self._clock()

        entry = self._memory.get(key)
        if entry is not None:
            if not entry.is_expired(now):
                logger.debug("Cache hit (memory)", extra={"key": key, "age_s": entry.age(now)})
                return entry.payload
            del self._memory[key]

        entry = self._load_durable(key)
        if entry is None:
            return None
        self._last_known.setdefault(key, entry.payload)
        if entry.is_expired(now):
            self._store.remove(key)
            return None

        self._memory[key] = entry
        logger.debug("Cache hit (storage)", extra={"key": key, "age_s": entry.age(now)})
        return entry.payload

    def set(self, key: str, payload: Any, ttl: float) -> None:
        """
        Store payload for ttl seconds in both tiers.

        A rejected durable write is logged; the memory tier still holds the entry.
        """
        now = self._clock()
        entry = CacheEntry(key=key, payload=payload, stored_at=now, expires_at=now + ttl)
        self._memory[key] = entry
        self._last_known[key] = payload
        if not self._store.set(key, entry.to_record()):
            logger.warning("Cache durable write rejected", extra={"key": key})
            return
        logger.debug("Cache set", extra={"key": key, "ttl_s": ttl})

    def get_stale(self, key: str) -> Optional[Any]:
        """Return the last known payload for key, expired or not."""
        fresh = self.get(key)
        if fresh is not None:
            return fresh
        return self._last_known.get(key)

    def check_rate_limit(self, endpoint: str) -> bool:
        """
        Return True and record the call if endpoint may be called now.

        Inside the window this returns False without recording the attempt.
        """
        now = self._clock()
        last_call = self._rate_limits.get(endpoint)
        if last_call is not None and now - last_call < self._rate_limit_window:
            return False
        self._rate_limits[endpoint] = now
        return True

    def invalidate(self, key: str) -> None:
        """Drop the fresh entry for key; the stale copy stays available."""
        self._memory.pop(key, None)
        self._store.remove(key)

    def cleanup(self) -> int:
        """Remove expired entries from both tiers; returns how many durable keys were removed."""
        now = self._clock()
        for key in [k for k, e in self._memory.items() if e.is_expired(now)]:
            del self._memory[key]

        removed = 0
        for key in self._store.keys(CACHE_KEY_PREFIX):
            entry = self._load_durable(key)
            if entry is None:
                # Unreadable
                self._store.remove(key)
                removed += 1
            elif entry.is_expired(now):
                self._last_known.setdefault(key, entry.payload)
                self._store.remove(key)
                removed += 1

        logger.debug("Cache cleanup", extra={"removed": removed, "memory_entries": len(self._memory)})
        return removed

    def clear(self) -> int:
        """Remove every entry, stale copies and rate-limit trackers. Returns durable keys removed."""
        keys = self._store.keys(CACHE_KEY_PREFIX)
        for key in keys:
            self._store.remove(key)
        self._memory.clear()
        self._last_known.clear()
        self._rate_limits.clear()
        logger.info("Cache cleared", extra={"cleared_keys": len(keys)})
        return len(keys)

    def stats(self) -> CacheStats:
        storage_keys = self._store.keys(CACHE_KEY_PREFIX)
        size = 0
        for key in storage_keys:
            record = self._store.get(key)
            if record is not None:
                size += len(dumps(record))
        return CacheStats(
            memory_entries=len(self._memory),
            storage_entries=len(storage_keys),
            storage_size_bytes=size,
            rate_limit_trackers=len(self._rate_limits),
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start_cleanup(self, interval: Optional[float] = None) -> asyncio.Task:
        """Start periodic cleanup on the running event loop (idempotent)."""
        if self._cleanup_task is None or self._cleanup_task.done():
            period = interval if interval is not None else get_settings().cache_cleanup_interval_seconds
            self._cleanup_task = asyncio.get_running_loop().create_task(self._run_cleanup(period))
        return self._cleanup_task

    async def dispose(self) -> None:
        """Stop the cleanup task and drop the memory tier."""
        task, self._cleanup_task = self._cleanup_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._memory.clear()

    async def _run_cleanup(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                self.cleanup()
            except Exception:
                logger.exception("Cache cleanup failed")

    def _load_durable(self, key: str) -> Optional[CacheEntry]:
        record = self._store.get(key)
        if record is None:
            return None
        try:
            return CacheEntry.from_record(key, record)
        except (KeyError, TypeError, ValueError):
            logger.warning("Removing corrupted cache entry", extra={"key": key})
            self._store.remove(key)
            return None
