"""Thread-safe in-memory cache for dashboard query results.

Aggregates such as dashboard stats and paginated data pages are cached
for a short TTL (60 s by default).  A background asyncio task sweeps
expired entries once a minute while the application runs.
"""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Any, Callable, Dict, Optional, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

_DEFAULT_TTL_SECONDS: float = 60.0
_DEFAULT_MAX_SIZE: int = 100
_SWEEP_INTERVAL_SECONDS: float = 60.0


class QueryCache:
    """Thread-safe TTL cache keyed by string."""

    def __init__(
        self,
        ttl_seconds: float = _DEFAULT_TTL_SECONDS,
        max_size: int = _DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()
        self._store: Dict[str, tuple[float, Any]] = {}  # key -> (expire_ts, value)
        self._cleanup_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def put(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Insert or overwrite *key*.

        If the cache is at capacity, the entry closest to expiry is evicted.
        """
        expire_at = self._clock() + (self._ttl if ttl is None else ttl)
        with self._lock:
            if key not in self._store and len(self._store) >= self._max_size:
                oldest_key = min(self._store, key=lambda k: self._store[k][0])
                del self._store[oldest_key]
            self._store[key] = (expire_at, value)

    def get(self, key: str) -> Optional[Any]:
        """Return a cached value or *None* (lazy-evicts if expired)."""
        with self._lock:
            item = self._store.get(key)
            if item is None:
                return None
            expire_at, value = item
            if self._clock() > expire_at:
                del self._store[key]
                return None
            return value

    def pop(self, key: str) -> Optional[Any]:
        """Atomically remove and return a cached value."""
        with self._lock:
            item = self._store.pop(key, None)
            if item is None:
                return None
            expire_at, value = item
            if self._clock() > expire_at:
                return None
            return value

    def get_or_load(
        self, key: str, loader: Callable[[], T], ttl: Optional[float] = None,
    ) -> T:
        """Return the cached value for *key*, calling *loader* on a miss.

        The loader runs outside the lock; concurrent misses may both load,
        and the last writer wins.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("query_cache_hit", key=key)
            return cached
        value = loader()
        self.put(key, value, ttl=ttl)
        logger.debug("query_cache_miss", key=key)
        return value

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def sweep_expired(self) -> int:
        """Bulk-remove expired entries.  Returns count removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (exp, _) in self._store.items() if now > exp]
            for k in expired:
                del self._store[k]
        return len(expired)

    async def start_cleanup_loop(self, interval: float = _SWEEP_INTERVAL_SECONDS) -> None:
        """Start an asyncio background task that sweeps every *interval* seconds."""
        if self._cleanup_task is not None:
            return

        async def _loop() -> None:
            while True:
                await asyncio.sleep(interval)
                removed = self.sweep_expired()
                if removed:
                    logger.debug("query_cache_swept", removed=removed)

        self._cleanup_task = asyncio.create_task(_loop())

    async def stop_cleanup_loop(self) -> None:
        """Cancel the background cleanup task."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

    # ------------------------------------------------------------------
    # Utility
    # ------------------------------------------------------------------

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def size(self) -> int:
        with self._lock:
            return len(self._store)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
