"""
In-memory display cache for screen data.

Keeps fetched data for a bounded time so switching between screens does not
refetch everything. Nothing here is persisted; a restart starts empty.
Identity decisions never read from this cache.
"""

import time
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from .registry import InFlightRegistry

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A cached value and the monotonic time it was stored."""

    data: Any
    stored_at: float


class DisplayCache:
    """
    TTL cache with in-flight de-duplication.

    Concurrent ``fetch`` calls for the same key share one fetch through an
    InFlightRegistry. A failed fetch caches nothing.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._inflight: InFlightRegistry[Any] = InFlightRegistry("display-cache")

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at > self._ttl:
            del self._entries[key]
            return None
        return entry.data

    def set(self, key: str, data: Any) -> None:
        self._entries[key] = CacheEntry(data=data, stored_at=self._clock())

    def is_cached(self, key: str) -> bool:
        return self.get(key) is not None

    async def fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[Any]],
        force_refresh: bool = False,
    ) -> Any:
        """
        Return cached data for ``key`` or fetch it.

        Args:
            key: Cache key
            fetch_fn: Coroutine factory producing fresh data
            force_refresh: Skip the cached value even if still valid

        Returns:
            Cached or freshly fetched data
        """
        if not force_refresh:
            cached = self.get(key)
            if cached is not None:
                return cached

        async def _fetch_and_store() -> Any:
            data = await fetch_fn()
            self.set(key, data)
            return data

        return await self._inflight.run(key, _fetch_and_store)

    def clear(self, key_pattern: Optional[str] = None) -> int:
        """
        Drop cached entries.

        Args:
            key_pattern: Only drop keys containing this substring; all if None

        Returns:
            Number of entries dropped
        """
        if key_pattern is None:
            dropped = len(self._entries)
            self._entries.clear()
            self._inflight.cancel_all()
        else:
            doomed = [k for k in self._entries if key_pattern in k]
            for key in doomed:
                del self._entries[key]
            dropped = len(doomed)
        logger.debug(f"Display cache cleared {dropped} entries (pattern={key_pattern!r})")
        return dropped
