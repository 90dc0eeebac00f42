"""In-memory cache implementation."""

import time
from typing import Callable, Optional

from cache.cache import Cache
from models.cache_entry import CacheEntry
from models.presence import PresenceOutcome
from log import get_logger

logger = get_logger("cache.in_memory_cache")


class InMemoryCache(Cache):
    """In-process cache that lives as long as its owner.

    Nothing is shared between worker processes; every process keeps its
    own entries.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """Create a new instance of in-memory cache.

        Args:
            clock: Function returning current time in seconds.
        """
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str, ttl: float) -> Optional[PresenceOutcome]:
        """Get the value associated with the given key if it is fresh.

        Args:
            key: Cache key.
            ttl: Maximum age of the entry in seconds.

        Returns:
            The cached payload or None.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        age = self._clock() - entry.captured_at
        if age < ttl:
            logger.debug("Cache hit for %s (age %.1fs, ttl %ss)", key, age, ttl)
            return entry.payload

        logger.debug("Cache entry %s is stale (age %.1fs, ttl %ss)", key, age, ttl)
        return None

    def set(self, key: str, payload: PresenceOutcome) -> None:
        """Store the payload under the given key.

        Args:
            key: Cache key.
            payload: The value to store.
        """
        self._entries[key] = CacheEntry(captured_at=self._clock(), payload=payload)

    def entry(self, key: str) -> Optional[CacheEntry]:
        """Return raw cache entry regardless of its age."""
        return self._entries.get(key)
