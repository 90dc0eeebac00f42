"""Abstract class that is parent for all cache implementations."""

from abc import ABC, abstractmethod
from typing import Optional

from models.cache_entry import CacheEntry
from models.presence import PresenceOutcome


class Cache(ABC):
    """Abstract class that is parent for all cache implementations.

    Cache entries are identified by a key; there is no explicit eviction,
    entries are superseded by newer ones or ignored once too old.
    """

    @abstractmethod
    def get(self, key: str, ttl: float) -> Optional[PresenceOutcome]:
        """Get the value associated with the given key if it is fresh.

        Args:
            key: Cache key.
            ttl: Maximum age of the entry in seconds.

        Returns:
            The cached payload or None when there is no fresh entry.
        """

    @abstractmethod
    def set(self, key: str, payload: PresenceOutcome) -> None:
        """Store the payload under the given key, replacing previous entry."""

    @abstractmethod
    def entry(self, key: str) -> Optional[CacheEntry]:
        """Return raw cache entry regardless of its age."""

    def ready(self) -> bool:
        """Check if the cache is ready."""
        return True
