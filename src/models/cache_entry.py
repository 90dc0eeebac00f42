"""Model for presence cache entry."""

from pydantic import BaseModel

from models.presence import PresenceOutcome


class CacheEntry(BaseModel):
    """Model representing a cache entry.

    Attributes:
        captured_at: Time (seconds since epoch) when the payload was fetched.
        payload: The memoized outcome of the presence fetch.
    """

    captured_at: float
    payload: PresenceOutcome
