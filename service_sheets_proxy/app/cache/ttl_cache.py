"""
In-process TTL cache for the Sheets Proxy Service.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from shared.logging import get_logger


T = TypeVar("T")

DEFAULT_TTL_SECONDS = 180.0


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Cached value and the clock reading at which it was stored."""
    data: T
    fetched_at: float


class TTLCache(Generic[T]):
    """Key-scoped store with a fixed time-to-live.

    ``get`` returns entries of any age; deciding whether a stale entry may
    still be served is left to the caller. ``is_valid`` is the freshness check.
    Entries are replaced on ``put`` and never mutated.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.time):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self.logger = get_logger("sheets_proxy.cache")

    def get(self, key: str) -> Optional[CacheEntry[T]]:
        return self._entries.get(key)

    def is_valid(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        return (self._clock() - entry.fetched_at) < self.ttl_seconds

    def put(self, key: str, value: T) -> CacheEntry[T]:
        entry = CacheEntry(data=value, fetched_at=self._clock())
        # Single assignment: readers see the old entry or the new one.
        self._entries[key] = entry
        self.logger.debug("Cache entry stored", cache_key=key, ttl=self.ttl_seconds)
        return entry

    def age(self, key: str) -> Optional[float]:
        """Seconds since the entry for ``key`` was stored."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        return max(0.0, self._clock() - entry.fetched_at)

    def stats(self) -> Dict[str, Any]:
        return {
            "entries": len(self._entries),
            "ttl_seconds": self.ttl_seconds,
            "keys": {key: {"age_seconds": self.age(key), "valid": self.is_valid(key)} for key in self._entries},
        }

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
