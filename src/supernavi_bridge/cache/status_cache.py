"""TTL cache of case status snapshots."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from supernavi_bridge.models import StatusSnapshot

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    """A snapshot and the clock reading at which it was stored."""

    snapshot: StatusSnapshot
    created_at: float

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        return now - self.created_at >= ttl_seconds


class StatusCache:
    """Canonical case id -> StatusSnapshot, each entry valid for a fixed TTL.

    Expired entries read as a miss and are evicted lazily on access (or by
    purge_expired()); there is no background timer. Calls never suspend, so
    interleaving under a single asyncio loop is safe without a lock.
    """

    def __init__(self, ttl_seconds: float = 30.0, clock: Optional[Clock] = None):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[StatusSnapshot]:
        """Return the cached snapshot, or None for an absent or expired key."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock(), self.ttl_seconds):
            del self._entries[key]
            logger.debug(f"Cache entry expired for {key}")
            return None

        return entry.snapshot

    def put(self, key: str, snapshot: StatusSnapshot) -> None:
        """Store a snapshot, overwriting any entry for the key (last write wins)."""
        self._entries[key] = CacheEntry(snapshot=snapshot, created_at=self._clock())

    def invalidate(self, key: str) -> None:
        """Remove an entry; absent keys are a no-op."""
        if self._entries.pop(key, None) is not None:
            logger.debug(f"Cache entry invalidated for {key}")

    def purge_expired(self) -> int:
        """Physically drop every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now, self.ttl_seconds)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None
