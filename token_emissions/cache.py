"""In-process TTL cache of built emissions results.

Only accessed from the event loop thread, so a plain dict needs no lock.
"""

import logging
import time
from typing import Callable

from .core.models import CacheEntry, ProjectEmissionsResult

logger = logging.getLogger(__name__)


class MemoryCache:
    """Maps token ids to (result, write time) entries with a freshness TTL."""

    def __init__(self, ttl_seconds: float = 1800, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, token_id: str) -> ProjectEmissionsResult | None:
        """Return a fresh entry, evicting it if it has gone stale."""
        entry = self._entries.get(token_id)
        if entry is None:
            return None
        if not entry.is_fresh(self.ttl_seconds, self._clock()):
            logger.debug(f"Cache entry for {token_id} expired")
            del self._entries[token_id]
            return None
        logger.debug(f"Cache hit: {token_id}")
        return entry.result

    def set(self, token_id: str, result: ProjectEmissionsResult) -> None:
        self._entries[token_id] = CacheEntry(result=result, written_at=self._clock())

    def evict(self, token_id: str) -> bool:
        return self._entries.pop(token_id, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, token_id: object) -> bool:
        return token_id in self._entries
