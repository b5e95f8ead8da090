"""
GIF Cache - in-process TTL cache for provider search results.

LRU-bounded OrderedDict with per-entry fetch timestamps. Expired entries are
dropped on read and swept before any eviction.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass
class GifCacheEntry:
    key: str
    payload: Any
    fetched_at: float


class GifCache:
    """Maps normalized query → provider payload for ttl_seconds."""

    def __init__(
        self,
        ttl_seconds: float = 600.0,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, GifCacheEntry]" = OrderedDict()

    def _is_fresh(self, entry: GifCacheEntry, now: float) -> bool:
        return now - entry.fetched_at < self.ttl_seconds

    def get(self, key: str) -> Optional[Any]:
        """Return the cached payload, or None if absent or stale. Marks LRU access."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not self._is_fresh(entry, self._clock()):
            del self._entries[key]
            return None
        self._entries.move_to_end(key)  # Mark as recently used
        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        if key not in self._entries and len(self._entries) >= self.max_entries:
            # Remove expired entries first
            self._sweep_expired()
            # If still over limit, evict least recently used entries
            while len(self._entries) >= self.max_entries:
                self._entries.popitem(last=False)

        self._entries[key] = GifCacheEntry(key=key, payload=payload, fetched_at=self._clock())
        self._entries.move_to_end(key)

    def _sweep_expired(self) -> None:
        now = self._clock()
        expired = [k for k, entry in self._entries.items() if not self._is_fresh(entry, now)]
        for k in expired:
            del self._entries[k]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
