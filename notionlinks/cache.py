"""Time-bounded cache used by the sync coordinator and the client package.

An entry is valid while ``now - timestamp < ttl``. When the cache is bounded,
inserting a new key into a full cache evicts the earliest-inserted entry,
regardless of how recently it was read.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class CacheEntry:
    key: str
    payload: Any
    timestamp: float


class TTLCache:
    def __init__(
        self,
        ttl_seconds: float,
        max_size: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def _is_valid(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp < self.ttl_seconds

    def get(self, key: str):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not self._is_valid(entry, self._clock()):
                del self._entries[key]
                return None
            return entry.payload

    def set(self, key: str, payload) -> None:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            # A rewrite counts as a fresh insertion.
            self._entries.pop(key, None)
            if (
                self.max_size is not None
                and self._entries
                and len(self._entries) >= self.max_size
            ):
                oldest_key = next(iter(self._entries))
                del self._entries[oldest_key]
            self._entries[key] = CacheEntry(key=key, payload=payload, timestamp=now)

    def sweep(self) -> int:
        with self._lock:
            return self._sweep(self._clock())

    def _sweep(self, now: float) -> int:
        expired = [
            key
            for key, entry in self._entries.items()
            if not self._is_valid(entry, now)
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)
