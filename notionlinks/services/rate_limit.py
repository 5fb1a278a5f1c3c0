from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable


class SlidingWindowRateLimiter:
    """Per-identity request counter over a sliding time window."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, window: deque[float], now: float) -> None:
        window_start = now - self.window_seconds
        while window and window[0] <= window_start:
            window.popleft()

    def allow(self, identity: str) -> bool:
        """Record a request for ``identity`` unless its window is already full."""
        with self._lock:
            now = self._clock()
            window = self._windows.setdefault(identity, deque())
            self._prune(window, now)
            if len(window) >= self.max_requests:
                return False
            window.append(now)
            return True

    def sweep(self) -> int:
        removed = 0
        with self._lock:
            now = self._clock()
            for identity in list(self._windows):
                window = self._windows[identity]
                self._prune(window, now)
                if not window:
                    del self._windows[identity]
                    removed += 1
        return removed

    def __len__(self) -> int:
        return len(self._windows)
