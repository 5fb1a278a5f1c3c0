"""Server-side sync coordination.

The coordinator answers paged bookmark requests from a TTL cache and only
reaches the upstream store when the cache misses. At most one upstream pass runs
at a time; a request arriving while one is in flight is rejected with
``SyncInProgress`` rather than queued.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from notionlinks.cache import TTLCache
from notionlinks.errors import RateLimited, SyncInProgress
from notionlinks.models import BookmarkRecord, utcnow
from notionlinks.services.rate_limit import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


@dataclass
class SyncState:
    last_sync_time: datetime | None = None
    last_sync_at: float | None = None
    total_pages: int = 0


@dataclass
class PageResult:
    data: list[BookmarkRecord] = field(default_factory=list)
    total_count: int = 0
    total_pages: int = 0
    current_page: int = 1
    has_more: bool = False
    from_cache: bool = False
    not_modified: bool = False
    last_sync_time: datetime | None = None

    @property
    def count(self) -> int:
        return len(self.data)


def page_cache_key(page: int, page_size: int) -> str:
    return f"bookmarks_{page}_{page_size}"


def slice_pages(records: list[BookmarkRecord], page_size: int) -> list[list]:
    if not records:
        return [[]]
    return [
        records[start : start + page_size]
        for start in range(0, len(records), page_size)
    ]


class SyncCoordinator:
    def __init__(
        self,
        fetcher,
        cache: TTLCache,
        rate_limiter: SlidingWindowRateLimiter,
        incremental_min_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fetcher = fetcher
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.incremental_min_interval = incremental_min_interval
        self.state = SyncState()
        self._clock = clock
        self._sync_lock = threading.Lock()

    @classmethod
    def from_config(cls, config, fetcher) -> SyncCoordinator:
        return cls(
            fetcher=fetcher,
            cache=TTLCache(
                ttl_seconds=config["CACHE_TTL_SECONDS"],
                max_size=config["CACHE_MAX_SIZE"],
            ),
            rate_limiter=SlidingWindowRateLimiter(
                max_requests=config["RATE_LIMIT_MAX_REQUESTS"],
                window_seconds=config["RATE_LIMIT_WINDOW_SECONDS"],
            ),
            incremental_min_interval=config["INCREMENTAL_MIN_INTERVAL_SECONDS"],
        )

    @property
    def is_syncing(self) -> bool:
        return self._sync_lock.locked()

    def get_bookmarks(
        self,
        identity: str,
        page: int = 1,
        page_size: int = 50,
        force_refresh: bool = False,
        incremental: bool = False,
    ) -> PageResult:
        if not self.rate_limiter.allow(identity):
            logger.warning("Rate limit exceeded for %s", identity)
            raise RateLimited()

        if not force_refresh:
            cached = self.cache.get(page_cache_key(page, page_size))
            if cached is not None:
                logger.info("Serving cached bookmarks (page %s)", page)
                return self._result(cached, page, from_cache=True)

        if incremental and self._synced_recently():
            logger.info("Skipping incremental sync, last sync is too recent")
            return PageResult(
                current_page=page,
                not_modified=True,
                last_sync_time=self.state.last_sync_time,
            )

        # Non-blocking acquire checks and takes the guard in a single step.
        if not self._sync_lock.acquire(blocking=False):
            logger.info("Sync already in progress, rejecting request")
            raise SyncInProgress()
        try:
            payload = self._sync(page, page_size)
        finally:
            self._sync_lock.release()

        return self._result(payload, page, from_cache=False)

    def _synced_recently(self) -> bool:
        if self.state.last_sync_at is None:
            return False
        return self._clock() - self.state.last_sync_at < self.incremental_min_interval

    def _sync(self, page: int, page_size: int) -> dict:
        started = self._clock()
        records = list(self.fetcher.fetch_all())

        total_count = len(records)
        total_pages = math.ceil(total_count / page_size)
        payloads = {
            number: {
                "bookmarks": chunk,
                "total_count": total_count,
                "total_pages": total_pages,
            }
            for number, chunk in enumerate(slice_pages(records, page_size), start=1)
        }
        requested = payloads.pop(
            page,
            {"bookmarks": [], "total_count": total_count, "total_pages": total_pages},
        )
        for number, payload in payloads.items():
            self.cache.set(page_cache_key(number, page_size), payload)
        # Requested page goes in last so a full cache evicts it last.
        self.cache.set(page_cache_key(page, page_size), requested)

        self.state.last_sync_time = utcnow()
        self.state.last_sync_at = self._clock()
        self.state.total_pages = total_pages
        logger.info(
            "Synced %s bookmarks in %.0fms (page %s of %s)",
            total_count,
            (self._clock() - started) * 1000,
            page,
            total_pages,
        )
        return requested

    def _result(self, payload: dict, page: int, from_cache: bool) -> PageResult:
        return PageResult(
            data=payload["bookmarks"],
            total_count=payload["total_count"],
            total_pages=payload["total_pages"],
            current_page=page,
            has_more=page < payload["total_pages"],
            from_cache=from_cache,
            last_sync_time=self.state.last_sync_time,
        )

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Bookmark cache cleared")

    def sweep(self) -> tuple[int, int]:
        return self.cache.sweep(), self.rate_limiter.sweep()
