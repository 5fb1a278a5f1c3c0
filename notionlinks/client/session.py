from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable

from notionlinks.client.api import BookmarksApi
from notionlinks.client.query import QueryEngine
from notionlinks.errors import KIND_OFFLINE, RequestFailed

logger = logging.getLogger(__name__)

LEVEL_INFO = "info"
LEVEL_SUCCESS = "success"
LEVEL_WARNING = "warning"
LEVEL_ERROR = "error"

# Server error codes caused by misconfiguration; retrying cannot fix them.
BLOCKING_ERROR_CODES = {"INVALID_TOKEN", "PERMISSION_DENIED", "DATABASE_NOT_FOUND"}
RESCHEDULE_ERROR_CODES = {"SYNC_IN_PROGRESS"}


@dataclass(frozen=True)
class Notice:
    level: str
    message: str
    blocking: bool = False


class BookmarkSession:
    """Drives the API client and the query engine for one interactive user."""

    def __init__(
        self,
        api: BookmarksApi,
        engine: QueryEngine | None = None,
        on_notice: Callable[[Notice], None] | None = None,
        search_delay: float = 0.3,
        max_auto_retries: int = 3,
        retry_step: float = 2.0,
        max_retry_delay: float = 10.0,
        timer_factory=threading.Timer,
    ):
        self.api = api
        self.engine = engine or QueryEngine()
        self.site_config: dict | None = None
        self.last_notice: Notice | None = None
        self.search_delay = search_delay
        self.max_auto_retries = max_auto_retries
        self.retry_step = retry_step
        self.max_retry_delay = max_retry_delay
        self.retry_count = 0
        self._on_notice = on_notice
        self._timer_factory = timer_factory
        self._search_timer = None
        self._retry_timer = None
        self._sync_lock = threading.Lock()

    @property
    def is_syncing(self) -> bool:
        return self._sync_lock.locked()

    def _notify(self, level: str, message: str, blocking: bool = False) -> None:
        notice = Notice(level=level, message=message, blocking=blocking)
        self.last_notice = notice
        if self._on_notice is not None:
            self._on_notice(notice)

    def load(self) -> bool:
        self.site_config = self.api.get_site_config()
        try:
            bookmarks = self.api.get_bookmarks()
        except RequestFailed as error:
            self._handle_load_error(error)
            return False
        self.engine.set_bookmarks(bookmarks)
        self.retry_count = 0
        return True

    def sync(self) -> bool:
        """Force a refresh from the server; refused while one is running."""
        if not self._sync_lock.acquire(blocking=False):
            logger.info("Sync already running, ignoring request")
            return False
        try:
            bookmarks = self.api.get_bookmarks(force_refresh=True)
        except RequestFailed as error:
            logger.error("Sync failed: %s", error.message)
            self._notify(LEVEL_ERROR, f"Sync failed: {error.user_message}")
            return False
        finally:
            self._sync_lock.release()

        self.engine.set_bookmarks(bookmarks)
        self._notify(LEVEL_SUCCESS, "Bookmarks synced.")
        return True

    def search(self, text: str) -> None:
        if self._search_timer is not None:
            self._search_timer.cancel()
        self._search_timer = self._timer_factory(
            self.search_delay, self.engine.set_search_text, args=(text,)
        )
        self._search_timer.start()

    def _handle_load_error(self, error: RequestFailed) -> None:
        logger.error("Loading bookmarks failed (%s): %s", error.kind, error.message)
        self.engine.set_bookmarks([])

        if error.error_code in BLOCKING_ERROR_CODES:
            self._notify(LEVEL_ERROR, error.message, blocking=True)
            return

        level = LEVEL_WARNING if error.kind == KIND_OFFLINE else LEVEL_INFO
        self._notify(level, error.user_message)

        can_retry = error.retryable or error.error_code in RESCHEDULE_ERROR_CODES
        if can_retry and self.retry_count < self.max_auto_retries:
            self.schedule_retry()
        elif can_retry:
            self._notify(
                LEVEL_ERROR,
                "Loading failed after several retries, check the connection.",
            )

    def schedule_retry(self) -> float:
        self.retry_count += 1
        delay = min(self.retry_step * self.retry_count, self.max_retry_delay)
        logger.info("Scheduling reload %s in %.1fs", self.retry_count, delay)
        self._retry_timer = self._timer_factory(delay, self.load)
        self._retry_timer.start()
        return delay

    def close(self) -> None:
        for timer in (self._search_timer, self._retry_timer):
            if timer is not None:
                timer.cancel()
        self.api.close()
