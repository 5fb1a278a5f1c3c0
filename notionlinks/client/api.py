from __future__ import annotations

import logging
import time

from notionlinks.client.cache import ClientResponseCache, request_key
from notionlinks.client.transport import RetryingTransport
from notionlinks.errors import KIND_SERVER, RequestFailed
from notionlinks.models import BookmarkRecord

logger = logging.getLogger(__name__)

BOOKMARKS_ENDPOINT = "/api/bookmarks"
CONFIG_ENDPOINT = "/api/config"
HEALTH_ENDPOINT = "/api/health"


class BookmarksApi:
    """Client for the NotionLinks HTTP API."""

    def __init__(
        self,
        transport: RetryingTransport,
        cache: ClientResponseCache | None = None,
        page_size: int = 100,
    ):
        self.transport = transport
        self.cache = cache if cache is not None else ClientResponseCache()
        self.page_size = page_size

    def close(self) -> None:
        self.transport.close()

    def check_network_status(self) -> dict:
        return self.transport.network_status.snapshot()

    def get_site_config(self) -> dict | None:
        try:
            payload = self.transport.get(CONFIG_ENDPOINT).json()
        except RequestFailed as exc:
            logger.error("Failed to load site config: %s", exc.message)
            return None
        return payload.get("data") if payload.get("success") else None

    def get_bookmarks(self, force_refresh: bool = False) -> list[BookmarkRecord]:
        key = request_key(BOOKMARKS_ENDPOINT, {"limit": self.page_size})
        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.info("Using cached bookmarks")
                return cached

        records: list[BookmarkRecord] = []
        page = 1
        while True:
            params = {"page": page, "limit": self.page_size}
            if force_refresh and page == 1:
                params["force_refresh"] = "true"
            payload = self.transport.get(BOOKMARKS_ENDPOINT, params=params).json()
            if not payload.get("success"):
                raise RequestFailed(
                    KIND_SERVER,
                    payload.get("message") or "Failed to load bookmarks",
                    error_code=payload.get("error"),
                )
            records.extend(BookmarkRecord.from_dict(item) for item in payload["data"])
            if not payload.get("hasMore"):
                break
            page += 1

        self.cache.set(key, records)
        return records

    def health_check(self) -> bool:
        try:
            self.transport.get(HEALTH_ENDPOINT)
        except RequestFailed as exc:
            logger.error("Health check failed: %s", exc.message)
            return False
        return True

    def test_connection(self) -> dict:
        started = time.monotonic()
        try:
            response = self.transport.get(HEALTH_ENDPOINT)
        except RequestFailed as exc:
            return {"success": False, "error": exc.message, "type": exc.kind}
        return {
            "success": True,
            "latency": int((time.monotonic() - started) * 1000),
            "status": response.status_code,
        }
