from __future__ import annotations

import logging
import time

import httpx

from notionlinks.errors import (
    UpstreamNetworkError,
    UpstreamTimeout,
    classify_upstream_status,
)
from notionlinks.models import (
    DEFAULT_TITLE,
    DEFAULT_URL,
    UNCATEGORIZED,
    BookmarkRecord,
    parse_timestamp,
)
from notionlinks.services.common import (
    favicon_url,
    send_with_deadline,
    unique_in_order,
)

logger = logging.getLogger(__name__)


# Property names accepted for each bookmark field, highest priority first.
FIELD_ALIASES = {
    "title": ("Name", "Title", "title", "标题"),
    "url": ("URL", "Url", "url", "Link", "链接"),
    "description": ("Description", "description", "描述"),
    "category": ("Category", "category", "分类"),
    "tags": ("Tags", "tags", "标签"),
}

FIELD_DEFAULTS = {
    "title": DEFAULT_TITLE,
    "url": DEFAULT_URL,
    "description": "",
    "category": UNCATEGORIZED,
    "tags": (),
}

# Value type each field must end up with; "tags" is the only list-valued one.
FIELD_KINDS = {
    "title": str,
    "url": str,
    "description": str,
    "category": str,
    "tags": tuple,
}

_VALUE_KEYS = ("title", "rich_text", "url", "select", "multi_select")


def _normalize_error(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return exc.__class__.__name__


def property_value(prop: dict | None):
    """Plain value of a Notion property: text, url, select name or tag list."""
    if not prop:
        return None
    kind = prop.get("type")
    if kind not in _VALUE_KEYS:
        kind = next((key for key in _VALUE_KEYS if key in prop), None)
    if kind is None:
        return None

    raw = prop.get(kind)
    if kind in {"title", "rich_text"}:
        return "".join(part.get("plain_text") or "" for part in raw or []).strip()
    if kind == "url":
        return (raw or "").strip()
    if kind == "select":
        return ((raw or {}).get("name") or "").strip()
    return unique_in_order((option.get("name") or "").strip() for option in raw or [])


def coerce_value(value, kind: type):
    """Fit a property value to the field's kind, or None when it cannot."""
    if kind is tuple and isinstance(value, str):
        return (value,) if value else None
    if isinstance(value, kind):
        return value
    return None


def resolve_field(properties: dict, field: str):
    kind = FIELD_KINDS[field]
    for alias in FIELD_ALIASES[field]:
        value = coerce_value(property_value(properties.get(alias)), kind)
        if value:
            return value
    return FIELD_DEFAULTS[field]


def normalize_page(page: dict) -> BookmarkRecord:
    properties = page.get("properties") or {}
    url = resolve_field(properties, "url")
    return BookmarkRecord(
        id=page["id"],
        title=resolve_field(properties, "title"),
        url=url,
        description=resolve_field(properties, "description"),
        category=resolve_field(properties, "category"),
        tags=resolve_field(properties, "tags"),
        favicon_url=favicon_url(url),
        created_time=parse_timestamp(page.get("created_time")),
        last_edited_time=parse_timestamp(page.get("last_edited_time")),
    )


class NotionFetcher:
    """Reads every row of a Notion database through cursor pagination."""

    def __init__(
        self,
        token: str,
        database_id: str,
        api_url: str = "https://api.notion.com/v1",
        notion_version: str = "2022-06-28",
        page_size: int = 100,
        max_pages: int = 50,
        page_delay: float = 0.1,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
        sleep=time.sleep,
        clock=time.monotonic,
    ):
        self.database_id = database_id
        self.api_url = api_url.rstrip("/")
        self.page_size = page_size
        self.max_pages = max_pages
        self.page_delay = page_delay
        self.timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Notion-Version": notion_version,
        }
        self._transport = transport
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(cls, config) -> NotionFetcher:
        return cls(
            token=config["NOTION_TOKEN"],
            database_id=config["NOTION_DATABASE_ID"],
            api_url=config["NOTION_API_URL"],
            notion_version=config["NOTION_VERSION"],
            page_size=config["UPSTREAM_PAGE_SIZE"],
            max_pages=config["UPSTREAM_MAX_PAGES"],
            page_delay=config["UPSTREAM_PAGE_DELAY"],
            timeout=config["UPSTREAM_TIMEOUT"],
        )

    @property
    def query_url(self) -> str:
        return f"{self.api_url}/databases/{self.database_id}/query"

    def fetch_all(self) -> list[BookmarkRecord]:
        records: list[BookmarkRecord] = []
        cursor = None
        has_more = True
        page_count = 0

        with httpx.Client(
            timeout=self.timeout, headers=self._headers, transport=self._transport
        ) as client:
            while has_more and page_count < self.max_pages:
                page_count += 1
                logger.debug("Fetching upstream page %s", page_count)
                data = self._query_page(client, cursor)
                results = data.get("results") or []
                records.extend(normalize_page(page) for page in results)

                has_more = bool(data.get("has_more"))
                cursor = data.get("next_cursor")
                if has_more and not cursor:
                    break
                if has_more and self.page_delay:
                    self._sleep(self.page_delay)

        if has_more and page_count >= self.max_pages:
            logger.warning(
                "Stopped after %s upstream pages, cursor chain did not end",
                page_count,
            )
        logger.info(
            "Fetched %s bookmarks from %s upstream pages", len(records), page_count
        )
        return records

    def _query_page(self, client: httpx.Client, cursor: str | None) -> dict:
        body: dict = {"page_size": self.page_size}
        if cursor:
            body["start_cursor"] = cursor

        try:
            response = send_with_deadline(
                client,
                "POST",
                self.query_url,
                self.timeout,
                clock=self._clock,
                json=body,
            )
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(
                f"Notion request timed out: {_normalize_error(exc)}"
            ) from exc
        except httpx.TransportError as exc:
            raise UpstreamNetworkError(
                f"Could not reach Notion: {_normalize_error(exc)}"
            ) from exc

        if response.is_error:
            logger.error(
                "Notion API error (%s): %s", response.status_code, response.text[:500]
            )
            raise classify_upstream_status(response.status_code)
        return response.json()
