"""In-memory filtering of the synced bookmark set.

Filters combine as a conjunction:

* category: ``"all"`` matches everything, otherwise an exact category match;
* tags: every selected tag must be present on the bookmark (AND semantics);
  an empty selection matches everything;
* search: case-insensitive substring of title, description, url, category or
  any tag.

Computed views are cached per filter state and the cache is dropped whenever a
new bookmark set is loaded.
"""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field

from notionlinks.cache import TTLCache
from notionlinks.models import UNCATEGORIZED, BookmarkRecord

ALL_CATEGORIES = "all"


@dataclass
class FilterState:
    category: str = ALL_CATEGORIES
    tags: set[str] = field(default_factory=set)
    search_text: str = ""

    def cache_key(self) -> str:
        return f"{self.category}|{','.join(sorted(self.tags))}|{self.search_text}"


@dataclass
class CategoryGroup:
    category: str
    bookmarks: list[BookmarkRecord]


def _safe(value: str | None) -> str:
    return (value or "").strip()


def matches_search(bookmark: BookmarkRecord, query: str) -> bool:
    if not query:
        return True
    fields = (bookmark.title, bookmark.description, bookmark.url, bookmark.category)
    if any(query in _safe(value).lower() for value in fields):
        return True
    return any(query in tag.lower() for tag in bookmark.tags)


def group_by_category(bookmarks: list[BookmarkRecord]) -> list[CategoryGroup]:
    groups: dict[str, list[BookmarkRecord]] = {}
    for bookmark in bookmarks:
        groups.setdefault(bookmark.category or UNCATEGORIZED, []).append(bookmark)

    ordered = sorted(
        groups, key=lambda name: (name == UNCATEGORIZED, name.casefold(), name)
    )
    return [CategoryGroup(category=name, bookmarks=groups[name]) for name in ordered]


class QueryEngine:
    def __init__(
        self,
        group_by_category: bool = True,
        cache_ttl: float = 300,
        cache_size: int = 100,
        clock=time.monotonic,
    ):
        self.group_by_category = group_by_category
        self.filters = FilterState()
        self._bookmarks: list[BookmarkRecord] = []
        self._views = TTLCache(ttl_seconds=cache_ttl, max_size=cache_size, clock=clock)

    @property
    def bookmarks(self) -> list[BookmarkRecord]:
        return self._bookmarks

    def set_bookmarks(self, records) -> None:
        self._bookmarks = list(records)
        self._views.clear()

    def set_category(self, category: str) -> None:
        self.filters.category = category or ALL_CATEGORIES

    def set_tags(self, tags) -> None:
        if isinstance(tags, str):
            tags = [tags]
        self.filters.tags = set(tags)

    def add_tag(self, tag: str) -> None:
        self.filters.tags.add(tag)

    def remove_tag(self, tag: str) -> None:
        self.filters.tags.discard(tag)

    def toggle_tag(self, tag: str) -> None:
        if tag in self.filters.tags:
            self.remove_tag(tag)
        else:
            self.add_tag(tag)

    def clear_tags(self) -> None:
        self.filters.tags = set()

    def set_search_text(self, text: str) -> None:
        self.filters.search_text = _safe(text).lower()

    def reset_filters(self) -> None:
        self.filters = FilterState()

    def _matches(self, bookmark: BookmarkRecord) -> bool:
        state = self.filters
        if state.category != ALL_CATEGORIES and bookmark.category != state.category:
            return False
        if state.tags and not bookmark.has_tags(state.tags):
            return False
        return matches_search(bookmark, state.search_text)

    def filtered_bookmarks(self) -> list[BookmarkRecord]:
        return [bookmark for bookmark in self._bookmarks if self._matches(bookmark)]

    def get_filtered_view(self):
        """Grouped (or flat) view for the current filters, reused while cached."""
        key = self.filters.cache_key()
        cached = self._views.get(key)
        if cached is not None:
            return cached

        filtered = self.filtered_bookmarks()
        if not self.group_by_category:
            view = filtered
        elif self.filters.category == ALL_CATEGORIES:
            view = group_by_category(filtered)
        else:
            view = [CategoryGroup(category=self.filters.category, bookmarks=filtered)]

        self._views.set(key, view)
        return view

    def categories(self) -> list[str]:
        return sorted(
            {bookmark.category for bookmark in self._bookmarks if bookmark.category}
        )

    def tags_with_count(self) -> list[tuple[str, int]]:
        counts = Counter(tag for bookmark in self._bookmarks for tag in bookmark.tags)
        return counts.most_common()

    def find_by_id(self, bookmark_id: str) -> BookmarkRecord | None:
        return next(
            (bookmark for bookmark in self._bookmarks if bookmark.id == bookmark_id),
            None,
        )

    def stats(self) -> dict:
        return {
            "total": len(self._bookmarks),
            "filtered": len(self.filtered_bookmarks()),
            "categories": len(self.categories()),
            "tags": len(self.tags_with_count()),
        }

    def export_state(self) -> dict:
        return {
            "bookmarks": [bookmark.as_dict() for bookmark in self._bookmarks],
            "filters": {
                "category": self.filters.category,
                "tags": sorted(self.filters.tags),
                "search": self.filters.search_text,
            },
            "timestamp": time.time(),
        }

    def import_state(self, data: dict) -> None:
        if data.get("bookmarks") is not None:
            self.set_bookmarks(
                BookmarkRecord.from_dict(item) for item in data["bookmarks"]
            )
        filters = data.get("filters")
        if filters:
            self.filters = FilterState(
                category=filters.get("category") or ALL_CATEGORIES,
                tags=set(filters.get("tags") or []),
                search_text=_safe(filters.get("search")).lower(),
            )
