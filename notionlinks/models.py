from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from dateutil import parser as dt_parser


DEFAULT_TITLE = "Untitled"
DEFAULT_URL = "#"
UNCATEGORIZED = "Uncategorized"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return dt_parser.isoparse(value)
    except (TypeError, ValueError):
        return None


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class BookmarkRecord:
    """Read-only mirror of one upstream bookmark row."""

    id: str
    title: str = DEFAULT_TITLE
    url: str = DEFAULT_URL
    description: str = ""
    category: str = UNCATEGORIZED
    tags: tuple[str, ...] = field(default_factory=tuple)
    favicon_url: str = ""
    created_time: datetime | None = None
    last_edited_time: datetime | None = None

    def has_tags(self, tags) -> bool:
        return set(tags).issubset(self.tags)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags),
            "faviconUrl": self.favicon_url,
            "createdTime": _isoformat(self.created_time),
            "lastEditedTime": _isoformat(self.last_edited_time),
        }

    @classmethod
    def from_dict(cls, payload: dict) -> BookmarkRecord:
        tags = payload.get("tags") or []
        return cls(
            id=str(payload["id"]),
            title=payload.get("title") or DEFAULT_TITLE,
            url=payload.get("url") or DEFAULT_URL,
            description=payload.get("description") or "",
            category=payload.get("category") or UNCATEGORIZED,
            tags=tuple(dict.fromkeys(str(tag) for tag in tags)),
            favicon_url=payload.get("faviconUrl") or "",
            created_time=parse_timestamp(payload.get("createdTime")),
            last_edited_time=parse_timestamp(payload.get("lastEditedTime")),
        )
