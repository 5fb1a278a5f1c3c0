import pytest

from notionlinks import create_app
from notionlinks.config import TestConfig
from notionlinks.models import BookmarkRecord


class FakeFetcher:
    def __init__(self, records=None, error=None):
        self.records = list(records or [])
        self.error = error
        self.calls = 0

    def fetch_all(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


def make_record(
    record_id: str,
    title: str = "",
    category: str = "Uncategorized",
    tags=(),
    url: str = "https://example.com",
    description: str = "",
):
    return BookmarkRecord(
        id=record_id,
        title=title or f"Bookmark {record_id}",
        url=url,
        description=description,
        category=category,
        tags=tuple(tags),
    )


@pytest.fixture
def fetcher():
    return FakeFetcher([make_record(str(index)) for index in range(1, 6)])


@pytest.fixture
def app(fetcher):
    app = create_app(TestConfig, fetcher=fetcher)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()
