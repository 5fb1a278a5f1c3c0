from notionlinks.client.api import BookmarksApi
from notionlinks.client.cache import ClientResponseCache
from notionlinks.client.query import CategoryGroup, FilterState, QueryEngine
from notionlinks.client.session import BookmarkSession, Notice
from notionlinks.client.transport import NetworkStatus, RetryingTransport

__all__ = [
    "BookmarkSession",
    "BookmarksApi",
    "CategoryGroup",
    "ClientResponseCache",
    "FilterState",
    "NetworkStatus",
    "Notice",
    "QueryEngine",
    "RetryingTransport",
]
