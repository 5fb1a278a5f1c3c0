import pytest

from notionlinks import create_app
from notionlinks.config import ConfigError, TestConfig
from notionlinks.errors import (
    AuthInvalid,
    StoreNotFound,
    UpstreamTimeout,
    UpstreamUnavailable,
)

from conftest import FakeFetcher, make_record


def test_config_endpoint_returns_site_title(client):
    response = client.get("/api/config")

    assert response.status_code == 200
    assert response.get_json() == {
        "success": True,
        "data": {"siteTitle": "NotionLinks"},
    }


def test_bookmarks_endpoint_pages_and_caches(client, fetcher):
    response = client.get("/api/bookmarks?page=1&limit=2")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["success"] is True
    assert [item["id"] for item in payload["data"]] == ["1", "2"]
    assert payload["count"] == 2
    assert payload["totalCount"] == 5
    assert payload["totalPages"] == 3
    assert payload["currentPage"] == 1
    assert payload["hasMore"] is True
    assert "fromCache" not in payload
    assert isinstance(payload["responseTime"], int)

    response = client.get("/api/bookmarks?page=1&limit=2")
    cached = response.get_json()
    assert cached["fromCache"] is True
    assert cached["data"] == payload["data"]
    assert fetcher.calls == 1


def test_bookmark_payload_shape(client):
    item = client.get("/api/bookmarks").get_json()["data"][0]

    assert set(item) == {
        "id",
        "title",
        "url",
        "description",
        "category",
        "tags",
        "faviconUrl",
        "createdTime",
        "lastEditedTime",
    }


def test_limit_is_clamped_and_bad_values_fall_back(client, app):
    app.config["MAX_PAGE_SIZE"] = 3

    payload = client.get("/api/bookmarks?limit=500&page=abc").get_json()

    assert payload["count"] == 3
    assert payload["currentPage"] == 1
    assert payload["totalPages"] == 2


def test_force_refresh_refetches(client, fetcher):
    client.get("/api/bookmarks")
    response = client.get("/api/bookmarks?force_refresh=true")

    assert response.status_code == 200
    assert "fromCache" not in response.get_json()
    assert fetcher.calls == 2


def test_incremental_request_after_recent_sync_is_not_modified(client, fetcher):
    client.get("/api/bookmarks?limit=10")
    response = client.get("/api/bookmarks?limit=20&incremental=true")

    assert response.status_code == 304
    assert fetcher.calls == 1


def test_local_rate_limit_returns_429():
    class LimitedConfig(TestConfig):
        RATE_LIMIT_MAX_REQUESTS = 2

    app = create_app(LimitedConfig, fetcher=FakeFetcher([make_record("1")]))
    client = app.test_client()

    assert client.get("/api/bookmarks").status_code == 200
    assert client.get("/api/bookmarks").status_code == 200
    response = client.get("/api/bookmarks")

    assert response.status_code == 429
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"] == "RATE_LIMITED"
    assert "responseTime" in payload


def test_sync_in_progress_returns_409(client, app):
    coordinator = app.extensions["notionlinks"]
    coordinator._sync_lock.acquire()
    try:
        response = client.get("/api/bookmarks")
    finally:
        coordinator._sync_lock.release()

    assert response.status_code == 409
    assert response.get_json()["error"] == "SYNC_IN_PROGRESS"


@pytest.mark.parametrize(
    "error, status, code",
    [
        (AuthInvalid(status=401), 401, "INVALID_TOKEN"),
        (StoreNotFound(status=404), 404, "DATABASE_NOT_FOUND"),
        (UpstreamUnavailable(status=502), 503, "SERVICE_UNAVAILABLE"),
        (UpstreamTimeout(), 408, "REQUEST_TIMEOUT"),
    ],
)
def test_upstream_errors_map_to_envelopes(error, status, code):
    app = create_app(TestConfig, fetcher=FakeFetcher(error=error))

    response = app.test_client().get("/api/bookmarks")

    assert response.status_code == status
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"] == code
    assert payload["message"]


def test_unexpected_error_returns_unknown_error():
    app = create_app(TestConfig, fetcher=FakeFetcher(error=ValueError("boom")))

    response = app.test_client().get("/api/bookmarks")

    assert response.status_code == 500
    assert response.get_json()["error"] == "UNKNOWN_ERROR"


def test_health_reports_cache_size_and_last_sync(client):
    payload = client.get("/api/health").get_json()
    assert payload["success"] is True
    assert payload["cacheSize"] == 0
    assert payload["lastSyncTime"] is None

    client.get("/api/bookmarks")
    payload = client.get("/api/health").get_json()
    assert payload["cacheSize"] == 1
    assert payload["lastSyncTime"] is not None


def test_clear_cache_forces_next_request_upstream(client, fetcher):
    client.get("/api/bookmarks")

    response = client.post("/api/cache/clear")
    assert response.status_code == 200
    assert response.get_json()["success"] is True

    assert "fromCache" not in client.get("/api/bookmarks").get_json()
    assert fetcher.calls == 2


def test_unknown_api_path_returns_json_404(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.get_json()["error"] == "NOT_FOUND"


def test_missing_credentials_are_fatal_at_startup():
    class MissingConfig(TestConfig):
        NOTION_TOKEN = None

    with pytest.raises(ConfigError):
        create_app(MissingConfig, fetcher=FakeFetcher())


def test_sync_cli_command_runs_forced_sync(app, fetcher):
    result = app.test_cli_runner().invoke(args=["sync"])

    assert result.exit_code == 0
    assert "Synced 5 bookmarks" in result.output
    assert fetcher.calls == 1


def test_health_reports_sync_while_guard_is_held(client, app):
    coordinator = app.extensions["notionlinks"]
    coordinator._sync_lock.acquire()
    try:
        payload = client.get("/api/health").get_json()
    finally:
        coordinator._sync_lock.release()

    assert payload["isSyncing"] is True
    assert client.get("/api/health").get_json()["isSyncing"] is False
