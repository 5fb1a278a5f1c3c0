from __future__ import annotations

import time

from flask import current_app, g, jsonify, request
from werkzeug.exceptions import HTTPException

from notionlinks.api import api_bp
from notionlinks.errors import NotionLinksError
from notionlinks.models import utcnow
from notionlinks.services.common import to_bool, to_int


def _coordinator():
    return current_app.extensions["notionlinks"]


def _response_time() -> int:
    started = g.get("request_started", time.monotonic())
    return int((time.monotonic() - started) * 1000)


def _client_identity() -> str:
    return request.remote_addr or "unknown"


def _isoformat(value):
    return value.isoformat() if value else None


@api_bp.errorhandler(NotionLinksError)
def handle_domain_error(error: NotionLinksError):
    current_app.logger.warning(
        "%s %s failed with %s: %s",
        request.method,
        request.path,
        error.code,
        error.message,
    )
    payload = error.as_dict()
    payload["responseTime"] = _response_time()
    return jsonify(payload), error.status_code


@api_bp.errorhandler(Exception)
def handle_unexpected_error(error: Exception):
    if isinstance(error, HTTPException):
        return error
    current_app.logger.exception("Unhandled error on %s", request.path)
    return (
        jsonify(
            {
                "success": False,
                "error": "UNKNOWN_ERROR",
                "message": "An unknown error occurred while loading bookmarks.",
                "responseTime": _response_time(),
            }
        ),
        500,
    )


@api_bp.route("/config", methods=["GET"])
def site_config():
    return jsonify(
        {"success": True, "data": {"siteTitle": current_app.config["SITE_TITLE"]}}
    )


@api_bp.route("/bookmarks", methods=["GET"])
def list_bookmarks():
    config = current_app.config
    page = max(1, to_int(request.args.get("page"), 1))
    limit = to_int(request.args.get("limit"), config["DEFAULT_PAGE_SIZE"])
    limit = min(max(1, limit), config["MAX_PAGE_SIZE"])
    force_refresh = to_bool(request.args.get("force_refresh"))
    incremental = to_bool(request.args.get("incremental"))

    current_app.logger.info(
        "Fetching bookmarks (page=%s, limit=%s, force_refresh=%s, incremental=%s)",
        page,
        limit,
        force_refresh,
        incremental,
    )
    result = _coordinator().get_bookmarks(
        _client_identity(),
        page=page,
        page_size=limit,
        force_refresh=force_refresh,
        incremental=incremental,
    )

    if result.not_modified:
        return "", 304

    payload = {
        "success": True,
        "data": [record.as_dict() for record in result.data],
        "count": result.count,
        "totalCount": result.total_count,
        "totalPages": result.total_pages,
        "currentPage": result.current_page,
        "hasMore": result.has_more,
        "lastSyncTime": _isoformat(result.last_sync_time),
        "responseTime": _response_time(),
    }
    if result.from_cache:
        payload["fromCache"] = True
    return jsonify(payload)


@api_bp.route("/health", methods=["GET"])
def health():
    coordinator = _coordinator()
    return jsonify(
        {
            "success": True,
            "message": "Service is running",
            "timestamp": utcnow().isoformat(),
            "cacheSize": len(coordinator.cache),
            "lastSyncTime": _isoformat(coordinator.state.last_sync_time),
            "isSyncing": coordinator.is_syncing,
        }
    )


@api_bp.route("/cache/clear", methods=["POST"])
def clear_cache():
    _coordinator().clear_cache()
    return jsonify(
        {
            "success": True,
            "message": "Cache cleared",
            "timestamp": utcnow().isoformat(),
        }
    )
