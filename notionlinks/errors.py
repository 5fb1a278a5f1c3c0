"""Error taxonomy shared by the server and the client package.

Every error carries the wire ``code`` used in JSON envelopes and the HTTP
``status_code`` the API answers with.
"""

from __future__ import annotations


class NotionLinksError(Exception):
    code = "UNKNOWN_ERROR"
    status_code = 500
    default_message = "An unknown error occurred while loading bookmarks."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self) -> dict:
        return {"success": False, "error": self.code, "message": self.message}


class UpstreamError(NotionLinksError):
    code = "UPSTREAM_ERROR"
    default_message = "The Notion API returned an unexpected error."

    def __init__(self, message: str | None = None, status: int | None = None):
        self.status = status
        if message is None and status is not None and type(self) is UpstreamError:
            message = f"Notion API error: {status}"
        super().__init__(message)


class AuthInvalid(UpstreamError):
    code = "INVALID_TOKEN"
    status_code = 401
    default_message = "The Notion API token is invalid or expired."


class PermissionDenied(UpstreamError):
    code = "PERMISSION_DENIED"
    status_code = 403
    default_message = "No permission to access the Notion database."


class StoreNotFound(UpstreamError):
    code = "DATABASE_NOT_FOUND"
    status_code = 404
    default_message = "The Notion database does not exist or the id is wrong."


class UpstreamRateLimited(UpstreamError):
    code = "UPSTREAM_RATE_LIMITED"
    status_code = 429
    default_message = "Notion API rate limit exceeded, try again later."


class UpstreamUnavailable(UpstreamError):
    code = "SERVICE_UNAVAILABLE"
    status_code = 503
    default_message = "The Notion servers are temporarily unavailable."


class UpstreamTimeout(UpstreamError):
    code = "REQUEST_TIMEOUT"
    status_code = 408
    default_message = "The request to Notion timed out."


class UpstreamNetworkError(UpstreamError):
    code = "NETWORK_ERROR"
    status_code = 503
    default_message = "Could not reach the Notion API."


class RateLimited(NotionLinksError):
    code = "RATE_LIMITED"
    status_code = 429
    default_message = "Too many requests, try again later."


class SyncInProgress(NotionLinksError):
    code = "SYNC_IN_PROGRESS"
    status_code = 409
    default_message = "A sync is already running, try again later."


_STATUS_ERRORS = {
    401: AuthInvalid,
    403: PermissionDenied,
    404: StoreNotFound,
    429: UpstreamRateLimited,
}


def classify_upstream_status(status_code: int) -> UpstreamError:
    error_cls = _STATUS_ERRORS.get(status_code)
    if error_cls is not None:
        return error_cls(status=status_code)
    if status_code >= 500:
        return UpstreamUnavailable(status=status_code)
    return UpstreamError(status=status_code)


# Client-side request failure kinds.
KIND_TIMEOUT = "timeout"
KIND_NETWORK = "network"
KIND_SERVER = "server"
KIND_CLIENT = "client"
KIND_OFFLINE = "offline"
KIND_UNKNOWN = "unknown"

RETRYABLE_KINDS = {KIND_TIMEOUT, KIND_NETWORK, KIND_SERVER}

_USER_MESSAGES = {
    KIND_TIMEOUT: "The request timed out, retrying...",
    KIND_NETWORK: "Network connection failed, retrying...",
    KIND_SERVER: "The server is temporarily unavailable, retrying...",
    KIND_CLIENT: "The request was rejected, check the configuration.",
    KIND_OFFLINE: "You are offline, check your network settings.",
    KIND_UNKNOWN: "Network error, try again later.",
}


class RequestFailed(NotionLinksError):
    """A classified client-side request failure."""

    def __init__(
        self,
        kind: str,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.code = kind
        self.retryable = kind in RETRYABLE_KINDS
        self.user_message = _USER_MESSAGES.get(kind, _USER_MESSAGES[KIND_UNKNOWN])
        self.http_status = status_code
        self.error_code = error_code

    def as_dict(self) -> dict:
        return {
            "kind": self.kind,
            "message": self.message,
            "retryable": self.retryable,
            "userMessage": self.user_message,
        }
