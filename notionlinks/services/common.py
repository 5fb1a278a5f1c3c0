import time
from urllib.parse import urlparse

import httpx


def send_with_deadline(
    client: httpx.Client,
    method: str,
    url: str,
    timeout: float,
    clock=time.monotonic,
    **kwargs,
) -> httpx.Response:
    """Send a request and read its body, failing once ``timeout`` seconds pass.

    httpx timeouts bound each socket operation separately, so a body that
    trickles in slowly never trips them. The elapsed time is checked against
    the whole exchange instead and ``httpx.ReadTimeout`` is raised past it.
    """
    started = clock()
    request = client.build_request(method, url, **kwargs)

    def check_deadline():
        if clock() - started > timeout:
            raise httpx.ReadTimeout(
                f"No complete response after {timeout}s", request=request
            )

    response = client.send(request, stream=True)
    try:
        check_deadline()
        chunks = []
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            check_deadline()
    finally:
        response.close()

    # iter_bytes already decoded the body.
    headers = response.headers.copy()
    for name in ("content-encoding", "content-length", "transfer-encoding"):
        headers.pop(name, None)
    return httpx.Response(
        response.status_code,
        headers=headers,
        content=b"".join(chunks),
        request=request,
    )


def favicon_url(url: str) -> str:
    if not url:
        return ""
    try:
        host = urlparse(url.strip()).hostname
    except ValueError:
        return ""
    if not host:
        return ""
    return f"https://{host}/favicon.ico"


def to_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def unique_in_order(values) -> tuple[str, ...]:
    return tuple(dict.fromkeys(value for value in values if value))
