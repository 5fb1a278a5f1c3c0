"""Retrying HTTP transport for talking to the NotionLinks API.

Each attempt must finish within a fixed total duration. Failures are classified
into request failure kinds; timeouts, connectivity failures and 5xx answers are
retried with exponential backoff, everything else is raised to the caller
straight away.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

import httpx

from notionlinks.errors import (
    KIND_CLIENT,
    KIND_NETWORK,
    KIND_OFFLINE,
    KIND_SERVER,
    KIND_TIMEOUT,
    RequestFailed,
)
from notionlinks.services.common import send_with_deadline

logger = logging.getLogger(__name__)


@dataclass
class NetworkStatus:
    is_online: bool = True
    last_check: float = field(default_factory=time.time)

    def mark_online(self) -> None:
        self.is_online = True
        self.last_check = time.time()
        logger.info("Network connection restored")

    def mark_offline(self) -> None:
        self.is_online = False
        self.last_check = time.time()
        logger.warning("Network connection lost")

    def snapshot(self) -> dict:
        return {
            "isOnline": self.is_online,
            "lastCheck": self.last_check,
            "timeSinceLastCheck": time.time() - self.last_check,
        }


def _error_code(response: httpx.Response) -> str | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        return payload.get("error")
    return None


def classify_response(response: httpx.Response) -> RequestFailed | None:
    status = response.status_code
    if status >= 500:
        return RequestFailed(
            KIND_SERVER,
            f"HTTP {status}: {response.reason_phrase}",
            status_code=status,
            error_code=_error_code(response),
        )
    if status >= 400:
        return RequestFailed(
            KIND_CLIENT,
            f"HTTP {status}: {response.reason_phrase}",
            status_code=status,
            error_code=_error_code(response),
        )
    return None


class RetryingTransport:
    def __init__(
        self,
        base_url: str = "",
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        backoff_multiplier: float = 2.0,
        network_status: NetworkStatus | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.backoff_multiplier = backoff_multiplier
        self.network_status = network_status or NetworkStatus()
        self._sleep = sleep
        self._clock = clock
        self._client = httpx.Client(
            base_url=base_url, timeout=timeout, transport=transport
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def delay_for(self, attempt: int) -> float:
        return self.retry_delay * self.backoff_multiplier**attempt

    def get(self, url: str, **kwargs) -> httpx.Response:
        return self.send("GET", url, **kwargs)

    def send(self, method: str, url: str, **kwargs) -> httpx.Response:
        attempt = 0
        while True:
            try:
                return self._send_once(method, url, **kwargs)
            except RequestFailed as error:
                if not error.retryable or attempt >= self.max_retries:
                    logger.warning(
                        "%s %s failed (%s): %s", method, url, error.kind, error.message
                    )
                    raise
                delay = self.delay_for(attempt)
                attempt += 1
                logger.info(
                    "Retry %s for %s %s in %.2fs: %s",
                    attempt,
                    method,
                    url,
                    delay,
                    error.message,
                )
                self._sleep(delay)

    def _send_once(self, method: str, url: str, **kwargs) -> httpx.Response:
        if not self.network_status.is_online:
            raise RequestFailed(KIND_OFFLINE, "Network connection is offline")

        try:
            response = send_with_deadline(
                self._client, method, url, self.timeout, clock=self._clock, **kwargs
            )
        except httpx.TimeoutException as exc:
            raise RequestFailed(KIND_TIMEOUT, "Request timed out") from exc
        except httpx.TransportError as exc:
            raise RequestFailed(
                KIND_NETWORK, f"Network connection failed: {exc}"
            ) from exc

        error = classify_response(response)
        if error is not None:
            raise error
        return response
