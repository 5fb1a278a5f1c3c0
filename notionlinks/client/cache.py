from __future__ import annotations

import time
from urllib.parse import urlencode

from notionlinks.cache import TTLCache


def request_key(url: str, params: dict | None = None) -> str:
    if params:
        url = f"{url}?{urlencode(sorted(params.items()))}"
    return f"api_{url}"


class ClientResponseCache(TTLCache):
    """Response cache kept by API clients, keyed by request identity."""

    def __init__(
        self,
        ttl_seconds: float = 300,
        max_size: int = 100,
        enabled: bool = True,
        clock=time.monotonic,
    ):
        super().__init__(ttl_seconds=ttl_seconds, max_size=max_size, clock=clock)
        self.enabled = enabled

    def get(self, key: str):
        if not self.enabled:
            return None
        return super().get(key)

    def set(self, key: str, payload) -> None:
        if not self.enabled:
            return
        super().set(key, payload)
