"""HTTP fetcher with timeout and optional UA rotation.

Provides a small `Fetcher` object exposing `get` and `stream_get`. No retry
adapter is mounted: a failed request is reported once and never retried.
"""

from __future__ import annotations

import random
from typing import Dict, Optional

import requests
from requests.adapters import HTTPAdapter

from regex_download.core.errors import FetchError

DEFAULT_UA_POOL = [
    "Mozilla/5.0 (compatible; RegexDownload/0.1; +https://example.org/bot)",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
]


class Fetcher:
    """Small HTTP client with sensible defaults for scraping.

    Usage:
        f = Fetcher(timeout=15)
        resp = f.stream_get(url)

    One instance per worker: requests sessions are not shared across threads.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        ua_pool: Optional[list[str]] = None,
    ) -> None:
        self.timeout = timeout
        self.session = requests.Session()
        adapter = HTTPAdapter(max_retries=0)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)
        self.ua_pool = ua_pool or DEFAULT_UA_POOL

    def _headers(self, headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        base = {"User-Agent": random.choice(self.ua_pool)}
        if headers:
            base.update(headers)
        return base

    def get(self, url: str, headers: Optional[Dict[str, str]] = None, **kwargs):
        return self.session.get(
            url, headers=self._headers(headers), timeout=self.timeout, **kwargs
        )

    def stream_get(self, url: str, headers: Optional[Dict[str, str]] = None, **kwargs):
        # Streamed GET: the body is consumed chunk by chunk by the caller
        return self.session.get(
            url,
            headers=self._headers(headers),
            timeout=self.timeout,
            stream=True,
            **kwargs,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def status_error(resp) -> FetchError:
    reason = getattr(resp, "reason", "") or ""
    return FetchError(f"bad status: {resp.status_code} {reason}".rstrip())
