"""Small stand-ins for requests objects so tests never touch the network."""

from __future__ import annotations

from typing import Dict, List, Optional

import requests


class DummyResponse:
    def __init__(self, body: bytes = b"", status_code: int = 200, reason: str = "OK"):
        self.body = body
        self.status_code = status_code
        self.reason = reason
        self.closed = False

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self.body), chunk_size):
            yield self.body[start : start + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True


class FakeFetcher:
    """Serves canned responses keyed by URL and records every request.

    A value that is an exception instance is raised instead of returned.
    """

    def __init__(self, responses: Optional[Dict[str, object]] = None):
        self.responses = responses or {}
        self.requested: List[str] = []

    def stream_get(self, url: str, **kwargs):
        self.requested.append(url)
        if url not in self.responses:
            raise requests.ConnectionError(f"no route to {url}")
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response

    get = stream_get
