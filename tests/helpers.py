"""
Test doubles and helpers shared by the site mapper tests.
"""

from __future__ import annotations

import asyncio
import socket
from collections import Counter
from typing import Dict, Iterable, Optional

from sitemapper.crawler.fetcher import FetchOutcome, FetchResult


SEED = "http://example.com"


class FakeFetcher:
    """In-memory stand-in for WebFetcher.

    pages maps URL to HTML; URLs in errors fail at the transport level,
    URLs in raises blow up with RuntimeError, anything else is a 404.
    """

    def __init__(self, pages: Dict[str, str], errors: Iterable[str] = (),
                 raises: Iterable[str] = (), delay: float = 0.0):
        self.pages = pages
        self.errors = set(errors)
        self.raises = set(raises)
        self.delay = delay
        self.calls: Counter = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, url: str) -> FetchResult:
        self.calls[url] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1

        if url in self.raises:
            raise RuntimeError(f"boom: {url}")
        if url in self.errors:
            return FetchResult(url=url, outcome=FetchOutcome.TRANSPORT_ERROR, error="Connection refused")
        if url not in self.pages:
            return FetchResult(url=url, outcome=FetchOutcome.SKIP, status_code=404)
        return FetchResult(
            url=url,
            outcome=FetchOutcome.SUCCESS,
            status_code=200,
            body=self.pages[url].encode("utf-8"),
        )


def page(*hrefs: str, srcs: Optional[Iterable[str]] = None) -> str:
    """Build a small HTML page with the given links and images."""
    anchors = "".join(f'<a href="{href}">x</a>' for href in hrefs)
    images = "".join(f'<img src="{src}">' for src in (srcs or ()))
    return f"<html><body>{anchors}{images}</body></html>"


def unused_port() -> int:
    """Return a local port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


