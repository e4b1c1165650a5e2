"""
Web page fetcher that turns HTTP responses into crawl outcomes.
"""

import asyncio
import aiohttp
import logging
import time
from enum import Enum
from typing import Optional, Dict
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError

from ..exceptions import SeedResolutionError


class FetchOutcome(Enum):
    """How a fetch ended."""
    SUCCESS = "success"
    SKIP = "skip"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    outcome: FetchOutcome
    status_code: int = 0
    body: Optional[bytes] = None
    error: Optional[str] = None
    fetch_time: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome is FetchOutcome.SUCCESS


class WebFetcher:
    """
    Fetches web pages over a shared aiohttp session.

    Only a 200 response counts as a success. Redirects and every other
    status are reported as skips, and network failures are reported
    rather than raised.
    """

    def __init__(self, user_agent: str, request_timeout: float = 30,
                 max_connections: int = 100):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_connections = max_connections

        self.logger = logging.getLogger(__name__)

        # Session management
        self.session: Optional[ClientSession] = None

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'skipped_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)
            headers = {'User-Agent': self.user_agent}

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers=headers,
                connector=aiohttp.TCPConnector(
                    limit=self.max_connections,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def resolve_redirects(self, url: str) -> str:
        """
        Follow redirects on the seed URL before crawling.

        Args:
            url: The seed URL as supplied by the user

        Returns:
            The final redirect target with surrounding slashes removed

        Raises:
            SeedResolutionError: if the request fails at the transport level
        """
        try:
            async with self.session.head(url, allow_redirects=True) as response:
                resolved = str(response.url).strip('/')
        except asyncio.TimeoutError:
            raise SeedResolutionError(url, "Request timeout")
        except (ClientError, ValueError) as e:
            raise SeedResolutionError(url, str(e)) from e

        if resolved != url:
            self.logger.info(f"Seed URL {url} resolved to {resolved}")
        return resolved

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult whose outcome is SUCCESS only for a 200 response
        """
        start_time = time.time()

        try:
            self.stats['total_requests'] += 1

            async with self.session.get(url, allow_redirects=False) as response:
                if response.status != 200:
                    self.stats['skipped_requests'] += 1
                    self.logger.debug(f"Skipping {url}: status {response.status}")
                    return FetchResult(
                        url=url,
                        outcome=FetchOutcome.SKIP,
                        status_code=response.status,
                        fetch_time=time.time() - start_time
                    )

                body = await response.read()
                self.stats['successful_requests'] += 1
                self.stats['total_bytes_downloaded'] += len(body)

                self.logger.debug(f"Fetched {url}: {response.status} ({len(body)} bytes)")
                return FetchResult(
                    url=url,
                    outcome=FetchOutcome.SUCCESS,
                    status_code=response.status,
                    body=body,
                    fetch_time=time.time() - start_time
                )

        except asyncio.TimeoutError:
            error_msg = "Request timeout"
            self.logger.debug(f"Timeout fetching {url}")

        except (ClientError, ValueError) as e:
            # aiohttp reports malformed URLs as InvalidURL, a ValueError
            error_msg = f"Client error: {str(e)}"
            self.logger.debug(f"Client error fetching {url}: {e}")

        self.stats['failed_requests'] += 1
        return FetchResult(
            url=url,
            outcome=FetchOutcome.TRANSPORT_ERROR,
            error=error_msg,
            fetch_time=time.time() - start_time
        )

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
