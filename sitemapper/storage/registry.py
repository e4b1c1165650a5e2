"""
Visited-URL registry shared by every branch of a crawl.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Dict, Optional, Set

if TYPE_CHECKING:
    from ..crawler.parser import PageRecord


class VisitedRegistry:
    """
    Concurrency-safe map from visited URL to its page record.

    One instance lives for one crawl run and is handed explicitly to
    every crawl task. Entries are never removed.

    contains() followed later by record() is not atomic: two branches
    that find the same unvisited URL at once may both fetch it, and the
    second record() overwrites the first. Callers that need at-most-once
    fetching use claim() instead of contains().
    """

    def __init__(self):
        self._pages: Dict[str, PageRecord] = {}
        self._claimed: Set[str] = set()
        self._lock = asyncio.Lock()
        self.logger = logging.getLogger(__name__)

        self.stats = {
            'records_written': 0,
            'records_overwritten': 0,
            'claims_rejected': 0
        }

    async def contains(self, url: str) -> bool:
        """Check whether a page record exists for URL."""
        async with self._lock:
            return url in self._pages

    async def claim(self, url: str) -> bool:
        """
        Reserve URL for fetching.

        Returns:
            True if the caller now owns the URL, False if it was already
            claimed or recorded
        """
        async with self._lock:
            if url in self._pages or url in self._claimed:
                self.stats['claims_rejected'] += 1
                return False
            self._claimed.add(url)
            return True

    async def record(self, url: str, page: PageRecord):
        """Store the page record for URL, replacing any earlier one."""
        async with self._lock:
            if url in self._pages:
                self.stats['records_overwritten'] += 1
                self.logger.debug(f"Overwriting page record for {url}")
            self._pages[url] = page
            self.stats['records_written'] += 1

    def get(self, url: str) -> Optional[PageRecord]:
        """Get the page record for URL, if any."""
        return self._pages.get(url)

    def snapshot(self) -> Dict[str, PageRecord]:
        """Get a copy of all page records."""
        return dict(self._pages)

    def to_dict(self) -> Dict[str, dict]:
        """Convert to the serialized site map shape."""
        return {url: page.to_dict() for url, page in self._pages.items()}

    def get_stats(self) -> Dict[str, int]:
        """Get registry statistics."""
        stats = self.stats.copy()
        stats['pages'] = len(self._pages)
        return stats

    def __contains__(self, url: str) -> bool:
        return url in self._pages

    def __len__(self) -> int:
        return len(self._pages)
