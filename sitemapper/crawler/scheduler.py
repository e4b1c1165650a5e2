"""
Crawl orchestrator that walks a site depth-first with concurrent branches.
"""

import asyncio
import logging
import time
from typing import Dict, Optional
from dataclasses import dataclass

from .fetcher import FetchOutcome, FetchResult
from .parser import PageRecord, map_assets_and_links, tokenize
from ..exceptions import SeedFetchError
from ..storage.registry import VisitedRegistry
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlerMonitor


@dataclass
class CrawlTask:
    """
    A URL waiting to be crawled.

    depth is the number of levels still allowed below and including
    this URL. A task with depth 0 is never fetched.
    """
    url: str
    depth: int
    is_seed: bool = False


@dataclass(frozen=True)
class CrawlContext:
    """Settings shared by every task of one crawl run."""
    seed_url: str
    max_depth: int
    claim_urls: bool = False

    @property
    def base_url(self) -> str:
        # Relative references on every page resolve against the seed
        return self.seed_url


@dataclass
class CrawlStats:
    """Statistics for crawl operations."""
    start_time: float
    urls_fetched: int = 0
    pages_recorded: int = 0
    skipped: int = 0
    errors: int = 0
    duplicates_skipped: int = 0
    depth_exhausted: int = 0

    @property
    def elapsed_time(self) -> float:
        return time.time() - self.start_time


class CrawlOrchestrator:
    """
    Recursively crawls links up to the configured depth.

    Every link found on a page becomes its own asyncio task, and a page
    finishes only once all tasks spawned beneath it have finished.
    There is no cap on how many tasks run at once.
    """

    def __init__(self, context: CrawlContext, fetcher, registry: Optional[VisitedRegistry] = None,
                 monitor: Optional[CrawlerMonitor] = None):
        self.context = context
        self.fetcher = fetcher
        self.registry = registry if registry is not None else VisitedRegistry()
        self.monitor = monitor
        self.logger = logging.getLogger(__name__)
        self.url_logger = get_crawler_logger(__name__, seed_url=context.seed_url)
        self.stats = CrawlStats(start_time=time.time())

    async def run(self) -> Dict[str, PageRecord]:
        """
        Crawl from the seed URL.

        Returns:
            Snapshot of the registry once every branch has finished

        Raises:
            SeedFetchError: if the seed page cannot be fetched
        """
        self.stats = CrawlStats(start_time=time.time())
        self.logger.info(f"Crawling {self.context.seed_url} to depth {self.context.max_depth}")

        seed = CrawlTask(url=self.context.seed_url, depth=self.context.max_depth, is_seed=True)
        await self.crawl(seed)

        self._log_final_stats()
        return self.registry.snapshot()

    async def crawl(self, task: CrawlTask):
        """Process one task and, transitively, everything it discovers."""
        # Break if we've recursed to the max depth
        if task.depth <= 0:
            self.stats.depth_exhausted += 1
            return
        remaining = task.depth - 1

        # Break if we've already crawled this URL
        if not await self._first_visit(task.url):
            self.stats.duplicates_skipped += 1
            if self.monitor:
                self.monitor.record_duplicate(task.url)
            self.logger.debug(f"Already visited: {task.url}")
            return

        if self.monitor:
            self.monitor.task_started()
        try:
            await self._visit(task, remaining)
        finally:
            if self.monitor:
                self.monitor.task_finished()

    async def _visit(self, task: CrawlTask, remaining: int):
        """Fetch, record and fan out; returns once every child has finished."""
        page = await self._fetch_page(task)
        if page is None:
            return

        await self.registry.record(task.url, page)
        self.stats.pages_recorded += 1
        if self.monitor:
            self.monitor.record_page(task.url, len(page.links), len(page.assets))

        # Now crawl each link to the remaining depth
        children = [CrawlTask(url=link, depth=remaining) for link in page.links]
        if children:
            self.logger.debug(f"Spawning {len(children)} tasks from {task.url} at depth {remaining}")
            await asyncio.gather(*(self._crawl_child(child) for child in children))

    async def _first_visit(self, url: str) -> bool:
        if self.context.claim_urls:
            return await self.registry.claim(url)
        return not await self.registry.contains(url)

    async def _fetch_page(self, task: CrawlTask) -> Optional[PageRecord]:
        """Fetch and classify a page, or return None if the branch is pruned."""
        result: FetchResult = await self.fetcher.fetch(task.url)
        self.stats.urls_fetched += 1
        if self.monitor:
            self.monitor.record_fetch(task.url, result.outcome.value, result.fetch_time)

        if result.outcome is FetchOutcome.TRANSPORT_ERROR:
            self.stats.errors += 1
            if task.is_seed:
                raise SeedFetchError(task.url, result.error or "transport error")
            self.url_logger.log_url_event(logging.DEBUG, task.url, f"Pruned: {result.error}")
            return None

        # Skip non 200
        if result.outcome is FetchOutcome.SKIP:
            self.stats.skipped += 1
            if task.is_seed:
                raise SeedFetchError(task.url, f"status {result.status_code}")
            self.url_logger.log_url_event(logging.DEBUG, task.url, f"Pruned: status {result.status_code}",
                                          fields={'status_code': result.status_code})
            return None

        attributes = tokenize(result.body or b"")
        return map_assets_and_links(attributes, self.context.base_url, source_url=task.url)

    async def _crawl_child(self, task: CrawlTask):
        """Crawl a discovered link without letting its failure reach the parent."""
        try:
            await self.crawl(task)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.stats.errors += 1
            self.logger.error(f"Error crawling {task.url}: {e}", exc_info=True)

    def _log_final_stats(self):
        """Log final crawl statistics."""
        self.logger.info("=== CRAWL COMPLETED ===")
        for stat_name, value in self.get_stats().items():
            self.url_logger.log_crawler_stat(stat_name, value)
        self.logger.info(f"Registry stats: {self.registry.get_stats()}")

    def get_stats(self) -> Dict:
        """Get current crawl statistics."""
        return {
            'urls_fetched': self.stats.urls_fetched,
            'pages_recorded': self.stats.pages_recorded,
            'skipped': self.stats.skipped,
            'errors': self.stats.errors,
            'duplicates_skipped': self.stats.duplicates_skipped,
            'depth_exhausted': self.stats.depth_exhausted,
            'elapsed_time': self.stats.elapsed_time
        }
