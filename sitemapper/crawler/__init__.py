"""
Site mapper crawl components.
"""

from .parser import PageRecord, map_assets_and_links, sanitize, tokenize
from .fetcher import WebFetcher, FetchResult, FetchOutcome
from .scheduler import CrawlOrchestrator, CrawlTask, CrawlContext, CrawlStats

__all__ = [
    'PageRecord', 'map_assets_and_links', 'sanitize', 'tokenize',
    'WebFetcher', 'FetchResult', 'FetchOutcome',
    'CrawlOrchestrator', 'CrawlTask', 'CrawlContext', 'CrawlStats'
]
