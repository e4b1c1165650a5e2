"""
Command line entry point for the site mapper.
"""

import asyncio
import argparse
import logging
import sys
from typing import Dict, List, Optional

from . import __version__
from .crawler.fetcher import WebFetcher
from .crawler.parser import PageRecord
from .crawler.scheduler import CrawlContext, CrawlOrchestrator
from .exceptions import ConfigError, SeedFetchError, SeedResolutionError
from .storage.registry import VisitedRegistry
from .storage.sitemap import write_site_map
from .utils.config import Config, load_config
from .utils.logger import log_system_info, setup_logging
from .utils.monitoring import initialize_monitoring


class CrawlerApp:
    """Main application class for the site mapper."""

    def __init__(self, config: Config):
        self.config = config
        self.logger = logging.getLogger(__name__)

    def setup_logging(self):
        """Setup logging configuration."""
        setup_logging(self.config.logging)
        if self.config.logging.level.upper() == 'DEBUG':
            log_system_info()

    async def crawl(self) -> Dict[str, PageRecord]:
        """
        Resolve the seed URL and crawl from it.

        Raises:
            SeedResolutionError: if the seed cannot be reached at all
            SeedFetchError: if the seed page cannot be fetched
        """
        crawler_config = self.config.crawler

        # Nothing is fetched at depth 0
        if crawler_config.max_depth <= 0:
            self.logger.info("Max depth is 0, nothing to crawl")
            return {}

        monitor = initialize_monitoring(
            enable_prometheus=self.config.monitoring.metrics_enabled,
            prometheus_port=self.config.monitoring.prometheus_port
        )

        async with WebFetcher(
            user_agent=crawler_config.user_agent,
            request_timeout=crawler_config.request_timeout,
            max_connections=crawler_config.max_connections
        ) as fetcher:
            seed_url = await fetcher.resolve_redirects(crawler_config.seed_url)

            context = CrawlContext(
                seed_url=seed_url,
                max_depth=crawler_config.max_depth,
                claim_urls=crawler_config.claim_urls
            )
            orchestrator = CrawlOrchestrator(context, fetcher, VisitedRegistry(), monitor)
            site_map = await orchestrator.run()

            self.logger.info(f"Fetcher stats: {fetcher.get_stats()}")
            self.logger.info(f"Monitoring summary: {monitor.get_summary()}")

        return site_map

    async def run(self, output: Optional[str] = None) -> int:
        """Run the site mapper and write the result."""
        self.setup_logging()

        try:
            site_map = await self.crawl()
        except (SeedResolutionError, SeedFetchError) as e:
            self.logger.debug("Seed failure", exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            return 1

        write_site_map(site_map, output)
        return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="sitemapper",
        description="Map the links and assets of a site up to a given depth",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sitemapper --url https://example.com              # Map the seed page only
  sitemapper --url https://example.com --depth 3    # Follow links three levels deep
  sitemapper --url https://example.com --output map.json
        """
    )

    parser.add_argument(
        '--url',
        help='Target URL'
    )

    parser.add_argument(
        '--depth',
        type=int,
        help='Recursive crawl depth (default: 1)'
    )

    parser.add_argument(
        '--config',
        help='Path to configuration file (default: config.yaml if present)'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Override the configured log level'
    )

    parser.add_argument(
        '--output',
        help="Write the site map to a file instead of stdout ('-' for stdout)"
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'sitemapper {__version__}'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            config_path=args.config,
            seed_url=args.url,
            max_depth=args.depth,
            log_level=args.log_level
        )
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return 1

    app = CrawlerApp(config)
    try:
        return asyncio.run(app.run(output=args.output))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
