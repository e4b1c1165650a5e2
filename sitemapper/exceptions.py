"""
Exceptions raised by the site mapper.
"""


class CrawlerError(Exception):
    """Base exception for site mapper failures."""
    pass


class ConfigError(CrawlerError):
    """Missing or invalid configuration, raised before any crawling begins."""
    pass


class SeedResolutionError(CrawlerError):
    """The up-front redirect resolution of the seed URL failed."""
    
    def __init__(self, url: str, cause: str):
        super().__init__(f"Could not resolve seed URL {url}: {cause}")
        self.url = url
        self.cause = cause


class SeedFetchError(CrawlerError):
    """The seed page could not be fetched, so the crawl has no data."""
    
    def __init__(self, url: str, cause: str):
        super().__init__(f"Could not fetch seed URL {url}: {cause}")
        self.url = url
        self.cause = cause
