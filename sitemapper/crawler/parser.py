"""
Page parser for extracting links and static assets from HTML attributes.
"""

import logging
from typing import Dict, Iterable, List, Optional, Tuple, Union
from dataclasses import dataclass, field
from bs4 import BeautifulSoup


Attribute = Tuple[str, str]

LINK = "link"
ASSET = "asset"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageRecord:
    """Links and static assets found on a single page."""
    source_url: str
    assets: Tuple[str, ...] = field(default_factory=tuple)
    links: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        """Convert to the serialized page map shape."""
        return {
            'assets': list(self.assets),
            'links': list(self.links)
        }


def sanitize(url: str) -> str:
    """Remove query strings and surrounding slashes from a URL."""
    sanitized = url.split('?', 1)[0]
    return sanitized.strip('/')


def tokenize(page: Union[bytes, str]) -> List[Attribute]:
    """
    Flatten the attributes of every tag in a page into one list.

    Tag identity is not kept: the result is the sequence of
    (key, value) pairs in document order. A tag that repeats an
    attribute yields only the first value, as lxml keeps one entry
    per attribute name.

    Args:
        page: Raw page body

    Returns:
        List of (attribute name, attribute value) tuples
    """
    soup = BeautifulSoup(page, 'lxml')
    attributes: List[Attribute] = []

    for tag in soup.find_all(True):
        for key, value in tag.attrs.items():
            # Multi-valued attributes (class, rel) come back as lists
            if isinstance(value, list):
                value = ' '.join(value)
            attributes.append((key, value))

    return attributes


def map_assets_and_links(attributes: Iterable[Attribute], base_url: str,
                         source_url: Optional[str] = None) -> PageRecord:
    """
    Classify page attributes into links and assets.

    Every object is keyed by its normalized URL so it is collected
    at most once. A URL seen as both an href and a src keeps the
    kind of its last occurrence.

    Args:
        attributes: (key, value) pairs from tokenize()
        base_url: Seed URL that site-relative references resolve against
        source_url: Page the attributes came from (defaults to base_url)

    Returns:
        PageRecord with deduplicated links and assets
    """
    objects: Dict[str, str] = {}

    for key, value in attributes:
        if key == 'href':
            # Don't include references to home
            if value == '/':
                continue
            # Only include references to this domain
            if value.startswith('/'):
                objects[f"{base_url}/{sanitize(value)}"] = LINK
            elif value.startswith(base_url):
                objects[sanitize(value)] = LINK

        elif key == 'src':
            if value.startswith('/'):
                objects[f"{base_url}/{sanitize(value)}"] = ASSET
            else:
                objects[sanitize(value)] = ASSET

    links = [url for url, kind in objects.items() if kind == LINK]
    assets = [url for url, kind in objects.items() if kind == ASSET]

    logger.debug(f"Mapped {len(links)} links and {len(assets)} assets against {base_url}")

    return PageRecord(source_url=source_url or base_url, assets=tuple(assets), links=tuple(links))
