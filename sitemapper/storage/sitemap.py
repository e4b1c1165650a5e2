"""
Site map serialization.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Dict, Mapping, Optional, TextIO, Union

from ..crawler.parser import PageRecord
from .registry import VisitedRegistry


logger = logging.getLogger(__name__)


def site_map_dict(site_map: Union[VisitedRegistry, Mapping[str, PageRecord]]) -> Dict[str, dict]:
    """Convert a registry or a snapshot into plain dictionaries."""
    if isinstance(site_map, VisitedRegistry):
        return site_map.to_dict()
    return {url: page.to_dict() for url, page in site_map.items()}


def render_site_map(site_map: Union[VisitedRegistry, Mapping[str, PageRecord]]) -> str:
    """
    Render a site map as indented JSON.

    Keys are sorted so repeated runs over the same site produce the
    same document. The result ends with a newline.
    """
    return json.dumps(site_map_dict(site_map), ensure_ascii=False, indent=2, sort_keys=True) + "\n"


def write_site_map(site_map: Union[VisitedRegistry, Mapping[str, PageRecord]],
                   output: Optional[str] = None, stream: Optional[TextIO] = None):
    """
    Write a rendered site map to a file, or to stdout when no path is given.

    Args:
        site_map: Registry or snapshot to serialize
        output: Destination file path, or None / '-' for the stream
        stream: Stream used instead of a file (defaults to sys.stdout)
    """
    document = render_site_map(site_map)

    if output and output != '-':
        file_path = Path(output)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(document)
        logger.info(f"Site map written to {file_path}")
        return

    stream = stream or sys.stdout
    stream.write(document)
    stream.flush()
