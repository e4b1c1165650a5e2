"""
Storage layer for the site mapper.
"""

from .registry import VisitedRegistry
from .sitemap import render_site_map, write_site_map

__all__ = ['VisitedRegistry', 'render_site_map', 'write_site_map']
