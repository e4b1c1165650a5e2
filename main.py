#!/usr/bin/env python3
"""
Main entry point for the site mapper.
"""

import sys

from sitemapper.cli import main


if __name__ == '__main__':
    sys.exit(main())
