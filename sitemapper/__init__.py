"""
Site Mapper

A bounded-depth concurrent crawler that maps each visited page to the
links and assets it references.
"""

__version__ = "1.0.0"
__author__ = "Alex Nguyen"
__description__ = "Concurrent depth-bounded site mapper producing a JSON map of links and assets"
