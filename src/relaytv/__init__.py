"""
RelayTV: a single continuous channel that plays filler content on a loop
and cuts over to prioritized live sources while any of them is on air.
"""

__version__ = "0.1.0"
