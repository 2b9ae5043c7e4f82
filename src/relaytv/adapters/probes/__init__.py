"""
Live source probes.

A probe answers one question for a named source: is it live right now, and if
so, what is the playable reference?
"""

from .rumble_feed import RumbleFeedProbe
from .static import StaticProbe

__all__ = [
    "RumbleFeedProbe",
    "StaticProbe",
]
