"""
sitecache: a pluggable key/value cache facade.

One Cache object forwards to the best registered backend, chosen by priority
and by whether the backend's requirements are met. Keys are namespaced by
group and by the current site/network scope.
"""

from sitecache.bootstrap import create_cache
from sitecache.config import CacheSettings, get_settings
from sitecache.registry import Cache
from sitecache.types import (
    DAY_IN_SECONDS,
    HOUR_IN_SECONDS,
    MINUTE_IN_SECONDS,
    WEEK_IN_SECONDS,
    YEAR_IN_SECONDS,
)

__version__ = "0.1.0"

__all__ = [
    "DAY_IN_SECONDS",
    "HOUR_IN_SECONDS",
    "MINUTE_IN_SECONDS",
    "WEEK_IN_SECONDS",
    "YEAR_IN_SECONDS",
    "Cache",
    "CacheSettings",
    "create_cache",
    "get_settings",
]
