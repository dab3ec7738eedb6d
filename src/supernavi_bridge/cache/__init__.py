"""Case status caching."""

from supernavi_bridge.cache.status_cache import CacheEntry, Clock, StatusCache

__all__ = [
    "CacheEntry",
    "Clock",
    "StatusCache",
]
