"""In-process caching: TTL cache, cached backend reads and predictive preloading."""

from __future__ import annotations

from assistant_core.cache.cached_data import CachedDataService
from assistant_core.cache.preloader import PredictivePreloader, UsageTrace
from assistant_core.cache.service import CacheEntry, CacheService, CacheStats

__all__ = [
    "CacheEntry",
    "CacheService",
    "CacheStats",
    "CachedDataService",
    "PredictivePreloader",
    "UsageTrace",
]
