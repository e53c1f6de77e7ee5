"""Per-file extraction cache."""

from cache.per_file import CACHE_VERSION, Cache, CacheEntry, NoopCache, PerFileCache

__all__ = ["CACHE_VERSION", "Cache", "CacheEntry", "NoopCache", "PerFileCache"]
