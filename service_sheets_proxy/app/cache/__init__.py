"""
Cache package for Sheets Proxy Service.

Provides an in-process TTL cache holding the sanitized sheet records
between upstream refreshes.
"""

from .ttl_cache import CacheEntry, TTLCache

__all__ = ["CacheEntry", "TTLCache"]
