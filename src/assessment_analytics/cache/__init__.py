"""
Cache Layer - Domain-partitioned TTL cache.

This module provides:
    - CacheStore: In-memory cache with per-domain TTLs and single-flight
    - CacheDomain: Cache partitions (market snapshots, property details, geojson, alerts)
    - CacheEntry: A stored value with its timestamp
    - make_key: Canonical (sorted-key) cache key builder
"""

from .store import DEFAULT_TTLS, CacheDomain, CacheEntry, CacheStore, make_key

__all__ = [
    "CacheStore",
    "CacheDomain",
    "CacheEntry",
    "DEFAULT_TTLS",
    "make_key",
]
