"""
CacheStore - Domain-partitioned TTL cache.

Holds expensive per-area computations (market snapshots, timeseries,
GeoJSON, alert lists). Each domain has its own expiry. Entries older than
their domain's TTL are never returned; the cache-cleanup job removes them.

Concurrency:
    - Map access is lock-guarded, so a scheduled sweep can run while a
      request-triggered recompute writes a fresh entry.
    - get_or_compute() collapses concurrent misses for the same key into a
      single computation (single-flight).
    - Only successful computations are stored. A failed recompute leaves
      the previous state untouched.
"""
from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class CacheDomain(str, Enum):
    """Cache partitions, each with its own TTL."""

    MARKET_SNAPSHOTS = "market_snapshots"
    PROPERTY_DETAILS = "property_details"
    GEOJSON = "geojson"
    ALERTS = "alerts"


DEFAULT_TTLS: Dict[CacheDomain, float] = {
    CacheDomain.MARKET_SNAPSHOTS: 3600,  # 1 hour
    CacheDomain.PROPERTY_DETAILS: 86400,  # 24 hours
    CacheDomain.GEOJSON: 86400,  # 24 hours
    CacheDomain.ALERTS: 3600,  # 1 hour
}


@dataclass
class CacheEntry:
    """A cached value and when it was stored (clock seconds)."""

    timestamp: float
    value: Any


def make_key(prefix: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a canonical cache key from a prefix and a parameter mapping.

    Keys are serialized with sorted keys, so parameter insertion order
    never produces distinct entries for the same query.

    Args:
        prefix: Operation name (e.g. "snapshot", "geojson")
        params: Query parameters (nested mappings allowed)

    Returns:
        Stable string key
    """
    if not params:
        return prefix
    canonical = json.dumps(params, sort_keys=True, separators=(",", ":"), default=str)
    return f"{prefix}:{canonical}"


class CacheStore:
    """
    In-memory TTL cache partitioned by domain.

    Usage:
        cache = CacheStore()

        snapshot = cache.get(CacheDomain.MARKET_SNAPSHOTS, "snapshot:grandview")
        if snapshot is None:
            snapshot = await monitor.generate_snapshot("grandview")
            cache.put(CacheDomain.MARKET_SNAPSHOTS, "snapshot:grandview", snapshot)

        # Or, with single-flight:
        snapshot = await cache.get_or_compute(
            CacheDomain.MARKET_SNAPSHOTS,
            "snapshot:grandview",
            lambda: monitor.generate_snapshot("grandview"),
        )

        # Periodically
        removed = cache.sweep_expired()
    """

    def __init__(
        self,
        ttls: Optional[Mapping[CacheDomain, float]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the cache.

        Args:
            ttls: TTL in seconds per domain (missing domains use DEFAULT_TTLS)
            clock: Monotonic time source, injectable for tests
        """
        self._ttls: Dict[CacheDomain, float] = dict(DEFAULT_TTLS)
        if ttls:
            self._ttls.update(ttls)
        self._clock = clock

        self._entries: Dict[CacheDomain, Dict[str, CacheEntry]] = {
            domain: {} for domain in CacheDomain
        }
        self._lock = threading.Lock()

        # Single-flight computations keyed by (domain, key)
        self._inflight: Dict[Tuple[CacheDomain, str], asyncio.Future] = {}

    def ttl(self, domain: CacheDomain) -> float:
        """TTL in seconds for a domain."""
        return self._ttls[domain]

    def _is_expired(self, domain: CacheDomain, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp > self._ttls[domain]

    def get(self, domain: CacheDomain, key: str) -> Optional[Any]:
        """
        Look up a fresh value.

        Pure read: an expired entry is reported as absent but left in place
        for sweep_expired() to remove.

        Returns:
            The cached value, or None if missing or expired
        """
        with self._lock:
            entry = self._entries[domain].get(key)
            if entry is None:
                return None
            if self._is_expired(domain, entry, self._clock()):
                return None
            return entry.value

    def put(self, domain: CacheDomain, key: str, value: Any) -> None:
        """Store a value, replacing any previous entry for the key."""
        if value is None:
            raise ValueError("None cannot be cached; it marks an absent entry")
        with self._lock:
            self._entries[domain][key] = CacheEntry(timestamp=self._clock(), value=value)

    def invalidate(self, domain: CacheDomain, key: str) -> bool:
        """Drop one entry. Returns True if it existed."""
        with self._lock:
            return self._entries[domain].pop(key, None) is not None

    def clear(self, domain: Optional[CacheDomain] = None) -> None:
        """Drop every entry, or every entry of one domain."""
        with self._lock:
            domains = [domain] if domain else list(CacheDomain)
            for d in domains:
                self._entries[d].clear()

    def sweep_expired(self) -> int:
        """
        Remove entries older than their domain's TTL.

        Returns:
            Number of entries removed across all domains
        """
        removed = 0
        with self._lock:
            now = self._clock()
            for domain, entries in self._entries.items():
                stale = [k for k, e in entries.items() if self._is_expired(domain, e, now)]
                for key in stale:
                    del entries[key]
                removed += len(stale)

        if removed:
            logger.debug(f"Swept {removed} expired cache entries")
        return removed

    def sizes(self) -> Dict[str, int]:
        """Entry count per domain, including not-yet-swept expired entries."""
        with self._lock:
            return {domain.value: len(entries) for domain, entries in self._entries.items()}

    async def get_or_compute(
        self,
        domain: CacheDomain,
        key: str,
        compute: Callable[[], Awaitable[Any]],
        force_refresh: bool = False,
    ) -> Any:
        """
        Return a fresh cached value or compute, store and return a new one.

        Concurrent callers for the same key share one computation. A forced
        refresh always starts a new computation; if one is already running,
        the new one starts after it finishes so the forced result is stored
        last. Later callers join the newest computation.

        Args:
            domain: Cache domain
            key: Cache key (see make_key)
            compute: Zero-argument coroutine factory producing the value
            force_refresh: Skip the cached value

        Returns:
            The cached or freshly computed value

        Raises:
            Whatever compute raises; nothing is cached in that case
        """
        if not force_refresh:
            cached = self.get(domain, key)
            if cached is not None:
                return cached

        flight_key = (domain, key)
        future = self._inflight.get(flight_key)
        if future is None or force_refresh:
            previous = future
            future = asyncio.ensure_future(
                self._compute_and_store(domain, key, compute, after=previous)
            )
            self._inflight[flight_key] = future
            future.add_done_callback(lambda f: self._finish_flight(flight_key, f))
        else:
            logger.debug(f"Joining in-flight computation for {domain.value}/{key}")

        # Shield so one cancelled caller does not cancel the shared computation
        return await asyncio.shield(future)

    async def _compute_and_store(
        self,
        domain: CacheDomain,
        key: str,
        compute: Callable[[], Awaitable[Any]],
        after: Optional[asyncio.Future] = None,
    ) -> Any:
        if after is not None:
            # Ordering only; errors reach the earlier flight's own waiters
            await asyncio.wait([after])
        value = await compute()
        if value is not None:
            self.put(domain, key, value)
        return value

    def _finish_flight(self, flight_key: Tuple[CacheDomain, str], future: asyncio.Future) -> None:
        if self._inflight.get(flight_key) is future:
            del self._inflight[flight_key]
        # Mark the exception retrieved; waiters already received it
        if not future.cancelled():
            future.exception()
