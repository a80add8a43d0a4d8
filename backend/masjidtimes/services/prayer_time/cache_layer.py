# This module contains the bounded, time-expiring caches used for calendar documents.
import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable

from ...metrics import CACHE_COALESCED_LOADS, CACHE_EVICTIONS, CACHE_HITS, CACHE_MISSES

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class TimedCacheEntry:
    value: Any
    expires_at: float


class BoundedTTLCache:
    """
    An in-memory cache whose entries expire a fixed time after they are
    stored and which never holds more than `max_entries` entries, evicting the
    least recently used first.

    `get_or_load` coalesces concurrent loads: while a load for a key is in
    flight, other callers for the same key wait for its result instead of
    starting their own. Requests are served from several threads, so every
    change to the entry and in-flight maps happens under one lock; the loader
    itself runs outside it.
    """

    def __init__(self, name: str, ttl_seconds: float, max_entries: int, clock: Callable[[], float] = time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.name = name
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[Hashable, TimedCacheEntry]" = OrderedDict()
        self._in_flight: Dict[Hashable, Future] = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key):
        return self.get(key, _MISSING) is not _MISSING

    def keys(self):
        with self._lock:
            return list(self._entries.keys())

    def _get_live_entry(self, key):
        # Caller holds the lock.
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        # Bump to most-recently-used so eviction is LRU rather than FIFO.
        self._entries.move_to_end(key)
        return entry

    def _store(self, key, value):
        # Caller holds the lock.
        self._entries[key] = TimedCacheEntry(value=value, expires_at=self._clock() + self.ttl_seconds)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            oldest_key, _ = self._entries.popitem(last=False)
            CACHE_EVICTIONS.labels(cache_type=self.name).inc()
            logger.debug(f"Cache '{self.name}' evicted '{oldest_key}'.")

    def get(self, key, default=None):
        with self._lock:
            entry = self._get_live_entry(key)
        return default if entry is None else entry.value

    def set(self, key, value):
        with self._lock:
            self._store(key, value)

    def get_or_load(self, key, loader: Callable[[], Any]):
        """
        Returns the live value for key, or loads it with `loader()`.
        At most one load per key runs at a time. If the load raises, nothing
        is cached and every waiting caller receives the same exception.
        """
        with self._lock:
            entry = self._get_live_entry(key)
            if entry is not None:
                CACHE_HITS.labels(cache_type=self.name).inc()
                return entry.value

            future = self._in_flight.get(key)
            is_owner = future is None
            if is_owner:
                future = Future()
                self._in_flight[key] = future

        if not is_owner:
            CACHE_COALESCED_LOADS.labels(cache_type=self.name).inc()
            logger.debug(f"Cache '{self.name}' joined in-flight load for '{key}'.")
            return future.result()

        CACHE_MISSES.labels(cache_type=self.name).inc()
        logger.info(f"Cache '{self.name}' MISS for '{key}'.")
        try:
            value = loader()
        except BaseException as e:
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(e)
            raise

        with self._lock:
            self._store(key, value)
            self._in_flight.pop(key, None)
        future.set_result(value)
        return value

    def sweep(self):
        """Drops every expired entry. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self):
        with self._lock:
            self._entries.clear()


class CacheStore:
    """
    The process-wide set of calendar caches. It is built once by the
    application factory and handed to the calendar store.
    """

    def __init__(self, ttl_seconds=600, max_monthly_entries=180, max_ramadan_entries=45, clock=time.monotonic):
        self.monthly = BoundedTTLCache('monthly', ttl_seconds, max_monthly_entries, clock=clock)
        self.ramadan = BoundedTTLCache('ramadan', ttl_seconds, max_ramadan_entries, clock=clock)

    @classmethod
    def from_config(cls, config):
        return cls(
            ttl_seconds=config.get('CALENDAR_CACHE_TTL_SECONDS', 600),
            max_monthly_entries=config.get('MAX_MONTHLY_CACHE_ENTRIES', 180),
            max_ramadan_entries=config.get('MAX_RAMADAN_CACHE_ENTRIES', 45),
        )

    def caches(self):
        return (self.monthly, self.ramadan)

    def sweep(self):
        return sum(cache.sweep() for cache in self.caches())

    def clear(self):
        for cache in self.caches():
            cache.clear()
        logger.info("Calendar caches cleared.")
