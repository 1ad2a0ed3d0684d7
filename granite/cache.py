"""
Read-through cache with explicit, rule-based invalidation.

Keys are built by CacheKeys only, and every mutation maps to one
InvalidationRules entry. The cache is best-effort: every backend call goes
through CacheCoordinator, which logs backend failures and degrades to a
miss or a no-op. A cached value may be stale for at most its TTL.

Backends:
    RedisCache   shared across processes (redis-py, SCAN-based pattern delete)
    MemoryCache  per-process dict with TTLs, used for dev and tests
    NullCache    caching disabled
"""

import fnmatch
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Optional

import redis
from pydantic import TypeAdapter

from .config import settings

logger = logging.getLogger(__name__)


# --- Backends ---

class CacheBackend(ABC):
    """Minimal string key/value store with TTL and glob-pattern delete."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def set(self, key: str, value: str, ttl: int) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def delete_pattern(self, pattern: str) -> int:
        pass


class MemoryCache(CacheBackend):

    SWEEP_EVERY = 256

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_every: int = None):
        self._data: dict = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_every = sweep_every or self.SWEEP_EVERY
        self._writes = 0

    def get(self, key):
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            expires_at, value = item
            if expires_at <= self._clock():
                del self._data[key]
                return None
            return value

    def set(self, key, value, ttl):
        with self._lock:
            now = self._clock()
            self._data[key] = (now + ttl, value)
            self._writes += 1
            if self._writes % self._sweep_every == 0:
                self._sweep(now)

    def _sweep(self, now: float) -> None:
        """Drop expired entries that were never read back. Caller holds the lock."""
        expired = [k for k, (exp, _) in self._data.items() if exp <= now]
        for k in expired:
            del self._data[k]

    def delete(self, key):
        with self._lock:
            self._data.pop(key, None)

    def delete_pattern(self, pattern):
        with self._lock:
            doomed = [k for k in self._data if fnmatch.fnmatchcase(k, pattern)]
            for k in doomed:
                del self._data[k]
            return len(doomed)

    def keys(self) -> list:
        with self._lock:
            now = self._clock()
            return sorted(k for k, (exp, _) in self._data.items() if exp > now)


class RedisCache(CacheBackend):

    SCAN_BATCH = 500

    def __init__(self, url: str, socket_timeout: float = 0.5, client=None):
        self.client = client or redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    def get(self, key):
        return self.client.get(key)

    def set(self, key, value, ttl):
        self.client.setex(key, ttl, value)

    def delete(self, key):
        self.client.delete(key)

    def delete_pattern(self, pattern):
        # Batched SCAN + DEL
        deleted = 0
        batch = []
        for key in self.client.scan_iter(match=pattern, count=self.SCAN_BATCH):
            batch.append(key)
            if len(batch) >= self.SCAN_BATCH:
                deleted += self.client.delete(*batch)
                batch = []
        if batch:
            deleted += self.client.delete(*batch)
        return deleted


class NullCache(CacheBackend):

    def get(self, key):
        return None

    def set(self, key, value, ttl):
        pass

    def delete(self, key):
        pass

    def delete_pattern(self, pattern):
        return 0


# --- Keys and invalidation rules ---

class CacheKeys:
    """The only place cache key strings are built."""

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def _k(self, *parts) -> str:
        return self.prefix + ":".join(str(p) for p in parts)

    def customer(self, customer_id) -> str:
        return self._k("customer", customer_id)

    def sheet(self, sheet_id) -> str:
        return self._k("measurement_sheet", sheet_id)

    def sheet_full(self, sheet_id) -> str:
        return self._k("measurement_sheet_full", sheet_id)

    def entries(self, sheet_id, page: Optional[int] = None, limit: Optional[int] = None) -> str:
        if page and limit:
            return self._k("slab_entries", "sheet", sheet_id, page, limit)
        return self._k("slab_entries", "sheet", sheet_id, "all")

    def entries_pattern(self, sheet_id) -> str:
        return self._k("slab_entries", "sheet", sheet_id, "*")

    def sheet_search(self, fingerprint: str) -> str:
        return self._k("measurement_sheets", "search", fingerprint)

    def recent_sheets(self, limit: int) -> str:
        return self._k("measurement_sheets", "recent", limit)

    def statistics(self) -> str:
        return self._k("measurement_sheet_stats", "overview")

    def sheet_listings_pattern(self) -> str:
        return self.prefix + "measurement_sheets:*"

    def statistics_pattern(self) -> str:
        return self.prefix + "measurement_sheet_stats:*"

    def all_sheets_patterns(self) -> list:
        return [self.prefix + "measurement_sheet:*", self.prefix + "measurement_sheet_full:*"]


@dataclass(frozen=True)
class Invalidation:
    keys: tuple = ()
    patterns: tuple = ()


@dataclass
class InvalidationRules:
    """Which keys each kind of mutation makes stale."""
    keys: CacheKeys = field(default_factory=CacheKeys)

    def _sheet_scope(self, sheet_id) -> list:
        return [self.keys.sheet(sheet_id), self.keys.sheet_full(sheet_id)]

    def _listings(self) -> list:
        return [self.keys.sheet_listings_pattern(), self.keys.statistics_pattern()]

    def sheet_created(self, sheet_id) -> Invalidation:
        return Invalidation(keys=tuple(self._sheet_scope(sheet_id)),
                            patterns=tuple(self._listings()))

    def sheet_updated(self, sheet_id) -> Invalidation:
        return Invalidation(keys=tuple(self._sheet_scope(sheet_id)),
                            patterns=tuple(self._listings()))

    def sheet_deleted(self, sheet_id) -> Invalidation:
        return Invalidation(
            keys=tuple(self._sheet_scope(sheet_id)),
            patterns=tuple([self.keys.entries_pattern(sheet_id)] + self._listings()),
        )

    def entries_changed(self, sheet_id) -> Invalidation:
        # Entry writes move total_area, so the sheet and every listing go stale
        return Invalidation(
            keys=tuple(self._sheet_scope(sheet_id)),
            patterns=tuple([self.keys.entries_pattern(sheet_id)] + self._listings()),
        )

    def customer_changed(self, customer_id) -> Invalidation:
        # Sheets embed the customer's name and phone
        return Invalidation(
            keys=(self.keys.customer(customer_id),),
            patterns=tuple(self.keys.all_sheets_patterns() + self._listings()),
        )


# --- Coordinator ---

class CacheCoordinator:
    """Best-effort facade over a backend. Never raises on backend failure."""

    def __init__(self, backend: CacheBackend, prefix: str = ""):
        self.backend = backend
        self.keys = CacheKeys(prefix)
        self.rules = InvalidationRules(self.keys)

    def get_json(self, key: str) -> Any:
        try:
            raw = self.backend.get(key)
        except Exception as e:
            logger.warning("Cache get error for %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            self.delete(key)
            return None

    def set_json(self, key: str, value: Any, ttl: int) -> bool:
        try:
            self.backend.set(key, json.dumps(value), ttl)
            return True
        except Exception as e:
            logger.warning("Cache set error for %s: %s", key, e)
            return False

    def delete(self, key: str) -> bool:
        try:
            self.backend.delete(key)
            return True
        except Exception as e:
            logger.warning("Cache delete error for %s: %s", key, e)
            return False

    def clear_pattern(self, pattern: str) -> bool:
        try:
            self.backend.delete_pattern(pattern)
            return True
        except Exception as e:
            logger.warning("Cache clear pattern error for %s: %s", pattern, e)
            return False

    def read_through(self, key: str, ttl: int, loader: Callable[[], Any], schema: Any):
        """
        Return the cached value for key, or call loader and cache its result.

        schema is any type pydantic can validate (a model, List[model], ...).
        A loader result of None is returned as-is and never cached.
        """
        adapter = TypeAdapter(schema)
        cached = self.get_json(key)
        if cached is not None:
            try:
                return adapter.validate_python(cached)
            except ValueError:
                logger.warning("Cached value for %s no longer matches its schema", key)
                self.delete(key)

        value = loader()
        if value is not None:
            self.set_json(key, adapter.dump_python(value, mode="json"), ttl)
        return value

    def prime(self, key: str, ttl: int, value: Any, schema: Any) -> bool:
        return self.set_json(key, TypeAdapter(schema).dump_python(value, mode="json"), ttl)

    def invalidate(self, invalidation: Invalidation) -> None:
        for key in invalidation.keys:
            self.delete(key)
        for pattern in invalidation.patterns:
            self.clear_pattern(pattern)


def build_backend(backend: str = None, redis_url: str = None) -> CacheBackend:
    backend = (backend or settings.CACHE_BACKEND).lower()
    redis_url = settings.REDIS_URL if redis_url is None else redis_url
    if redis_url and backend != "none":
        logger.info("Using Redis cache at %s", redis_url.split("@")[-1])
        return RedisCache(redis_url, socket_timeout=settings.CACHE_SOCKET_TIMEOUT)
    if backend == "redis":
        logger.warning("CACHE_BACKEND=redis but REDIS_URL is empty, caching disabled")
        return NullCache()
    if backend == "memory":
        return MemoryCache()
    return NullCache()


@lru_cache(maxsize=1)
def get_cache() -> CacheCoordinator:
    """Process-wide coordinator built from settings."""
    return CacheCoordinator(build_backend(), prefix=settings.CACHE_KEY_PREFIX)
