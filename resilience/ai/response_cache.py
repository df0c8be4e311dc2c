"""
Response caches for the Gemini client.

The client only needs get/set/clear, so the backing store is swappable:

- InMemoryResponseCache: per-process dict with TTL and a size cap. The
  default; fine for a single instance.
- DjangoResponseCache: Django's cache framework (Redis in production),
  shared by every instance pointing at the same cache.
- NullResponseCache: never stores anything. Useful in tests.

Cached values are the model's raw text; the caller rebuilds the response.
"""

import hashlib
import json
import logging
import math
import threading
import time
from collections import OrderedDict
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 60 * 60
MAX_CACHE_ENTRIES = 100


def build_cache_key(prompt: str, temperature: float, max_output_tokens: int) -> str:
    """Deterministic key from the full request parameters."""
    return json.dumps(
        {
            "prompt": prompt,
            "temperature": temperature,
            "maxOutputTokens": max_output_tokens,
        },
        sort_keys=True,
    )


class ResponseCache:
    """Interface for Gemini response caches."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str, ttl: float) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class NullResponseCache(ResponseCache):
    """Cache that never stores anything."""

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str, ttl: float) -> None:
        pass

    def clear(self) -> None:
        pass


class InMemoryResponseCache(ResponseCache):
    """
    Process-local cache with per-entry expiry and a size cap.

    Safe to share between threads; every access holds the instance lock.

    Expired entries are swept lazily on write; if the cache is still over
    capacity afterwards the oldest entries are evicted first. A read of an
    expired entry removes it and reports a miss.
    """

    def __init__(self, max_entries: int = MAX_CACHE_ENTRIES, clock=time.monotonic):
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[str, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl: float) -> None:
        if ttl <= 0:
            return

        with self._lock:
            # Re-inserting moves the key to the newest position
            self._entries.pop(key, None)
            self._entries[key] = (value, self._clock() + ttl)
            self._prune()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _prune(self) -> None:
        # Caller holds the lock
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class DjangoResponseCache(ResponseCache):
    """
    Cache backed by Django's cache framework.

    Keys are hashed because prompts can exceed backend key limits.
    clear() only removes this cache's own keys; it never flushes the
    shared cache. On django-redis that is a prefix delete. Other backends
    have no pattern delete, so the most recent keys written by this
    process are tracked (up to MAX_CACHE_ENTRIES) and deleted by name.
    """

    KEY_PREFIX = "resilience:gemini:"

    def __init__(self, alias: str = "default", max_tracked_keys: int = MAX_CACHE_ENTRIES):
        self.alias = alias
        self.max_tracked_keys = max_tracked_keys
        self._written_keys: "OrderedDict[str, None]" = OrderedDict()
        self._lock = threading.Lock()

    @property
    def _cache(self):
        from django.core.cache import caches

        return caches[self.alias]

    def _make_key(self, key: str) -> str:
        return self.KEY_PREFIX + hashlib.sha256(key.encode("utf-8")).hexdigest()

    def _track(self, cache_key: str) -> None:
        with self._lock:
            self._written_keys.pop(cache_key, None)
            self._written_keys[cache_key] = None
            while len(self._written_keys) > self.max_tracked_keys:
                self._written_keys.popitem(last=False)

    def get(self, key: str) -> Optional[str]:
        try:
            return self._cache.get(self._make_key(key))
        except Exception as e:
            logger.warning(f"Gemini response cache read failed: {e}")
            return None

    def set(self, key: str, value: str, ttl: float) -> None:
        if ttl <= 0:
            return
        cache_key = self._make_key(key)
        cache = self._cache
        try:
            # Backends treat a timeout of 0 as already expired
            cache.set(cache_key, value, timeout=max(1, math.ceil(ttl)))
        except Exception as e:
            logger.warning(f"Gemini response cache write failed: {e}")
            return
        if not hasattr(cache, "delete_pattern"):
            self._track(cache_key)

    def clear(self) -> None:
        cache = self._cache
        try:
            if hasattr(cache, "delete_pattern"):
                cache.delete_pattern(self.KEY_PREFIX + "*")
            else:
                with self._lock:
                    keys = list(self._written_keys)
                if keys:
                    cache.delete_many(keys)
        except Exception as e:
            logger.warning(f"Gemini response cache clear failed: {e}")
        with self._lock:
            self._written_keys.clear()


def get_configured_cache() -> ResponseCache:
    """
    Build the cache selected by settings.GEMINI_RESPONSE_CACHE.

    "django" selects the shared Django cache; anything else the
    in-process cache.
    """
    from django.conf import settings

    backend = getattr(settings, "GEMINI_RESPONSE_CACHE", "memory")
    if backend == "django":
        return DjangoResponseCache()
    return InMemoryResponseCache()
