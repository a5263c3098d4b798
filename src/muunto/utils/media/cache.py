"""Bounded, thread-safe memoization for negotiation hot paths.

Header strings repeat heavily across requests, so caching the
string to result mapping skips the parsing work on repeat. The cache
is shared between concurrent exchanges and is therefore guarded by a
lock; it evicts the least recently used entry once full.
"""

import functools
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Optional, TypeVar

T = TypeVar("T")

_MISSING = object()


class BoundedCache:
    """Least-recently-used cache with a fixed number of entries."""

    def __init__(self, max_entries: int = 1000):
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self._store: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()
        self._max_entries = max_entries
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Get a cached value and mark it as recently used."""
        with self._lock:
            try:
                value = self._store[key]
            except KeyError:
                self._misses += 1
                return default
            self._store.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: Hashable, value: Any) -> None:
        """Store a value, evicting the oldest entries beyond capacity."""
        with self._lock:
            self._store[key] = value
            self._store.move_to_end(key)
            while len(self._store) > self._max_entries:
                self._store.popitem(last=False)
                self._evictions += 1

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def stats(self) -> Dict[str, int]:
        """Get hit, miss and eviction counters with the current size.

        :return: Cache statistics
        :rtype: Dict[str, int]
        """
        with self._lock:
            return {
                "size": len(self._store),
                "max_entries": self._max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


def memoize(
    fn: Callable[[Optional[str]], T], max_entries: int = 1000
) -> Callable[[Optional[str]], T]:
    """Wrap a pure single-argument function with a bounded cache.

    The wrapped function must be pure: concurrent misses on the same key
    may both compute the value, and whichever is stored last wins.
    The cache is exposed as the ``cache`` attribute of the wrapper.

    :param fn: Pure function of one hashable argument
    :type fn: Callable
    :param max_entries: Maximum number of cached results
    :type max_entries: int
    :return: Memoized function
    :rtype: Callable
    """
    cache = BoundedCache(max_entries)

    @functools.wraps(fn)
    def wrapper(key: Optional[str]) -> T:
        value = cache.get(key, _MISSING)
        if value is _MISSING:
            value = fn(key)
            cache.set(key, value)
        return value

    wrapper.cache = cache  # type: ignore[attr-defined]
    return wrapper


__all__ = ["BoundedCache", "memoize"]
