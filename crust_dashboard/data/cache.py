"""In-memory TTL cache for collaborator lookups."""

import logging
import time
from collections import OrderedDict
from functools import wraps
from typing import Any, Callable, Hashable

from ..core.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 2048


class SimpleCache:
    """
    TTL cache with LRU eviction.

    Single-threaded asyncio only, not thread-safe.
    """

    def __init__(self, default_ttl: int | None = None, max_size: int = DEFAULT_MAX_SIZE):
        self._entries: OrderedDict[Hashable, tuple[Any, float]] = OrderedDict()
        self._default_ttl = default_ttl or get_settings().cache_ttl_seconds
        self._max_size = max_size

    def get(self, key: Hashable) -> Any | None:
        """Get value if not expired; marks the key as recently used."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: Hashable, value: Any, ttl: int | None = None) -> None:
        self._entries.pop(key, None)
        while len(self._entries) >= self._max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache eviction: {evicted!r}")
        self._entries[key] = (value, time.monotonic() + (ttl or self._default_ttl))

    def invalidate(self, key: Hashable) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    @property
    def size(self) -> int:
        return len(self._entries)


def cached(ttl: int | None = None) -> Callable:
    """Cache an async method's result per instance and positional arguments.

    The cache lives on the instance (``self._cache``) so providers pointed at
    different nodes never share entries. ``None`` results are not cached, so
    a failed lookup is retried on the next call.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(self: Any, *args: Any) -> Any:
            cache: SimpleCache | None = getattr(self, "_cache", None)
            if cache is None:
                cache = SimpleCache()
                self._cache = cache
            key = (func.__name__, args)

            hit = cache.get(key)
            if hit is not None:
                return hit

            result = await func(self, *args)
            if result is not None:
                cache.set(key, result, ttl)
            return result

        return wrapper

    return decorator
