"""In-memory TTL cache with LRU eviction for loaded content."""

import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any


class TTLCache:
    """In-memory cache with time-to-live and max-size eviction.

    There is no locking: two requests racing past an expired entry both
    refill it, and the later write simply replaces the earlier one.

    Usage::

        cache = TTLCache(ttl=300, max_size=100)
        cache.set('key', value)
        hit = cache.get('key')  # returns value or None if expired/missing
    """

    def __init__(
        self,
        ttl: float = 300,
        max_size: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._max_size = max_size
        self._clock = clock
        # OrderedDict preserves insertion order for LRU eviction
        self._store: OrderedDict[str, tuple[Any, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> Any | None:
        """Return the cached value if present and not expired, else None."""
        entry = self._store.get(key)
        if entry is None:
            return None
        value, ts = entry
        if self._clock() - ts >= self.ttl:
            del self._store[key]
            return None
        self._store.move_to_end(key)
        return value

    def set(self, key: str, value: Any) -> None:
        """Store a value under *key*, evicting the oldest entry if at capacity."""
        if key in self._store:
            self._store.move_to_end(key)
        self._store[key] = (value, self._clock())
        while len(self._store) > self._max_size:
            self._store.popitem(last=False)

    def clear(self) -> None:
        """Drop every entry."""
        self._store.clear()
