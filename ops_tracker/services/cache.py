"""Small in-process TTL cache for read-heavy endpoints.

An instance is owned by the application (``app.state``) rather than living at
module level, so tests can build one with a fake clock.
"""

import logging
import time
from collections.abc import Awaitable, Callable, Hashable
from typing import Any

logger = logging.getLogger(__name__)

_MISSING = object()


class TTLCache:
    """Maps ``key_fn(*args)`` to a value for ``ttl`` seconds."""

    def __init__(
        self,
        ttl: float,
        key_fn: Callable[..., Hashable] = lambda *args: args,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.key_fn = key_fn
        self.clock = clock
        self._store: dict[Hashable, tuple[Any, float]] = {}  # key -> (value, expires_at)

    def get(self, *args, default: Any = None) -> Any:
        """Cached value, or ``default`` on miss or expiry."""
        key = self.key_fn(*args)
        entry = self._store.get(key)
        if entry is None:
            return default
        value, expires_at = entry
        if self.clock() >= expires_at:
            self._store.pop(key, None)
            return default
        return value

    def set(self, value: Any, *args) -> None:
        self._store[self.key_fn(*args)] = (value, self.clock() + self.ttl)

    async def get_or_load(self, loader: Callable[[], Awaitable[Any]], *args) -> Any:
        """Return the cached value, calling ``loader`` on a miss."""
        value = self.get(*args, default=_MISSING)
        if value is not _MISSING:
            return value

        logger.debug(f"Cache miss for {self.key_fn(*args)!r}")
        value = await loader()
        self.set(value, *args)
        return value

    def invalidate(self, *args) -> None:
        self._store.pop(self.key_fn(*args), None)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)
