"""In-process cache store for single-process deployments and tests."""
import logging
import time
from collections.abc import Callable

from tenantdesk.core.cache_store import compile_pattern

logger = logging.getLogger(__name__)


class MemoryCacheStore:
    """
    Dict-backed cache store with per-key expiry.

    Same contract as RedisClient: nothing is served or stored until connect() has
    been called, and close() drops every entry. Expired keys are evicted lazily on
    access and during pattern scans.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str | bytes, float]] = {}
        self._connected = False

    async def connect(self) -> None:
        """Mark the store as ready."""
        self._connected = True
        logger.info("Using in-process cache store")

    async def close(self) -> None:
        """Drop all entries and mark the store as disconnected."""
        self._entries.clear()
        self._connected = False

    @property
    def is_ready(self) -> bool:
        """Check if store is connected."""
        return self._connected

    async def ping(self) -> bool:
        """Report liveness."""
        return self._connected

    def _live_value(self, key: str) -> str | bytes | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if self._clock() >= deadline:
            del self._entries[key]
            return None
        return value

    async def get(self, key: str) -> str | bytes | None:
        """Get value, None on miss, expiry or while disconnected."""
        if not self._connected:
            return None
        return self._live_value(key)

    async def set(self, key: str, value: str | bytes, ttl_seconds: int) -> bool:
        """Set value with expiry."""
        if not self._connected:
            return False
        self._entries[key] = (value, self._clock() + ttl_seconds)
        return True

    async def delete(self, *keys: str) -> bool:
        """Delete key(s)."""
        if not self._connected or not keys:
            return False
        for key in keys:
            self._entries.pop(key, None)
        return True

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every live key matching a `*`-wildcard pattern."""
        if not self._connected:
            return 0
        matcher = compile_pattern(pattern)
        matched = [
            key for key in list(self._entries)
            if matcher.match(key) and self._live_value(key) is not None
        ]
        for key in matched:
            del self._entries[key]
        return len(matched)

    async def clear_all(self) -> bool:
        """Delete every key."""
        if not self._connected:
            return False
        self._entries.clear()
        return True
