"""Cache-aside service for read-heavy entity lookups."""
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from tenantdesk.core.cache_store import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# TTLs (seconds) for aggregate reads - shorter than single-entity reads because
# nothing invalidates them except expiry
STATS_TTL = 300
GROWTH_TTL = 600
DISTRIBUTION_TTL = 600
RECENT_USERS_TTL = 120
OVERVIEW_TTL = 300


def user_key(user_id: Any) -> str:
    """Cache key for a single user."""
    return f"user:{user_id}"


def admin_key(admin_id: Any) -> str:
    """Cache key for a single admin."""
    return f"admin:{admin_id}"


def role_key(role_id: Any) -> str:
    """Cache key for a single role."""
    return f"role:{role_id}"


USERS_PATTERN = "users:*"
ADMINS_PATTERN = "admins:*"
ROLES_PATTERN = "roles:*"
DASHBOARD_PATTERN = "dashboard:*"


class CacheService:
    """
    JSON cache-aside layer over a CacheStore.

    Values must be JSON-serializable; a value that is not is computed and returned
    but never written, so a cached entry always deserializes to exactly what its
    producer returned. Concurrent misses for the same key are not coalesced.
    """

    def __init__(self, store: CacheStore, default_ttl: int = 3600) -> None:
        self._store = store
        self._default_ttl = default_ttl

    @property
    def store(self) -> CacheStore:
        """Underlying store."""
        return self._store

    @property
    def is_ready(self) -> bool:
        """Check if the underlying store is connected."""
        return self._store.is_ready

    async def get(self, key: str) -> tuple[bool, Any]:
        """
        Look up a key.

        Returns:
            (hit, value). A stored JSON null is a hit with value None.
        """
        if not self._store.is_ready:
            return False, None
        raw = await self._store.get(key)
        if raw is None:
            logger.debug("cache_miss key=%s", key)
            return False, None
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("cache_corrupt_entry key=%s", key)
            await self._store.delete(key)
            return False, None
        logger.debug("cache_hit key=%s", key)
        return True, value

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        """Serialize and store a value. Returns False if nothing was written."""
        if not self._store.is_ready:
            return False
        try:
            data = json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            logger.warning("cache_unserializable key=%s error=%s", key, e)
            return False
        return await self._store.set(key, data, ttl_seconds or self._default_ttl)

    async def get_or_compute(
        self,
        key: str,
        producer: Callable[[], Awaitable[T]],
        ttl_seconds: int | None = None,
    ) -> T:
        """
        Return the cached value for `key`, computing and storing it on a miss.

        The producer is not invoked on a hit. If the producer raises, the exception
        propagates and nothing is cached.
        """
        hit, value = await self.get(key)
        if hit:
            return value

        value = await producer()
        await self.set(key, value, ttl_seconds)
        return value

    async def delete(self, *keys: str) -> None:
        """Invalidate specific keys."""
        if keys:
            await self._store.delete(*keys)
            logger.debug("cache_invalidate keys=%s", keys)

    async def delete_pattern(self, pattern: str) -> int:
        """Invalidate every key matching a `*`-wildcard pattern."""
        deleted = await self._store.delete_pattern(pattern)
        logger.debug("cache_invalidate_pattern pattern=%s deleted=%s", pattern, deleted)
        return deleted

    async def clear_all(self) -> bool:
        """Drop every cached entry."""
        cleared = await self._store.clear_all()
        logger.info("cache_cleared success=%s", cleared)
        return cleared
