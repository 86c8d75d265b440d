"""Redis client with connection pooling and graceful fallback."""
import logging

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from tenantdesk.core.cache_store import escape_glob

logger = logging.getLogger(__name__)

# Keys deleted per round trip when clearing by pattern
DELETE_BATCH_SIZE = 500


class RedisClient:
    """
    Async Redis client with connection pooling and graceful fallback.

    Implements the cache store protocol. While disconnected (disabled, unreachable at
    startup, or closed) reads return None and writes are no-ops. Any RedisError on an
    individual operation is logged and swallowed - the cache is advisory.
    """

    def __init__(self, url: str, enabled: bool = True, pool_size: int = 20) -> None:
        self._url = url
        self._enabled = enabled
        self._pool_size = pool_size
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        """Initialize connection pool and verify connectivity."""
        if not self._enabled:
            logger.info("Redis disabled by configuration")
            return
        try:
            self._pool = ConnectionPool.from_url(self._url, max_connections=self._pool_size)
            self._client = Redis(connection_pool=self._pool)
            # Verify connection
            await self._client.ping()
            logger.info("Redis connected successfully")
        except (RedisError, OSError) as e:
            logger.warning("Redis connection failed: %s", e)
            if self._client is not None:
                await self._client.aclose()
            self._client = None
            self._pool = None

    async def close(self) -> None:
        """Close connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self._pool = None
            logger.info("Redis connection closed")

    @property
    def is_ready(self) -> bool:
        """Check if client is connected."""
        return self._client is not None

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        if not self._client:
            return False
        try:
            return await self._client.ping()
        except RedisError:
            return False

    async def get(self, key: str) -> bytes | None:
        """Get value, returns None if Redis unavailable."""
        if not self._client:
            return None
        try:
            return await self._client.get(key)
        except RedisError as e:
            logger.warning("Redis GET failed: %s", e)
            return None

    async def set(self, key: str, value: str | bytes, ttl_seconds: int) -> bool:
        """Set value with expiry, returns False if Redis unavailable."""
        if not self._client:
            return False
        try:
            await self._client.setex(key, ttl_seconds, value)
            return True
        except RedisError as e:
            logger.warning("Redis SETEX failed: %s", e)
            return False

    async def delete(self, *keys: str) -> bool:
        """Delete key(s), returns False if Redis unavailable."""
        if not self._client or not keys:
            return False
        try:
            await self._client.delete(*keys)
            return True
        except RedisError as e:
            logger.warning("Redis DELETE failed: %s", e)
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a `*`-wildcard pattern.

        Walks the keyspace with SCAN (non-blocking, unlike KEYS) and deletes in
        batches. Characters other than `*` match literally.

        Returns:
            Number of keys deleted, 0 if Redis unavailable.
        """
        if not self._client:
            return 0
        deleted = 0
        batch: list[bytes] = []
        try:
            async for key in self._client.scan_iter(match=escape_glob(pattern), count=500):
                batch.append(key)
                if len(batch) >= DELETE_BATCH_SIZE:
                    deleted += await self._client.delete(*batch)
                    batch = []
            if batch:
                deleted += await self._client.delete(*batch)
        except RedisError as e:
            logger.warning("Redis pattern delete failed: %s", e)
        return deleted

    async def clear_all(self) -> bool:
        """Flush current database. Returns False if unavailable."""
        if not self._client:
            return False
        try:
            await self._client.flushdb()
            return True
        except RedisError as e:
            logger.warning("Redis FLUSHDB failed: %s", e)
            return False
