"""Cache store protocol shared by the Redis and in-process backends."""
import re
from typing import Protocol

# Characters Redis treats as glob syntax besides "*"
_GLOB_SPECIALS = re.compile(r"([?\[\]\\])")


class CacheStore(Protocol):
    """
    Key/value store with TTL, pattern deletion and a liveness flag.

    Implementations never raise on I/O failure: reads degrade to a miss (None) and
    writes/deletes to no-ops, so callers always fall back to computing live.
    """

    @property
    def is_ready(self) -> bool:
        """True while connected."""
        ...

    async def connect(self) -> None:
        """Open the connection. Must not raise if the backend is unreachable."""
        ...

    async def close(self) -> None:
        """Release the connection."""
        ...

    async def ping(self) -> bool:
        """Check connectivity."""
        ...

    async def get(self, key: str) -> bytes | str | None:
        """Return the raw stored value, or None on miss."""
        ...

    async def set(self, key: str, value: str | bytes, ttl_seconds: int) -> bool:
        """Store a value with expiry."""
        ...

    async def delete(self, *keys: str) -> bool:
        """Delete specific keys."""
        ...

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a `*`-wildcard pattern."""
        ...

    async def clear_all(self) -> bool:
        """Delete every key."""
        ...


def escape_glob(pattern: str) -> str:
    """
    Escape Redis glob syntax so that only `*` remains a wildcard.

    Example: 'cache:/api/roles?page=1*' -> 'cache:/api/roles\\?page=1*'
    """
    return _GLOB_SPECIALS.sub(r"\\\1", pattern)


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a `*`-wildcard pattern into an anchored regex."""
    parts = (re.escape(part) for part in pattern.split("*"))
    return re.compile(".*".join(parts) + r"\Z", re.DOTALL)
