"""Tests for the in-process cache store and pattern helpers."""
import pytest

from tenantdesk.core.cache_store import compile_pattern, escape_glob
from tenantdesk.core.memory_cache import MemoryCacheStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
async def clock_store() -> tuple[MemoryCacheStore, FakeClock]:
    clock = FakeClock()
    store = MemoryCacheStore(clock=clock)
    await store.connect()
    return store, clock


class TestMemoryCacheStore:
    """Tests for MemoryCacheStore."""

    async def test__get__before_connect_returns_none(self) -> None:
        """Nothing is stored or served until connect()."""
        store = MemoryCacheStore()
        assert await store.set("k", "v", 60) is False
        assert await store.get("k") is None
        assert store.is_ready is False

    async def test__set__value_expires_after_ttl(
        self, clock_store: tuple[MemoryCacheStore, FakeClock],
    ) -> None:
        """An entry is served until its TTL elapses."""
        store, clock = clock_store
        await store.set("k", "v", 10)

        clock.now += 9.9
        assert await store.get("k") == "v"

        clock.now += 0.1
        assert await store.get("k") is None

    async def test__delete_pattern__wildcard_prefix(
        self, clock_store: tuple[MemoryCacheStore, FakeClock],
    ) -> None:
        """A trailing * matches every key with the prefix."""
        store, _ = clock_store
        await store.set("users:list:1", "a", 60)
        await store.set("users:list:2", "b", 60)
        await store.set("user:1", "c", 60)

        assert await store.delete_pattern("users:*") == 2
        assert await store.get("user:1") == "c"

    async def test__delete_pattern__question_mark_is_literal(
        self, clock_store: tuple[MemoryCacheStore, FakeClock],
    ) -> None:
        """Only * is a wildcard; ? and [ match themselves."""
        store, _ = clock_store
        await store.set("cache:/api/roles?page=1", "a", 60)
        await store.set("cache:/api/rolesXpage=1", "b", 60)
        await store.set("cache:/api/[x]", "c", 60)

        assert await store.delete_pattern("cache:/api/roles?page=*") == 1
        assert await store.get("cache:/api/rolesXpage=1") == "b"
        assert await store.delete_pattern("cache:/api/[x]") == 1

    async def test__delete_pattern__skips_expired_keys(
        self, clock_store: tuple[MemoryCacheStore, FakeClock],
    ) -> None:
        """Expired entries are evicted but not counted."""
        store, clock = clock_store
        await store.set("roles:short", "a", 1)
        await store.set("roles:long", "b", 100)
        clock.now += 5

        assert await store.delete_pattern("roles:*") == 1

    async def test__close__drops_entries(
        self, clock_store: tuple[MemoryCacheStore, FakeClock],
    ) -> None:
        """Reconnecting after close starts empty."""
        store, _ = clock_store
        await store.set("k", "v", 60)

        await store.close()
        await store.connect()

        assert await store.get("k") is None

    async def test__clear_all__removes_everything(
        self, clock_store: tuple[MemoryCacheStore, FakeClock],
    ) -> None:
        """clear_all empties the store."""
        store, _ = clock_store
        await store.set("a", "1", 60)
        await store.set("b", "2", 60)

        assert await store.clear_all() is True
        assert await store.get("a") is None
        assert await store.get("b") is None


class TestPatternHelpers:
    """Tests for escape_glob and compile_pattern."""

    def test__escape_glob__escapes_everything_but_star(self) -> None:
        """Redis glob specials other than * are escaped."""
        assert escape_glob("cache:/api/roles?page=1*") == "cache:/api/roles\\?page=1*"
        assert escape_glob("a[b]") == "a\\[b\\]"

    def test__compile_pattern__anchors_both_ends(self) -> None:
        """Patterns must match the whole key."""
        matcher = compile_pattern("role:*")
        assert matcher.match("role:123")
        assert not matcher.match("xrole:123")
        assert not compile_pattern("role:1").match("role:12")

    def test__compile_pattern__regex_specials_literal(self) -> None:
        """Regex metacharacters in the pattern match literally."""
        matcher = compile_pattern("cache:/api/roles?page=1.*")
        assert matcher.match("cache:/api/roles?page=1.x")
        assert not matcher.match("cache:/api/rolespage=1x")
